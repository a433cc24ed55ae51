from interview_scoring.evaluator import (categorize_question, match_quality, passes, round_half_up,
                                        score_answer, score_behavioral, score_coding, score_mcq)
from interview_scoring.models import AnswerRecord, MatchQuality, QuestionType


def _rec(qtype, value, **kw):
    return AnswerRecord(question_index=0, question_text=kw.pop("question_text", "Q"),
                        type=qtype, raw_answer_value=value, **kw)


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(66.666) == 67
    assert round_half_up(2.49) == 2


def test_match_quality_thresholds():
    assert match_quality(85) is MatchQuality.EXCELLENT
    assert match_quality(84) is MatchQuality.GOOD
    assert match_quality(70) is MatchQuality.GOOD
    assert match_quality(69) is MatchQuality.FAIR
    assert match_quality(40) is MatchQuality.FAIR
    assert match_quality(39) is MatchQuality.POOR


def test_behavioral_markers_beat_plain_answer_of_equal_length():
    plain = "I handled the work and delivered it to the client on schedule."
    marked = "For example I did the work because the client needed it today."
    assert len(plain) == len(marked)
    s_plain = score_behavioral(_rec(QuestionType.BEHAVIORAL, plain))
    s_marked = score_behavioral(_rec(QuestionType.BEHAVIORAL, marked))
    assert s_marked.score > s_plain.score
    assert s_plain.score == 6
    assert s_marked.score == 66
    assert "example marker: for example" in s_marked.evidence
    assert "structure marker: because" in s_marked.evidence


def test_behavioral_score_is_capped():
    text = "For example, first we planned, then we shipped. " + "More detail. " * 50
    assert score_behavioral(_rec(QuestionType.BEHAVIORAL, text)).score == 100


def test_behavioral_keywords_and_category():
    s = score_behavioral(_rec(QuestionType.BEHAVIORAL, "Teamwork and communication mattered.",
                              question_text="How do you collaborate with your team?"))
    assert "keyword: teamwork" in s.evidence
    assert "keyword: communication" in s.evidence
    assert s.category == "teamwork"
    assert s.is_correct is None
    assert categorize_question("Describe a decision you had to lead") == "leadership"
    assert categorize_question("What is your favourite food?") == "general"


def test_unanswered_scores_zero_for_every_kind():
    for qtype in QuestionType:
        s = score_answer(_rec(qtype, None, correct_answer="a"))
        assert s.score == 0
        assert s.match_quality is MatchQuality.POOR
        assert s.evidence == ("unanswered",)


def test_mcq_case_insensitive_match():
    assert score_mcq(_rec(QuestionType.MCQ, "b", correct_answer="B")).score == 100
    assert score_mcq(_rec(QuestionType.MCQ, "B", correct_answer="b")).score == 100
    wrong = score_mcq(_rec(QuestionType.MCQ, "b", correct_answer="c"))
    assert wrong.score == 0
    assert wrong.is_correct is False


def test_mcq_rendered_and_positional_tokens():
    opts = ("Berlin", "Paris", "Rome")
    assert score_mcq(_rec(QuestionType.MCQ, "b. Paris", correct_answer="B")).is_correct
    assert score_mcq(_rec(QuestionType.MCQ, "2", correct_answer="b", options=opts)).is_correct
    assert score_mcq(_rec(QuestionType.MCQ, "Paris", correct_answer="b", options=opts)).is_correct
    assert not score_mcq(_rec(QuestionType.MCQ, "3", correct_answer="b", options=opts)).is_correct


def test_mcq_without_correct_answer():
    s = score_mcq(_rec(QuestionType.MCQ, "a"))
    assert s.score == 0
    assert s.is_correct is False
    assert "no correct answer on record" in s.evidence


def test_coding_uses_recorded_score():
    s = score_coding(_rec(QuestionType.CODING, "def f(n): return f(n - 1)  # recursive",
                          recorded_score=85, language="python"))
    assert s.score == 85
    assert s.is_correct is True
    assert s.match_quality is MatchQuality.EXCELLENT
    assert "language: python" in s.evidence
    assert "approach: Recursive" in s.evidence


def test_coding_clamps_and_falls_back_to_solved_flag():
    assert score_coding(_rec(QuestionType.CODING, "x", recorded_score=150)).score == 100
    assert score_coding(_rec(QuestionType.CODING, "x", recorded_score=-3)).score == 0
    assert score_coding(_rec(QuestionType.CODING, "x", solved=True)).score == 100
    unsolved = score_coding(_rec(QuestionType.CODING, "x"))
    assert unsolved.score == 0
    assert unsolved.is_correct is False
    assert not score_coding(_rec(QuestionType.CODING, "x", recorded_score=69)).is_correct


def test_passes_excludes_behavioral():
    assert passes(score_answer(_rec(QuestionType.BEHAVIORAL, "fine"))) is None
    assert passes(score_answer(_rec(QuestionType.MCQ, "a", correct_answer="a"))) is True
    assert passes(score_answer(_rec(QuestionType.CODING, None))) is False


def test_markers_match_inside_longer_words():
    s = score_behavioral(_rec(QuestionType.BEHAVIORAL, "Firstly I listed the risks."))
    assert "structure marker: first" in s.evidence
    assert s.score == 33
    s = score_behavioral(_rec(QuestionType.BEHAVIORAL, "Secondly, the examples helped."))
    assert "structure marker: second" in s.evidence
    assert "example marker: example" in s.evidence
