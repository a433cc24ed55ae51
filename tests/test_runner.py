import json

import pytest

from interview_scoring.config import get_settings
from interview_scoring.runner import run_full_pass

EXPORT = {
    "interviews": [
        {
            "interviewId": "beh-1",
            "interviewType": "behavioral",
            "questions": [{"question": "Tell me about a time you led a team."}],
            "submissions": [
                {"candidateId": "c1", "candidateName": "Ada",
                 "answers": [{"answer": "For example, I first aligned the team because goals differed."}]},
                {"candidateId": "c2", "candidateName": "Bo", "answers": {"0": {"answer": ""}}},
            ],
        },
        {
            "interviewId": "mcq-1",
            "interviewType": "mcq",
            "questions": [{"question": "2 + 2?", "options": ["3", "4"], "correctAnswer": "b"}],
            "submissions": [{"candidateId": "c1", "candidateName": "Ada",
                             "answers": '{"answers": [{"selectedOption": "2"}],}'}],
        },
    ],
}


def test_run_full_pass_mock(tmp_path, monkeypatch):
    monkeypatch.setenv("MOCK_MODE", "1")
    inp = tmp_path/"in.json"
    inp.write_text(json.dumps(EXPORT))
    outp = tmp_path/"out.json"
    res = run_full_pass(str(inp), str(outp))
    assert outp.exists()
    assert res["meta"]["mock_mode"] is True
    assert res["meta"]["scored_submissions"] == 3
    assert res["meta"]["ai_feedback"] == 3
    assert [(r["interview_id"], r["candidate_id"]) for r in res["results"]] == [
        ("beh-1", "c1"), ("beh-1", "c2"), ("mcq-1", "c1")]
    assert res["results"][2]["composite"]["overall_score"] == 100
    assert res["results"][1]["composite"]["completion_rate"] == 0
    assert res["stats"]["totalInterviews"] == 3
    assert res["stats"]["totalCandidates"] == 2
    assert json.loads(outp.read_text(encoding="utf-8")) == res


def test_run_full_pass_without_generator_uses_fallback(tmp_path, monkeypatch):
    monkeypatch.setenv("MOCK_MODE", "0")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    inp = tmp_path/"in.json"
    inp.write_text(json.dumps(EXPORT["interviews"]))
    res = run_full_pass(str(inp), str(tmp_path/"out.json"))
    assert res["meta"]["ai_feedback"] == 0
    assert all(r["feedback"]["source"] == "fallback" for r in res["results"])


def test_run_full_pass_rejects_unknown_layout(tmp_path, monkeypatch):
    monkeypatch.setenv("MOCK_MODE", "1")
    inp = tmp_path/"in.json"
    inp.write_text('"just a string"')
    with pytest.raises(ValueError):
        run_full_pass(str(inp), str(tmp_path/"out.json"), settings=get_settings())
