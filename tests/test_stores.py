import json

import pytest

from interview_scoring.models import CompositeResult, FeedbackReport
from interview_scoring.stores import (FeedbackGenerator, InMemoryResultStore, InMemorySubmissionStore,
                                      JsonFileResultStore, QuestionStore)

FEEDBACK = FeedbackReport(overall_performance="ok", strengths=("a",), improvements=("b",),
                          section_feedback=())


def test_contracts_are_abstract():
    with pytest.raises(TypeError):
        QuestionStore()


def test_feedback_generator_is_callable():
    class Echo(FeedbackGenerator):
        def generate(self, prompt):
            return prompt[::-1]

    assert Echo()("abc") == "cba"


def test_in_memory_result_store_last_write_wins():
    store = InMemoryResultStore()
    assert store.upsert("i1", "c1", CompositeResult(overall_score=10), FEEDBACK)
    assert store.upsert("i1", "c1", CompositeResult(overall_score=90), FEEDBACK)
    assert store.get("i1", "c1")["composite"].overall_score == 90
    assert len(store.results) == 1
    assert store.get("i1", "missing") is None


def test_in_memory_submission_store():
    store = InMemorySubmissionStore()
    store.add("i1", "c1", [{"answer": "x"}])
    assert store.get_raw_feedback("i1", "c1") == [{"answer": "x"}]
    assert store.get_raw_feedback("i1", "c2") is None


def test_json_file_store_round_trip(tmp_path):
    path = tmp_path / "results" / "scores.json"
    store = JsonFileResultStore(str(path))
    assert store.upsert("i1", "c1", CompositeResult(overall_score=40), FEEDBACK)
    assert store.upsert("i1", "c2", CompositeResult(overall_score=70), FEEDBACK)
    assert store.upsert("i1", "c1", CompositeResult(overall_score=55), FEEDBACK)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {"i1:c1", "i1:c2"}
    assert data["i1:c1"]["composite"]["overall_score"] == 55
    assert data["i1:c1"]["feedback"]["strengths"] == ["a"]


def test_json_file_store_failed_write_keeps_previous_file(tmp_path, monkeypatch):
    path = tmp_path / "scores.json"
    store = JsonFileResultStore(str(path))
    assert store.upsert("i1", "c1", CompositeResult(overall_score=40), FEEDBACK)
    before = path.read_text(encoding="utf-8")

    def broken_dump(*args, **kwargs):
        raise TypeError("not serialisable")

    monkeypatch.setattr("interview_scoring.stores.json.dump", broken_dump)
    assert store.upsert("i1", "c1", CompositeResult(overall_score=99), FEEDBACK) is False
    assert path.read_text(encoding="utf-8") == before
    assert [p.name for p in tmp_path.iterdir()] == ["scores.json"]


def test_json_file_store_unwritable_path(tmp_path):
    store = JsonFileResultStore(str(tmp_path))
    assert store.upsert("i1", "c1", CompositeResult(), FEEDBACK) is False
