"""Unit tests for Pydantic models.

Tests validate:
- Field constraints
- Omission of absent optional classifiers
- Mapping of store matches onto search results
"""

from datetime import UTC, datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from knowledge_backend.models import (
    KnowledgeRecord,
    RecordMetadata,
    SearchOutcome,
    SearchResult,
    StoreMatch,
    new_record_id,
    utc_timestamp,
)


class TestTimestamps:
    def test_utc_timestamp_format(self):
        moment = datetime(2026, 10, 18, 9, 15, 2, 123456, tzinfo=UTC)

        assert utc_timestamp(moment) == "2026-10-18T09:15:02.123Z"

    def test_timestamps_sort_chronologically(self):
        earlier = utc_timestamp(datetime(2026, 1, 2, tzinfo=UTC))
        later = utc_timestamp(datetime(2026, 10, 18, tzinfo=UTC))

        assert sorted([later, earlier]) == [earlier, later]


class TestRecordMetadata:
    """Tests for RecordMetadata validation."""

    def test_required_texts_must_be_non_empty(self):
        with pytest.raises(ValidationError):
            RecordMetadata(problem_text="", solution_text="fix")

        with pytest.raises(ValidationError):
            RecordMetadata(problem_text="bug", solution_text="")

    def test_absent_classifiers_are_omitted(self):
        metadata = RecordMetadata(problem_text="bug", solution_text="fix", framework="")

        dumped = metadata.to_store_metadata()

        assert "language" not in dumped
        assert "framework" not in dumped
        assert None not in dumped.values()

    def test_present_classifiers_follow_required_keys(self):
        metadata = RecordMetadata(
            problem_text="bug",
            solution_text="fix",
            timestamp="2026-10-18T09:15:02.123Z",
            language="Python",
            framework="Django",
        )

        assert list(metadata.to_store_metadata()) == [
            "problem_text",
            "solution_text",
            "timestamp",
            "language",
            "framework",
        ]

    @given(
        language=st.one_of(st.none(), st.text(max_size=20)),
        framework=st.one_of(st.none(), st.text(max_size=20)),
    )  # type: ignore[misc]
    def test_store_metadata_never_holds_empty_values(self, language, framework) -> None:
        """Property-based test: stored metadata has no null or empty entries."""
        metadata = RecordMetadata(
            problem_text="bug", solution_text="fix", language=language, framework=framework
        )

        dumped = metadata.to_store_metadata()

        assert all(value for value in dumped.values())
        assert ("language" in dumped) == bool(language)

    def test_metadata_is_immutable(self):
        metadata = RecordMetadata(problem_text="bug", solution_text="fix")

        with pytest.raises(ValidationError):
            metadata.problem_text = "changed"


class TestKnowledgeRecord:
    def test_rejects_non_finite_vector(self):
        metadata = RecordMetadata(problem_text="bug", solution_text="fix")

        with pytest.raises(ValidationError, match="non-finite"):
            KnowledgeRecord(vector=[0.1, float("nan")], metadata=metadata)

    def test_generates_id_when_missing(self):
        metadata = RecordMetadata(problem_text="bug", solution_text="fix")

        first = KnowledgeRecord(vector=[0.1], metadata=metadata)
        second = KnowledgeRecord(vector=[0.1], metadata=metadata)

        assert first.id != second.id

    def test_new_record_id_is_uuid4(self):
        assert new_record_id()[14] == "4"


class TestSearchResult:
    def test_from_match_maps_stored_fields(self):
        match = StoreMatch(
            id="abc",
            score=0.87,
            metadata={
                "problem_text": "bug",
                "solution_text": "fix",
                "timestamp": "2026-10-18T09:15:02.123Z",
                "framework": "React",
            },
        )

        payload = SearchResult.from_match(match).to_payload()

        assert payload == {
            "problem": "bug",
            "solution": "fix",
            "score": 0.87,
            "metadata": {"framework": "React", "timestamp": "2026-10-18T09:15:02.123Z"},
        }

    def test_score_is_not_clamped(self):
        match = StoreMatch(
            id="abc",
            score=1.0000004,
            metadata={"problem_text": "bug", "solution_text": "fix", "timestamp": "t"},
        )

        assert SearchResult.from_match(match).score == 1.0000004

    def test_results_found_counts_results(self):
        match = StoreMatch(id="a", score=0.5, metadata={"problem_text": "p", "solution_text": "s"})
        outcome = SearchOutcome(ok=True, query="q", results=[SearchResult.from_match(match)] * 3)

        assert outcome.results_found == 3

    def test_missing_timestamp_is_omitted(self):
        match = StoreMatch(id="a", score=0.5, metadata={"problem_text": "p", "solution_text": "s"})

        assert SearchResult.from_match(match).to_payload()["metadata"] == {}

    def test_from_match_rejects_wrong_types(self):
        match = StoreMatch(
            id="a",
            score=0.5,
            metadata={"problem_text": "p", "solution_text": "s", "language": 3},
        )

        with pytest.raises(ValidationError):
            SearchResult.from_match(match)

    def test_from_match_requires_pair_texts(self):
        match = StoreMatch(id="a", score=0.5, metadata={"solution_text": "s"})

        with pytest.raises(ValidationError):
            SearchResult.from_match(match)
