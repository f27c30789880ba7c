"""Pydantic models for knowledge records and search results.

All data crossing the service boundary is validated against these schemas.
Optional classifiers (``language``, ``framework``) are omitted from every
serialized form when absent; they are never written as ``null`` or ``""``.
"""

from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_timestamp(moment: datetime | None = None) -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_record_id() -> str:
    """Generate a fresh record identifier (UUID4)."""
    return str(uuid.uuid4())


class RecordMetadata(BaseModel):
    """Metadata stored alongside each embedding in the vector index.

    Attributes:
        problem_text: Description of the error, bug or issue
        solution_text: The fix that resolved it
        timestamp: Creation time, set once at upload
        language: Optional programming language classifier
        framework: Optional framework or library classifier
    """

    model_config = ConfigDict(frozen=True)

    problem_text: str = Field(min_length=1)
    solution_text: str = Field(min_length=1)
    timestamp: str = Field(default_factory=utc_timestamp)
    language: str | None = None
    framework: str | None = None

    @field_validator("language", "framework")
    @classmethod
    def blank_is_absent(cls, v: str | None) -> str | None:
        """Treat empty classifiers as not supplied."""
        return v or None

    def to_store_metadata(self) -> dict[str, str]:
        """Serialize for the store, dropping absent classifiers."""
        return self.model_dump(exclude_none=True)


class KnowledgeRecord(BaseModel):
    """A single problem/solution pair ready for upsert.

    Attributes:
        id: Globally unique record ID (UUID4), never reused
        vector: Embedding of ``metadata.problem_text``; the similarity key only
        metadata: Stored metadata
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id)
    vector: list[float] = Field(min_length=1)
    metadata: RecordMetadata

    @field_validator("vector")
    @classmethod
    def validate_vector_values(cls, v: list[float]) -> list[float]:
        """Ensure vector contains valid finite floats."""
        for i, val in enumerate(v):
            if not math.isfinite(val):
                raise ValueError(f"Vector contains non-finite value at index {i}: {val}")
        return v


class StoreMatch(BaseModel):
    """A raw nearest-neighbour hit as reported by the store."""

    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class ResultMetadata(BaseModel):
    """Classifier and timestamp metadata attached to a search result."""

    language: str | None = None
    framework: str | None = None
    timestamp: str | None = None


class SearchResult(BaseModel):
    """A single search hit as returned to callers.

    Attributes:
        problem: Stored problem text
        solution: Stored solution text
        score: Store similarity score (higher is more similar, scale store-defined)
        metadata: Optional classifiers plus creation timestamp
    """

    problem: str = Field(min_length=1)
    solution: str = Field(min_length=1)
    score: float
    metadata: ResultMetadata

    @classmethod
    def from_match(cls, match: StoreMatch) -> SearchResult:
        """Build a result from a store match, keeping only present classifiers.

        Raises:
            pydantic.ValidationError: If the stored metadata lacks the pair texts
                or holds values of the wrong type
        """
        stored = match.metadata
        return cls(
            problem=stored.get("problem_text"),
            solution=stored.get("solution_text"),
            score=match.score,
            metadata=ResultMetadata(
                language=stored.get("language") or None,
                framework=stored.get("framework") or None,
                timestamp=stored.get("timestamp") or None,
            ),
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class UploadOutcome(BaseModel):
    """Structured result of an upload; failures are values, not exceptions."""

    ok: bool
    message: str
    id: str | None = None


class SearchOutcome(BaseModel):
    """Structured result of a search, results in store order."""

    ok: bool
    message: str = ""
    query: str = ""
    results: list[SearchResult] = Field(default_factory=list)

    @property
    def results_found(self) -> int:
        return len(self.results)
