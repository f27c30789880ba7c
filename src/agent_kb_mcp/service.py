"""Knowledge base operations: record and retrieve problem/solution pairs.

Both operations are single-pass pipelines of at most two sequential network
calls (embed, then store). The first failure aborts the pipeline and is
reported as a failed outcome; nothing here raises past the service boundary
and nothing is retried.
"""

from __future__ import annotations

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from knowledge_backend.errors import KnowledgeBaseError, StoreQueryError, ValidationError
from knowledge_backend.models import (
    KnowledgeRecord,
    RecordMetadata,
    SearchOutcome,
    SearchResult,
    StoreMatch,
    UploadOutcome,
    new_record_id,
    utc_timestamp,
)

from .clients import ClientLifecycleManager

DEFAULT_TOP_K = 5
MAX_TOP_K = 20

UPLOAD_SUCCESS_MESSAGE = "Problem-solution pair successfully uploaded to the knowledge base"


def _to_result(match: StoreMatch) -> SearchResult:
    try:
        return SearchResult.from_match(match)
    except PydanticValidationError as exc:
        raise StoreQueryError(
            f"Malformed match metadata for record {match.id}: "
            f"{exc.error_count()} invalid field(s)",
            {"record_id": match.id},
        ) from exc


class KnowledgeBaseService:
    """Compose the embedding client and knowledge store into upload/search."""

    def __init__(self, lifecycle: ClientLifecycleManager) -> None:
        self.lifecycle = lifecycle

    async def upload(
        self,
        problem: str,
        solution: str,
        language: str | None = None,
        framework: str | None = None,
    ) -> UploadOutcome:
        """Embed ``problem`` and store the pair under a fresh ID.

        Args:
            problem: Description of the error, bug or issue
            solution: The fix that resolved it
            language: Optional programming language
            framework: Optional framework or library

        Returns:
            Outcome with the new record ID on success, or a failure message
        """
        try:
            if not problem or not solution:
                raise ValidationError("problem and solution must be non-empty strings")

            clients = await self.lifecycle.ensure_clients()

            logger.debug("Generating problem embedding...")
            vector = await clients.embedding.embed(problem)

            record = KnowledgeRecord(
                id=new_record_id(),
                vector=vector,
                metadata=RecordMetadata(
                    problem_text=problem,
                    solution_text=solution,
                    timestamp=utc_timestamp(),
                    language=language,
                    framework=framework,
                ),
            )

            await clients.store.upsert(
                record.id, record.vector, record.metadata.to_store_metadata()
            )
        except KnowledgeBaseError as exc:
            logger.error(f"Failed to upload to knowledge base: {exc}")
            return UploadOutcome(ok=False, message=f"Failed to upload to knowledge base: {exc}")
        except Exception as exc:
            logger.exception("Unexpected upload failure")
            return UploadOutcome(ok=False, message=f"Failed to upload to knowledge base: {exc}")

        logger.success(f"Stored knowledge record {record.id}")
        return UploadOutcome(ok=True, id=record.id, message=UPLOAD_SUCCESS_MESSAGE)

    async def search(self, query: str, top_k: int = DEFAULT_TOP_K) -> SearchOutcome:
        """Return stored pairs whose problems are most similar to ``query``.

        Results keep the store's ranking (descending similarity).
        """
        try:
            if not query:
                raise ValidationError("query must be a non-empty string")
            if not 1 <= top_k <= MAX_TOP_K:
                raise ValidationError(f"topK must be between 1 and {MAX_TOP_K}, got {top_k}")

            clients = await self.lifecycle.ensure_clients()

            logger.debug("Generating query embedding...")
            vector = await clients.embedding.embed(query)

            matches = await clients.store.query(vector, top_k, include_metadata=True)
            results = [_to_result(match) for match in matches]
        except KnowledgeBaseError as exc:
            logger.error(f"Failed to search knowledge base: {exc}")
            return SearchOutcome(
                ok=False, query=query, message=f"Failed to search knowledge base: {exc}"
            )
        except Exception as exc:
            logger.exception("Unexpected search failure")
            return SearchOutcome(
                ok=False, query=query, message=f"Failed to search knowledge base: {exc}"
            )

        logger.info(f"Found {len(results)} results")
        return SearchOutcome(ok=True, query=query, results=results)
