"""Input schemas for the MCP tools.

These models are the single source of truth for tool arguments. FastMCP
advertises the same constraints in each tool's JSON schema; the tool bodies
re-validate with these models so that a malformed call is rejected before
the service (and therefore the embedding service) is reached.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .service import DEFAULT_TOP_K, MAX_TOP_K

PROBLEM_DESCRIPTION = "Detailed description of the error, bug, or issue encountered"
SOLUTION_DESCRIPTION = "The fix or resolution that successfully solved the problem"
LANGUAGE_DESCRIPTION = "Programming language (e.g., 'TypeScript', 'Python', 'JavaScript')"
FRAMEWORK_DESCRIPTION = "Framework or library (e.g., 'React', 'Express', 'Django')"
QUERY_DESCRIPTION = "Description of the problem, error, or bug you're trying to solve"
TOP_K_DESCRIPTION = f"Number of results to return (default: {DEFAULT_TOP_K}, max: {MAX_TOP_K})"


class UploadArguments(BaseModel):
    """Arguments accepted by the ``upload`` tool."""

    model_config = ConfigDict(extra="forbid")

    problem: str = Field(..., min_length=1, description=PROBLEM_DESCRIPTION)
    solution: str = Field(..., min_length=1, description=SOLUTION_DESCRIPTION)
    language: str | None = Field(None, description=LANGUAGE_DESCRIPTION)
    framework: str | None = Field(None, description=FRAMEWORK_DESCRIPTION)


class SearchArguments(BaseModel):
    """Arguments accepted by the ``search`` tool."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    query: str = Field(..., min_length=1, description=QUERY_DESCRIPTION)
    top_k: int = Field(
        DEFAULT_TOP_K, ge=1, le=MAX_TOP_K, alias="topK", description=TOP_K_DESCRIPTION
    )
