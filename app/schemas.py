"""Tool-argument and HTTP schemas."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MIN_RESULTS = 1
MAX_RESULTS = 20
DEFAULT_MAX_RESULTS = 5


class ToolInvocationRequest(BaseModel):
    """Arguments the model passes to the corpus search tool.

    The JSON schema of this model is what the model sees as the tool's
    parameters, so the bounds declared here are the ones the adapter enforces.
    """

    model_config = ConfigDict(extra="ignore")

    query: str = Field(
        ...,
        min_length=1,
        description=(
            "Specific, detailed search query focusing on the exact information needed - "
            "be precise about the topic, concepts, or questions you want answered"
        ),
    )
    max_results: int = Field(
        DEFAULT_MAX_RESULTS,
        ge=MIN_RESULTS,
        le=MAX_RESULTS,
        validation_alias=AliasChoices("max_results", "maxResults"),
        description="Maximum number of results to return",
    )

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("max_results", mode="before")
    @classmethod
    def _clamp_max_results(cls, value: Any) -> Any:
        if value is None:
            return DEFAULT_MAX_RESULTS
        try:
            number = int(value)
        except (TypeError, ValueError, OverflowError):
            return value
        return max(MIN_RESULTS, min(MAX_RESULTS, number))


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="User message for the next turn")

    @field_validator("message", mode="before")
    @classmethod
    def _strip_message(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class TurnSchema(BaseModel):
    role: str
    content: str


class HistoryResponse(BaseModel):
    turns: List[TurnSchema] = Field(default_factory=list)


class CitationSchema(BaseModel):
    title: str
    url: Optional[str] = None


class ReadinessResponse(BaseModel):
    status: str
    openai_api_key_configured: bool
    search_api_key_configured: bool
    model: str
    max_steps: int
    included_sources: List[str]
