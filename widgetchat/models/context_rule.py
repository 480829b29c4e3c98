"""
Context rule domain models.

Typed view of a context rule as consumed by the orchestration pipeline.
Built from ORM rows at the Policy Store boundary.

Dependencies: pydantic
System role: Policy contracts
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FilterType(str, Enum):
    """Response filter kinds applied after generation."""

    REPLACE = "replace"
    APPEND = "append"
    PREPEND = "prepend"


class ResponseFilterSpec(BaseModel):
    """
    One stored response filter.

    Attributes:
        type: Filter kind
        pattern: Regular expression for replace filters
        replacement: Substitution text for replace filters; group references
            may use $1 and $& or the backslash forms of re.sub
        text: Fixed text for append/prepend filters
    """

    model_config = ConfigDict(extra="ignore")

    type: str
    pattern: str | None = None
    replacement: str | None = None
    text: str | None = None


class ContextRule(BaseModel):
    """Active context rule resolved for a chat message."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_active: bool = True
    keywords: list[str] = Field(default_factory=list)
    excluded_topics: list[str] = Field(default_factory=list)
    prompt_template: str | None = None
    response_filters: list[ResponseFilterSpec] = Field(default_factory=list)
    use_knowledge_bases: bool = False
    knowledge_base_ids: list[str] = Field(default_factory=list)
    preferred_model: str | None = None
    version: int = 1

    @property
    def knowledge_enabled(self) -> bool:
        """Whether the rule asks for knowledge retrieval."""
        return self.use_knowledge_bases and bool(self.knowledge_base_ids)
