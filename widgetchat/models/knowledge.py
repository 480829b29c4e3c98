"""
Knowledge domain models and schemas.

Dependencies: pydantic
System role: Knowledge Retriever and knowledge query API contracts
"""

from pydantic import BaseModel, ConfigDict, Field


class KnowledgeSnippet(BaseModel):
    """
    Ranked supporting snippet returned by the Knowledge Retriever.

    Attributes:
        content: Document content
        source: Document title, source URL or id
        score: Relevance score (placeholder constant)
        document_id: Id of the matched document
        title_match: Whether the query matched the document title
    """

    content: str
    source: str
    score: float = 1.0
    document_id: str
    title_match: bool = False


class KnowledgeQueryRequest(BaseModel):
    """Request schema for querying knowledge bases."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(description="Text searched in titles and content")
    knowledge_base_ids: list[str] = Field(
        default_factory=list,
        alias="knowledgeBaseIds",
        description="Knowledge bases to search; empty means all accessible ones",
    )
    limit: int = Field(default=5, ge=1, le=50)


class KnowledgeQueryResult(BaseModel):
    """One document in a knowledge query response."""

    id: str
    knowledge_base_id: str
    title: str | None
    content: str
    source_url: str | None
    relevance_score: float


class KnowledgeQueryResponse(BaseModel):
    """Response schema for knowledge queries."""

    query: str
    results: list[KnowledgeQueryResult]
    total: int
