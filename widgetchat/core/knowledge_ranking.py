"""
Knowledge ranking contract.

A document is eligible when the query is a case-insensitive substring of its
content or title. Eligible documents sort by title match first, then shorter
content, then document id, and are truncated to the limit.

Dependencies: widgetchat.models.knowledge
System role: Ranking for the Knowledge Retriever and knowledge query API
"""

from typing import Protocol, Sequence

from widgetchat.models.knowledge import KnowledgeSnippet

RELEVANCE_SCORE = 1.0


class DocumentLike(Protocol):
    id: str
    title: str | None
    content: str
    source_url: str | None


def title_matches(query: str, title: str | None) -> bool:
    return bool(title) and query.lower() in title.lower()


def is_eligible(query: str, document: DocumentLike) -> bool:
    needle = query.lower()
    return needle in document.content.lower() or title_matches(query, document.title)


def rank_documents(
    query: str,
    documents: Sequence[DocumentLike],
    limit: int,
) -> list[DocumentLike]:
    """
    Order eligible documents and keep the first `limit`.

    Args:
        query: Search text
        documents: Candidate documents (ineligible ones are dropped)
        limit: Maximum documents to return

    Returns:
        Ranked documents
    """
    if not query or limit <= 0:
        return []
    eligible = [doc for doc in documents if is_eligible(query, doc)]
    eligible.sort(key=lambda doc: (not title_matches(query, doc.title), len(doc.content), doc.id))
    return eligible[:limit]


def to_snippet(query: str, document: DocumentLike) -> KnowledgeSnippet:
    """Convert a ranked document into a snippet; source is title, URL or id."""
    return KnowledgeSnippet(
        content=document.content,
        source=document.title or document.source_url or document.id,
        score=RELEVANCE_SCORE,
        document_id=document.id,
        title_match=title_matches(query, document.title),
    )
