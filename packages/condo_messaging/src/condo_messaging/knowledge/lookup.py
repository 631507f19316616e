"""
Knowledge Lookup

Finds building-specific Q&A entries relevant to a message. Semantic search
over stored embeddings comes first; when no embedding provider is configured,
the provider fails, or nothing clears the similarity floor, a keyword search
ordered by entry priority is used instead.
"""

import logging
import re
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.providers.base import EmbeddingProvider, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.5
DEFAULT_MATCH_COUNT = 5

_MAX_TERMS = 8
_MIN_TERM_LENGTH = 4
_STOPWORDS = {
    # es
    "para", "como", "cual", "cuando", "donde", "esta", "este", "estoy", "hola",
    "pero", "porque", "puedo", "quiero", "tengo", "tiene", "todo", "gracias",
    # en
    "about", "does", "have", "hello", "please", "thanks", "that", "there",
    "what", "when", "where", "which", "with", "would", "your",
}


@dataclass
class KnowledgeSnippet:
    question: str
    answer: str
    category: str
    similarity: float | None = None


def keyword_terms(query: str) -> list[str]:
    """
    Search terms for the keyword fallback.

    The whole (short) query plus its distinctive words, lowercased and
    de-duplicated.
    """
    text = query.strip().lower()
    if not text:
        return []

    terms: list[str] = []
    if len(text) <= 60:
        terms.append(text)
    for word in re.findall(r"\w+", text):
        if len(word) >= _MIN_TERM_LENGTH and word not in _STOPWORDS and word not in terms:
            terms.append(word)
    return terms[:_MAX_TERMS]


class KnowledgeLookup:
    """Two-tier search over a tenant's knowledge entries."""

    def __init__(
        self,
        repo: CondoRepository,
        embedder: EmbeddingProvider | None = None,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        count: int = DEFAULT_MATCH_COUNT,
    ):
        self.repo = repo
        self.embedder = embedder
        self.threshold = threshold
        self.count = count

    async def search(self, query: str, tenant_id: UUID) -> list[KnowledgeSnippet]:
        """
        Search knowledge for one tenant.

        Returns:
            At most ``count`` snippets, most relevant first. Never raises for
            provider or query failures; those degrade to fewer results.
        """
        if not query or not query.strip():
            return []

        snippets = await self._semantic_search(query, tenant_id)
        if snippets:
            return snippets

        return self._keyword_search(query, tenant_id)

    async def _semantic_search(self, query: str, tenant_id: UUID) -> list[KnowledgeSnippet]:
        if self.embedder is None:
            return []

        try:
            embedding = await self.embedder.embed(query)
        except ProviderError as e:
            logger.warning(
                f"Embedding failed, using keyword search: {e}",
                extra={"tenant_id": str(tenant_id), "code": e.code},
            )
            return []

        try:
            with self.repo.db.begin_nested():
                rows = self.repo.match_knowledge(tenant_id, embedding, self.threshold, self.count)
        except SQLAlchemyError as e:
            logger.warning(
                f"Semantic knowledge search failed, using keyword search: {e}",
                extra={"tenant_id": str(tenant_id)},
            )
            return []

        return [
            KnowledgeSnippet(
                question=entry.question,
                answer=entry.answer,
                category=entry.category,
                similarity=similarity,
            )
            for entry, similarity in rows
        ]

    def _keyword_search(self, query: str, tenant_id: UUID) -> list[KnowledgeSnippet]:
        entries = self.repo.search_knowledge_keywords(tenant_id, keyword_terms(query), self.count)
        return [
            KnowledgeSnippet(question=entry.question, answer=entry.answer, category=entry.category)
            for entry in entries
        ]


async def backfill_embeddings(
    repo: CondoRepository,
    embedder: EmbeddingProvider,
    tenant_id: UUID | None = None,
) -> tuple[int, int]:
    """
    Compute embeddings for active entries that have none.

    Returns:
        Tuple of (embedded, failed)
    """
    embedded = 0
    failed = 0
    for entry in repo.get_entries_without_embedding(tenant_id):
        try:
            entry.embedding = await embedder.embed(f"{entry.question}\n{entry.answer}")
            embedded += 1
        except ProviderError as e:
            failed += 1
            logger.error(
                f"Failed to embed knowledge entry: {e}",
                extra={"entry_id": str(entry.id), "tenant_id": str(entry.tenant_id)},
            )
    repo.db.commit()
    return embedded, failed
