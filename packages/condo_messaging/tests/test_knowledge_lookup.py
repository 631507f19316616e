"""
Tests for knowledge lookup and embedding backfill.
"""

import asyncio
from uuid import uuid4

import pytest

from condo_messaging.knowledge import KnowledgeLookup, backfill_embeddings
from condo_messaging.knowledge.lookup import keyword_terms
from condo_messaging.persistence.models import KnowledgeEntry
from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.providers.base import ProviderError
from condo_messaging.providers.stub import StubEmbeddingProvider


class SemanticRepo(CondoRepository):
    """Repository whose vector search returns canned rows (SQLite has no pgvector)."""

    def __init__(self, db, rows):
        super().__init__(db)
        self.rows = rows
        self.keyword_calls = 0

    def match_knowledge(self, tenant_id, embedding, threshold, count):
        return [(entry, score) for entry, score in self.rows if score > threshold][:count]

    def search_knowledge_keywords(self, tenant_id, terms, count):
        self.keyword_calls += 1
        return super().search_knowledge_keywords(tenant_id, terms, count)


class TestKeywordTerms:
    def test_short_query_kept_whole(self):
        terms = keyword_terms("Horario de la piscina")
        assert terms[0] == "horario de la piscina"
        assert "piscina" in terms
        assert "horario" in terms

    def test_short_words_and_stopwords_dropped(self):
        terms = keyword_terms("hola, tengo una pregunta sobre el gimnasio por favor")
        assert "hola" not in terms
        assert "tengo" not in terms
        assert "una" not in terms
        assert "gimnasio" in terms

    def test_empty(self):
        assert keyword_terms("   ") == []

    def test_capped(self):
        query = " ".join(f"palabra{i}" for i in range(20))
        assert len(keyword_terms(query)) == 8


class TestKeywordSearch:
    """Tests for the keyword fallback against the database."""

    def test_matches_active_entries_only(self, db, building, knowledge):
        """Test inactive entries never match."""
        lookup = KnowledgeLookup(CondoRepository(db))
        snippets = asyncio.run(lookup.search("piscina", building.id))
        assert [s.answer for s in snippets] == ["La piscina abre de 8am a 8pm."]
        assert snippets[0].similarity is None

    def test_matches_keywords_column(self, db, building, knowledge):
        lookup = KnowledgeLookup(CondoRepository(db))
        snippets = asyncio.run(lookup.search("estacionamiento", building.id))
        assert [s.category for s in snippets] == ["parking"]

    def test_ordered_by_priority(self, db, building, knowledge):
        """Test higher-priority entries come first."""
        lookup = KnowledgeLookup(CondoRepository(db))
        snippets = asyncio.run(lookup.search("piscina visitas", building.id))
        assert [s.category for s in snippets] == ["amenities", "parking"]

    def test_respects_count(self, db, building, knowledge):
        lookup = KnowledgeLookup(CondoRepository(db), count=1)
        snippets = asyncio.run(lookup.search("piscina visitas", building.id))
        assert len(snippets) == 1

    def test_tenant_scoped(self, db, building, knowledge):
        """Test another tenant's knowledge is never returned."""
        lookup = KnowledgeLookup(CondoRepository(db))
        assert asyncio.run(lookup.search("piscina", uuid4())) == []

    def test_empty_query(self, db, building, knowledge):
        lookup = KnowledgeLookup(CondoRepository(db))
        assert asyncio.run(lookup.search("", building.id)) == []


class TestSemanticSearch:
    """Tests for the embedding-first path."""

    def test_semantic_results_win(self, db, building, knowledge):
        """Test semantic matches above the threshold skip the keyword search."""
        repo = SemanticRepo(db, [(knowledge[1], 0.82), (knowledge[0], 0.31)])
        embedder = StubEmbeddingProvider(vector=[0.1] * 1536)
        lookup = KnowledgeLookup(repo, embedder=embedder, threshold=0.5)

        snippets = asyncio.run(lookup.search("where do guests park", building.id))

        assert [s.category for s in snippets] == ["parking"]
        assert snippets[0].similarity == pytest.approx(0.82)
        assert embedder.calls == ["where do guests park"]
        assert repo.keyword_calls == 0

    def test_nothing_above_threshold_uses_keywords(self, db, building, knowledge):
        repo = SemanticRepo(db, [(knowledge[1], 0.2)])
        lookup = KnowledgeLookup(repo, embedder=StubEmbeddingProvider(), threshold=0.5)

        snippets = asyncio.run(lookup.search("piscina", building.id))

        assert [s.category for s in snippets] == ["amenities"]
        assert repo.keyword_calls == 1

    def test_embedding_failure_uses_keywords(self, db, building, knowledge):
        """Test a failing embedding provider degrades to keyword search."""
        repo = SemanticRepo(db, [(knowledge[1], 0.9)])
        embedder = StubEmbeddingProvider(error=ProviderError("quota exceeded", code="429"))
        lookup = KnowledgeLookup(repo, embedder=embedder)

        snippets = asyncio.run(lookup.search("piscina", building.id))

        assert [s.category for s in snippets] == ["amenities"]
        assert repo.keyword_calls == 1

    def test_vector_query_failure_uses_keywords(self, db, building, knowledge):
        """Test a failing similarity query is rolled back and keyword search still runs."""
        lookup = KnowledgeLookup(CondoRepository(db), embedder=StubEmbeddingProvider())

        snippets = asyncio.run(lookup.search("piscina", building.id))

        assert [s.category for s in snippets] == ["amenities"]


class TestBackfillEmbeddings:
    def test_embeds_active_entries_without_embedding(self, db, building, knowledge):
        repo = CondoRepository(db)
        embedder = StubEmbeddingProvider(vector=[0.5] * 1536)

        embedded, failed = asyncio.run(backfill_embeddings(repo, embedder, building.id))

        assert (embedded, failed) == (2, 0)
        assert len(embedder.calls) == 2
        assert "¿A qué hora abre la piscina?\nLa piscina abre de 8am a 8pm." in embedder.calls
        assert repo.get_entries_without_embedding(building.id) == []

    def test_counts_failures(self, db, building, knowledge):
        repo = CondoRepository(db)
        embedder = StubEmbeddingProvider(error=ProviderError("down"))

        embedded, failed = asyncio.run(backfill_embeddings(repo, embedder, building.id))

        assert (embedded, failed) == (0, 2)
        inactive = db.query(KnowledgeEntry).filter(KnowledgeEntry.is_active == False).one()  # noqa: E712
        assert inactive.embedding is None
