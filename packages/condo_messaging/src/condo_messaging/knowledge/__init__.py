"""
Knowledge

Tenant-scoped Q&A lookup used to ground automatic replies.
"""

from condo_messaging.knowledge.lookup import KnowledgeLookup, KnowledgeSnippet, backfill_embeddings

__all__ = ["KnowledgeLookup", "KnowledgeSnippet", "backfill_embeddings"]
