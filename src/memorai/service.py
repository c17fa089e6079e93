"""
Request handlers for the memory engine.

MemoryService bundles the long-lived handles (store, embedding client, profile
synthesizer, ranker). It is built once at startup and shared by every
request; it holds no per-request state.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence
from memorai.config import Settings
from memorai.db import init_db, make_engine
from memorai.errors import MemoraiError, PersistenceError, ValidationError
from memorai.llm.ollama_client import GenerationClient, OllamaClient
from memorai.models.api import (
    BulkResponse,
    CreateMemoryRequest,
    MemoryRead,
    ProfileResponse,
    SearchResult,
    SourceCount,
    StatsResponse,
    TagCount,
)
from memorai.profile import ProfileSynthesizer
from memorai.search.embeddings import EmbeddingClient
from memorai.search.vector_search import Ranker, rank
from memorai.storage.memories import PROFILE_TEXT_LIMIT, MemoryStore
from memorai.logging import logger

DEFAULT_SEARCH_LIMIT = 5
MAX_SEARCH_LIMIT = 50
DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


def _bounded(value: int, high: int, name: str) -> int:
    """Cap at `high`; 0 is allowed and yields nothing, negatives are rejected."""
    if value < 0:
        raise ValidationError(f"{name} cannot be negative")
    return min(value, high)


@dataclass(frozen=True)
class MemoryService:
    store: MemoryStore
    embeddings: EmbeddingClient
    synthesizer: ProfileSynthesizer
    ranker: Ranker = rank
    transport: Optional[OllamaClient] = None

    def close(self):
        """Release the shared HTTP connection pool and database connections."""
        if self.transport is not None:
            self.transport.close()
        self.store.engine.dispose()

    def __enter__(self) -> "MemoryService":
        return self

    def __exit__(self, *exc_info):
        self.close()

    def create_memory(
        self,
        text: str,
        tags: Optional[Sequence[str]] = None,
        source: Optional[str] = None,
    ) -> MemoryRead:
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        embedding = self.embeddings.embed(text)
        memory = self.store.create(text, list(tags or []), source, embedding)
        return MemoryRead.from_memory(memory)

    def list_memories(
        self,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
        tag: Optional[str] = None,
        source: Optional[str] = None,
    ) -> List[MemoryRead]:
        page = max(1, page)
        per_page = _bounded(per_page, MAX_PER_PAGE, "per_page")
        memories = self.store.fetch_paginated(page, per_page, tag=tag, source=source)
        return [MemoryRead.from_memory(m) for m in memories]

    def bulk_create(self, items: Iterable[CreateMemoryRequest]) -> BulkResponse:
        """
        Create each item independently.

        A failing item is recorded and skipped; the batch never aborts early.
        """
        created = 0
        failed = 0
        errors: List[str] = []

        for i, item in enumerate(items):
            if not item.text.strip():
                failed += 1
                errors.append(f"Item {i}: empty text")
                continue

            try:
                embedding = self.embeddings.embed(item.text)
            except MemoraiError as e:
                failed += 1
                errors.append(f"Item {i}: embedding failed: {e}")
                continue

            try:
                self.store.create(item.text, item.tags, item.source, embedding)
            except MemoraiError as e:
                failed += 1
                errors.append(f"Item {i}: {e}")
                continue

            created += 1

        logger.info(f"Bulk create finished: {created} created, {failed} failed")
        return BulkResponse(created=created, failed=failed, errors=errors)

    def delete_memory(self, memory_id: str) -> bool:
        """True if the memory existed and was removed, False if not found."""
        return self.store.delete(memory_id) is not None

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchResult]:
        if not query or not query.strip():
            raise ValidationError("Query cannot be empty")

        k = _bounded(DEFAULT_SEARCH_LIMIT if limit is None else limit, MAX_SEARCH_LIMIT, "limit")
        query_embedding = self.embeddings.embed(query)
        memories = self.store.fetch_all()
        return self.ranker(query_embedding, memories, k)

    def stats(self) -> StatsResponse:
        total = self.store.count()

        try:
            tags = self.store.tag_counts()
        except PersistenceError as e:
            logger.warning(f"Tag counts unavailable: {e}")
            tags = []

        try:
            sources = self.store.source_counts()
        except PersistenceError as e:
            logger.warning(f"Source counts unavailable: {e}")
            sources = []

        return StatsResponse(
            total_memories=total,
            top_tags=[TagCount(tag=tag, count=count) for tag, count in tags],
            top_sources=[SourceCount(source=source, count=count) for source, count in sources],
        )

    def profile(self) -> ProfileResponse:
        texts = self.store.all_texts(limit=PROFILE_TEXT_LIMIT)
        profile_text, count = self.synthesizer.synthesize(texts)
        return ProfileResponse(profile=profile_text, memory_count=count)


def build_service(settings: Settings) -> MemoryService:
    """Construct the shared handles from settings and initialize the schema."""
    engine = make_engine(settings.MEMORAI_DATA_DIR)
    init_db(engine)

    ollama = OllamaClient(settings.MEMORAI_OLLAMA_URL, timeout=settings.MEMORAI_REQUEST_TIMEOUT)
    return MemoryService(
        store=MemoryStore(engine),
        embeddings=EmbeddingClient(ollama, settings.MEMORAI_EMBED_MODEL),
        synthesizer=ProfileSynthesizer(GenerationClient(ollama, settings.MEMORAI_CHAT_MODEL)),
        transport=ollama,
    )
