"""
Request and response shapes shared by the service layer and the transports.

These are plain pydantic models; none of them are persisted.
"""
from datetime import datetime
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field
from memorai.models.memory import Memory

T = TypeVar("T")


class CreateMemoryRequest(BaseModel):
    text: str
    tags: List[str] = Field(default_factory=list)
    source: Optional[str] = None


class BulkCreateRequest(BaseModel):
    memories: List[CreateMemoryRequest]


class MemoryRead(BaseModel):
    id: str
    text: str
    tags: List[str]
    source: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_memory(cls, memory: Memory) -> "MemoryRead":
        return cls(
            id=memory.id,
            text=memory.text,
            tags=list(memory.tags or []),
            source=memory.source,
            created_at=memory.created_at,
            updated_at=memory.updated_at,
        )


class SearchResult(BaseModel):
    memory: MemoryRead
    score: float


class TagCount(BaseModel):
    tag: str
    count: int


class SourceCount(BaseModel):
    source: str
    count: int


class StatsResponse(BaseModel):
    total_memories: int
    top_tags: List[TagCount]
    top_sources: List[SourceCount]


class ProfileResponse(BaseModel):
    profile: str
    memory_count: int


class BulkResponse(BaseModel):
    created: int
    failed: int
    errors: List[str]


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for every HTTP response body."""
    ok: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, data: T) -> "ApiResponse[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, message: str) -> "ApiResponse[T]":
        return cls(ok=False, error=message)
