from memorai.models.memory import Memory, MemoryTag
from memorai.models.api import (
    CreateMemoryRequest, BulkCreateRequest,
    MemoryRead, SearchResult,
    TagCount, SourceCount, StatsResponse,
    ProfileResponse, BulkResponse, ApiResponse,
)

__all__ = [
    "Memory", "MemoryTag",
    "CreateMemoryRequest", "BulkCreateRequest",
    "MemoryRead", "SearchResult",
    "TagCount", "SourceCount", "StatsResponse",
    "ProfileResponse", "BulkResponse", "ApiResponse",
]
