"""
HTTP transport for the memory engine.

Endpoints are plain functions, so FastAPI runs each request in its worker
thread pool. Engine errors are mapped to status codes in one place.
"""
from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from memorai.errors import (
    MemoraiError,
    PersistenceError,
    UpstreamError,
    UpstreamProtocolError,
    UpstreamUnavailable,
    ValidationError,
)
from memorai.logging import bind_request_id, get_request_id, logger, request_id_ctx
from memorai.models.api import (
    ApiResponse,
    BulkCreateRequest,
    BulkResponse,
    CreateMemoryRequest,
    MemoryRead,
    ProfileResponse,
    SearchResult,
    StatsResponse,
)
from memorai.service import DEFAULT_PER_PAGE, MemoryService

ERROR_STATUS = [
    (ValidationError, 400),
    (UpstreamUnavailable, 503),
    (UpstreamError, 502),
    (UpstreamProtocolError, 502),
    (PersistenceError, 500),
]


def status_for(error: MemoraiError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def get_service(request: Request) -> MemoryService:
    """Dependency to get the MemoryService from the application state."""
    return request.app.state.memory_service


def create_app(service: MemoryService) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Shutting down, closing memory service")
        service.close()

    app = FastAPI(
        title="memorai",
        description="Local-first AI memory system with semantic search",
        lifespan=lifespan,
    )
    app.state.memory_service = service
    # Any origin may call the API
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        token = bind_request_id(request.headers.get("X-Request-ID"))
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = get_request_id()
            return response
        finally:
            request_id_ctx.reset(token)

    @app.exception_handler(MemoraiError)
    async def handle_engine_error(request: Request, exc: MemoraiError):
        status = status_for(exc)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=status,
            content=ApiResponse.failure(str(exc)).model_dump(mode="json"),
        )

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "memorai"}

    @app.post("/v1/memories", status_code=201, response_model=ApiResponse[MemoryRead])
    def create_memory(body: CreateMemoryRequest, service: MemoryService = Depends(get_service)):
        memory = service.create_memory(body.text, body.tags, body.source)
        return ApiResponse.success(memory)

    @app.get("/v1/memories", response_model=ApiResponse[List[MemoryRead]])
    def list_memories(
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
        tag: Optional[str] = None,
        source: Optional[str] = None,
        service: MemoryService = Depends(get_service),
    ):
        return ApiResponse.success(service.list_memories(page, per_page, tag=tag, source=source))

    @app.post("/v1/memories/bulk", response_model=ApiResponse[BulkResponse])
    def bulk_create(body: BulkCreateRequest, service: MemoryService = Depends(get_service)):
        return ApiResponse.success(service.bulk_create(body.memories))

    @app.delete("/v1/memories/{memory_id}", response_model=ApiResponse[str])
    def delete_memory(memory_id: str, service: MemoryService = Depends(get_service)):
        if not service.delete_memory(memory_id):
            return JSONResponse(
                status_code=404,
                content=ApiResponse.failure("Memory not found").model_dump(mode="json"),
            )
        return ApiResponse.success("Memory deleted")

    @app.get("/v1/search", response_model=ApiResponse[List[SearchResult]])
    def search(
        q: str = Query(..., description="Search query"),
        limit: Optional[int] = None,
        service: MemoryService = Depends(get_service),
    ):
        return ApiResponse.success(service.search(q, limit))

    @app.get("/v1/stats", response_model=ApiResponse[StatsResponse])
    def stats(service: MemoryService = Depends(get_service)):
        return ApiResponse.success(service.stats())

    @app.get("/v1/profile", response_model=ApiResponse[ProfileResponse])
    def profile(service: MemoryService = Depends(get_service)):
        return ApiResponse.success(service.profile())

    return app
