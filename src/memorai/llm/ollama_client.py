from typing import Any, Dict, Optional, Type, TypeVar
import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError
from memorai.errors import UpstreamError, UpstreamProtocolError, UpstreamUnavailable
from memorai.logging import logger

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class OllamaGenerateResponse(BaseModel):
    response: str


class OllamaClient:
    """
    Synchronous request/response transport to an Ollama server.

    One instance is shared across request threads; httpx.Client is thread-safe
    and this class holds no per-request state. Nothing is retried.
    """

    def __init__(self, base_url: str, timeout: float = 120.0, http_client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http_client or httpx.Client(timeout=timeout)

    def post(self, path: str, payload: Dict[str, Any], response_model: Type[ResponseT], operation: str) -> ResponseT:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.post(url, json=payload)
        except httpx.TransportError as e:
            logger.error(f"Failed to connect to Ollama for {operation}: {e}")
            raise UpstreamUnavailable(f"Failed to connect to Ollama for {operation}: {e}") from e

        if response.is_error:
            logger.error(f"Ollama {operation} request failed ({response.status_code})")
            raise UpstreamError(response.status_code, response.text, operation=operation)

        try:
            return response_model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            # json decode errors are ValueError subclasses
            logger.error(f"Failed to parse Ollama {operation} response: {e}")
            raise UpstreamProtocolError(f"Failed to parse Ollama {operation} response: {e}") from e

    def close(self):
        self.http.close()


class GenerationClient:
    """Prompt in, text out, via /api/generate with streaming disabled."""

    def __init__(self, client: OllamaClient, model: str):
        self.client = client
        self.model = model

    def generate(self, prompt: str) -> str:
        result = self.client.post(
            "/api/generate",
            {"model": self.model, "prompt": prompt, "stream": False},
            OllamaGenerateResponse,
            operation="generate",
        )
        return result.response.strip()
