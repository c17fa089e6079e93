from typing import List
from pydantic import BaseModel
from memorai.errors import UpstreamProtocolError
from memorai.llm.ollama_client import OllamaClient
from memorai.logging import logger


class OllamaEmbedResponse(BaseModel):
    embeddings: List[List[float]]


class EmbeddingClient:
    """
    Text to vector via the Ollama /api/embed endpoint.

    Callers must reject empty text before calling. Every call hits the
    service; identical text is re-embedded.
    """

    def __init__(self, client: OllamaClient, model: str):
        self.client = client
        self.model = model

    def embed(self, text: str) -> List[float]:
        """Get the embedding for a single string."""
        result = self.client.post(
            "/api/embed",
            {"model": self.model, "input": text},
            OllamaEmbedResponse,
            operation="embedding",
        )
        if not result.embeddings:
            logger.error(f"No embedding returned from Ollama (model={self.model})")
            raise UpstreamProtocolError("No embedding returned from Ollama")
        return result.embeddings[0]
