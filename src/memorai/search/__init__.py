from memorai.search.embeddings import EmbeddingClient
from memorai.search.vector_search import cosine_similarity, batch_cosine_similarity, rank, Ranker

__all__ = [
    "EmbeddingClient",
    "cosine_similarity",
    "batch_cosine_similarity",
    "rank",
    "Ranker",
]
