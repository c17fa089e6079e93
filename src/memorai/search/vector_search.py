import numpy as np
from typing import Callable, List, Sequence
from memorai.models.api import MemoryRead, SearchResult
from memorai.models.memory import Memory
from memorai.logging import logger

# Signature shared by rank() and any indexed replacement
Ranker = Callable[[Sequence[float], Sequence[Memory], int], List[SearchResult]]

def cosine_similarity(v1, v2) -> float:
    """
    Cosine of the angle between two vectors.

    Returns exactly 0.0 when the lengths differ, either vector is empty, or
    either has zero norm.
    """
    a = np.asarray(v1, dtype=np.float32).ravel()
    b = np.asarray(v2, dtype=np.float32).ravel()
    if a.shape != b.shape or a.size == 0:
        return 0.0

    norm_product = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if norm_product == 0.0:
        return 0.0

    return float(np.dot(a, b)) / norm_product

def batch_cosine_similarity(query_vec: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Compute cosine similarity between query_vec and all rows in matrix.
    query_vec: (d,)
    matrix: (n, d)
    Returns: (n,) scores, 0.0 for zero-norm rows
    """
    norm_q = np.linalg.norm(query_vec)
    norm_m = np.linalg.norm(matrix, axis=1)

    norm_product = norm_q * norm_m
    dot_products = np.dot(matrix, query_vec)

    scores = np.zeros(matrix.shape[0], dtype=np.float64)
    nonzero = norm_product != 0
    scores[nonzero] = dot_products[nonzero] / norm_product[nonzero]
    return scores

def rank(query: Sequence[float], candidates: Sequence[Memory], k: int) -> List[SearchResult]:
    """
    Score every candidate against the query and return the top k.

    Brute force over the whole candidate set. Sorting is stable, so equal
    scores keep their input order. Candidates whose embedding length differs
    from the query score 0.0.
    """
    if k <= 0 or not candidates:
        return []

    query_vec = np.asarray(query, dtype=np.float32)
    scores = np.zeros(len(candidates), dtype=np.float64)

    # Only same-dimension vectors go into the matrix
    matching_idx = []
    matrix_list = []
    for i, memory in enumerate(candidates):
        vec = memory.get_vector()
        if query_vec.size and vec.shape[0] == query_vec.shape[0]:
            matching_idx.append(i)
            matrix_list.append(vec)

    mismatched = len(candidates) - len(matching_idx)
    if mismatched:
        logger.warning(
            f"{mismatched} of {len(candidates)} memories have an embedding dimension different "
            f"from the query ({query_vec.shape[0]}); they were scored 0.0. "
            "Re-embed them if the embedding model changed."
        )

    if matrix_list:
        matrix = np.array(matrix_list)
        scores[matching_idx] = batch_cosine_similarity(query_vec, matrix)

    order = sorted(range(len(candidates)), key=lambda i: scores[i], reverse=True)

    return [
        SearchResult(memory=MemoryRead.from_memory(candidates[i]), score=float(scores[i]))
        for i in order[:k]
    ]
