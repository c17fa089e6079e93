import uuid
from typing import List, Optional
import numpy as np
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel
from memorai.models.base import TimestampMixin


def new_memory_id() -> str:
    return uuid.uuid4().hex


class Memory(TimestampMixin, table=True):
    id: str = Field(default_factory=new_memory_id, primary_key=True)

    text: str = Field(nullable=False)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    source: Optional[str] = Field(default=None, index=True)

    dims: int = Field(default=0)
    embedding: bytes = Field(nullable=False) # Store as BLOB (numpy tobytes)

    def set_vector(self, embedding: List[float]):
        """Convert list of floats to float32 bytes for storage."""
        arr = np.array(embedding, dtype=np.float32)
        self.embedding = arr.tobytes()
        self.dims = len(embedding)

    def get_vector(self) -> np.ndarray:
        """Convert bytes back to numpy array."""
        return np.frombuffer(self.embedding, dtype=np.float32)


class MemoryTag(SQLModel, table=True):
    """One row per tag occurrence; lookup index for tag-filtered listing."""
    id: Optional[int] = Field(default=None, primary_key=True)
    memory_id: str = Field(foreign_key="memory.id", index=True)
    tag: str = Field(index=True)
