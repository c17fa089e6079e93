from pathlib import Path
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine
from memorai.logging import logger

DB_NAME = "memorai.db"

def db_url(data_dir: Path) -> str:
    return f"sqlite:///{Path(data_dir) / DB_NAME}"

def make_engine(data_dir: Path) -> Engine:
    """Create the SQLite engine for the given data directory.

    The engine is shared by every request thread, so SQLite's same-thread
    check is disabled; SQLite's own locking serialises writers.
    """
    data_dir = Path(data_dir)
    if not data_dir.exists():
        data_dir.mkdir(parents=True, exist_ok=True)

    return create_engine(
        db_url(data_dir),
        echo=False,
        connect_args={"check_same_thread": False},
    )

def init_db(engine: Engine):
    # Import models here so SQLModel knows about them
    # This is critical for create_all to work
    from memorai.models import memory  # noqa: F401

    logger.info(f"Initializing database at {engine.url}")
    SQLModel.metadata.create_all(engine)
