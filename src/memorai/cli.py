import json
import sys
import typer
from pathlib import Path
from typing import Optional
from memorai.config import settings
from memorai.errors import MemoraiError
from memorai.logging import configure_logging, logger

app = typer.Typer(no_args_is_help=True)

@app.callback()
def main():
    """
    memorai: local-first AI memory system with semantic search.
    """
    pass


def _service():
    from memorai.service import build_service
    return build_service(settings)


def _fail(message: str):
    print(f"❌ {message}")
    raise typer.Exit(code=1)


@app.command(name="doctor")
def doctor():
    """
    Check system configuration and environment health.
    """
    logger.info("Running doctor check...")

    print("\n🩺 memorai Doctor\n")

    print(f"Python: {sys.version.split()[0]}")
    print(f"Prefix: {sys.prefix}")

    print("\n[Configuration]")
    print(f"MEMORAI_OLLAMA_URL:       {settings.MEMORAI_OLLAMA_URL}")
    print(f"MEMORAI_EMBED_MODEL:      {settings.MEMORAI_EMBED_MODEL}")
    print(f"MEMORAI_CHAT_MODEL:       {settings.MEMORAI_CHAT_MODEL}")
    print(f"MEMORAI_PORT:             {settings.MEMORAI_PORT}")

    data_dir = Path(settings.MEMORAI_DATA_DIR)
    if data_dir.exists() and data_dir.is_dir():
        print(f"\n[Data Directory]          ✅ Found: {data_dir.absolute()}")
    else:
        print(f"\n[Data Directory]          ❌ Missing: {data_dir.absolute()} (run `memorai db init`)")

    print("\nDoctor check complete.")


db_app = typer.Typer(help="Database management commands.")
app.add_typer(db_app, name="db")

@db_app.command("init")
def init():
    """Initialize the database tables."""
    from memorai.db import init_db, make_engine
    try:
        init_db(make_engine(settings.MEMORAI_DATA_DIR))
        logger.info("Database initialized successfully.")
        print("✅ Database initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        _fail(f"Failed: {e}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to MEMORAI_HOST)"),
    port: Optional[int] = typer.Option(None, help="Port (defaults to MEMORAI_PORT)"),
):
    """Start the memorai API server."""
    import uvicorn
    from memorai.api import create_app

    configure_logging(settings.MEMORAI_LOG_LEVEL)
    host = host or settings.MEMORAI_HOST
    port = port or settings.MEMORAI_PORT
    logger.info(f"Listening on {host}:{port}")
    # The app closes the service on shutdown
    uvicorn.run(create_app(_service()), host=host, port=port, log_config=None)


@app.command()
def add(
    text: str = typer.Argument(..., help="The text to remember"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Source of the memory"),
):
    """Add a memory."""
    tag_list = [t.strip() for t in tags.split(",")] if tags else []

    print("Adding memory...")
    try:
        with _service() as service:
            memory = service.create_memory(text, tag_list, source)
    except MemoraiError as e:
        _fail(str(e))

    print(f"✅ Memory stored (id: {memory.id})")
    print(f"   Text: {memory.text}")
    if memory.tags:
        print(f"   Tags: {', '.join(memory.tags)}")
    if memory.source:
        print(f"   Source: {memory.source}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(5, "--limit", "-l", help="Max results"),
):
    """Search memories semantically."""
    print(f"Searching for: \"{query}\"")
    try:
        with _service() as service:
            results = service.search(query, limit)
    except MemoraiError as e:
        _fail(str(e))

    if not results:
        print("No memories found.")
        return

    print(f"\n🔍 Top {len(results)} results:\n")
    for i, result in enumerate(results, 1):
        print(f"{i}. [score: {result.score:.4f}] {result.memory.text}")
        if result.memory.tags:
            print(f"   Tags: {', '.join(result.memory.tags)}")
        print()


@app.command(name="import")
def import_memories(path: Path = typer.Argument(..., help="JSON file with a list of {text, tags, source}")):
    """Bulk import memories from a JSON file."""
    from pydantic import ValidationError
    from memorai.models.api import BulkCreateRequest

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        items = raw["memories"] if isinstance(raw, dict) else raw
        request = BulkCreateRequest(memories=items)
    except (OSError, ValueError, KeyError, ValidationError) as e:
        _fail(f"Cannot read {path}: {e}")

    with _service() as service:
        result = service.bulk_create(request.memories)
    print(f"✅ Imported {result.created} memories ({result.failed} failed)")
    for error in result.errors:
        print(f"   {error}")


@app.command()
def stats():
    """Show memory statistics."""
    try:
        with _service() as service:
            data = service.stats()
    except MemoraiError as e:
        _fail(f"Failed to get stats: {e}")

    print("📊 memorai stats\n")
    print(f"Total memories: {data.total_memories}")

    if data.top_tags:
        print("\nTop tags:")
        for t in data.top_tags[:10]:
            print(f"  {t.tag} ({t.count})")

    if data.top_sources:
        print("\nTop sources:")
        for s in data.top_sources[:10]:
            print(f"  {s.source} ({s.count})")


@app.command()
def profile():
    """Generate a user profile from stored memories."""
    print("Generating profile from stored memories...\n")
    try:
        with _service() as service:
            data = service.profile()
    except MemoraiError as e:
        _fail(f"Failed to generate profile: {e}")

    print(f"👤 Profile (based on {data.memory_count} memories):\n")
    print(data.profile)


if __name__ == "__main__":
    app()
