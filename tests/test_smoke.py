import json
import logging
import os
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
from typer.testing import CliRunner
from memorai.config import Settings
from memorai.cli import app
from memorai.errors import UpstreamUnavailable
from memorai.logging import RequestContextFilter, bind_request_id, request_id_ctx
from memorai.models.api import (
    BulkResponse, MemoryRead, ProfileResponse, SearchResult, SourceCount, StatsResponse, TagCount,
)

runner = CliRunner()

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_settings_defaults():
    settings = Settings()
    assert settings.MEMORAI_PORT == 8484
    assert settings.MEMORAI_EMBED_MODEL == "mxbai-embed-large"
    assert settings.MEMORAI_OLLAMA_URL == "http://localhost:11434"

def test_settings_from_env():
    os.environ["MEMORAI_PORT"] = "9999"
    os.environ["MEMORAI_CHAT_MODEL"] = "llama3"
    try:
        settings = Settings()
        assert settings.MEMORAI_PORT == 9999
        assert settings.MEMORAI_CHAT_MODEL == "llama3"
    finally:
        del os.environ["MEMORAI_PORT"]
        del os.environ["MEMORAI_CHAT_MODEL"]

def test_cli_doctor(tmp_path):
    with patch("memorai.cli.settings") as mock_settings:
        mock_settings.MEMORAI_LOG_LEVEL = "INFO"
        mock_settings.MEMORAI_OLLAMA_URL = "http://localhost:11434"
        mock_settings.MEMORAI_DATA_DIR = tmp_path

        result = runner.invoke(app, ["doctor"])
        assert result.exit_code == 0
        assert "memorai Doctor" in result.stdout
        assert "✅ Found" in result.stdout


@pytest.fixture
def service():
    svc = MagicMock()
    svc.__enter__.return_value = svc
    with patch("memorai.cli._service", return_value=svc):
        yield svc


def test_cli_add(service):
    service.create_memory.return_value = MemoryRead(
        id="abc", text="Likes tea", tags=["drinks", "home"], source="cli",
        created_at=NOW, updated_at=NOW,
    )
    result = runner.invoke(app, ["add", "Likes tea", "--tags", "drinks, home", "--source", "cli"])
    assert result.exit_code == 0
    assert "Memory stored (id: abc)" in result.stdout
    assert "Tags: drinks, home" in result.stdout
    service.create_memory.assert_called_once_with("Likes tea", ["drinks", "home"], "cli")

def test_cli_add_failure(service):
    service.create_memory.side_effect = UpstreamUnavailable("Failed to connect to Ollama for embedding")
    result = runner.invoke(app, ["add", "Likes tea"])
    assert result.exit_code == 1
    assert "❌ Failed to connect to Ollama" in result.stdout

def test_cli_search(service):
    memory = MemoryRead(id="abc", text="Likes tea", tags=[], created_at=NOW, updated_at=NOW)
    service.search.return_value = [SearchResult(memory=memory, score=0.8123)]

    result = runner.invoke(app, ["search", "tea", "--limit", "3"])
    assert result.exit_code == 0
    assert "1. [score: 0.8123] Likes tea" in result.stdout
    service.search.assert_called_once_with("tea", 3)

def test_cli_search_empty(service):
    service.search.return_value = []
    result = runner.invoke(app, ["search", "tea"])
    assert "No memories found." in result.stdout

def test_cli_stats(service):
    service.stats.return_value = StatsResponse(
        total_memories=2,
        top_tags=[TagCount(tag="work", count=2)],
        top_sources=[SourceCount(source="slack", count=1)],
    )
    result = runner.invoke(app, ["stats"])
    assert result.exit_code == 0
    assert "Total memories: 2" in result.stdout
    assert "work (2)" in result.stdout
    assert "slack (1)" in result.stdout

def test_cli_profile(service):
    service.profile.return_value = ProfileResponse(profile="A tea drinker.", memory_count=2)
    result = runner.invoke(app, ["profile"])
    assert result.exit_code == 0
    assert "based on 2 memories" in result.stdout
    assert "A tea drinker." in result.stdout

def test_cli_import(service, tmp_path):
    path = tmp_path / "memories.json"
    path.write_text(json.dumps([{"text": "a", "tags": ["x"]}, {"text": ""}]), encoding="utf-8")
    service.bulk_create.return_value = BulkResponse(created=1, failed=1, errors=["Item 1: empty text"])

    result = runner.invoke(app, ["import", str(path)])
    assert result.exit_code == 0
    assert "Imported 1 memories (1 failed)" in result.stdout
    items = service.bulk_create.call_args.args[0]
    assert [i.text for i in items] == ["a", ""]

def test_cli_import_bad_file(service, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    result = runner.invoke(app, ["import", str(path)])
    assert result.exit_code == 1
    service.bulk_create.assert_not_called()

def test_cli_closes_service_after_command(service):
    service.stats.return_value = StatsResponse(total_memories=0, top_tags=[], top_sources=[])
    runner.invoke(app, ["stats"])
    service.__exit__.assert_called_once()

def test_cli_closes_service_on_failure(service):
    service.profile.side_effect = UpstreamUnavailable("down")
    result = runner.invoke(app, ["profile"])
    assert result.exit_code == 1
    service.__exit__.assert_called_once()

def test_log_filter_stamps_request_id():
    record = logging.LogRecord("memorai", logging.INFO, __file__, 1, "hello", None, None)
    log_filter = RequestContextFilter()

    log_filter.filter(record)
    assert record.request_id == "-"

    token = bind_request_id("job-9")
    try:
        log_filter.filter(record)
        assert record.request_id == "job-9"
    finally:
        request_id_ctx.reset(token)
