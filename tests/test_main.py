"""Tests for the command line interface."""

from pathlib import Path

import pytest
from conftest import FakeContentfulClient, FakeStore, make_entry, make_response

from redis_contentful import main
from redis_contentful.core.cache import ContentCache


@pytest.fixture
def cli_store(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FakeStore:
    """Point the CLI at an in-memory store and a scripted client."""
    store = FakeStore()
    store.configs = []
    client = FakeContentfulClient(
        make_response([make_entry("E1", "post", {"title": "Hi"})], token="t1"),
    )

    def build(config):
        store.closed = False
        store.configs.append(config)
        return ContentCache(config, store=store, client=client)

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(main, "ContentCache", build)
    return store


def test_no_command_prints_help() -> None:
    assert main.main([]) == 1


def test_missing_explicit_config(tmp_path: Path) -> None:
    assert main.main(["--config", str(tmp_path / "missing.yaml"), "status"]) == 1


def test_sync_then_get(cli_store: FakeStore) -> None:
    assert main.main(["sync"]) == 0
    assert "post::E1" in cli_store.data
    assert main.main(["get", "post", "--json"]) == 0
    assert main.main(["status"]) == 0


def test_custom_commands(cli_store: FakeStore) -> None:
    assert main.main(["custom", "set", "greeting", '{"text": "hello"}', "--expire", "30"]) == 0
    assert cli_store.set_calls[-1] == ("greeting", '{"text": "hello"}', 30)

    assert main.main(["custom", "get", "greeting"]) == 0
    assert main.main(["custom", "delete", "greeting"]) == 0
    assert main.main(["custom", "get", "greeting"]) == 1


def test_database_override(cli_store: FakeStore) -> None:
    assert main.main(["--database", "5", "custom", "set", "k", "v"]) == 0

    assert cli_store.configs[-1].redis.database == 5


def test_database_defaults_to_config(cli_store: FakeStore, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REDIS_DB", raising=False)
    assert main.main(["custom", "set", "k", "v"]) == 0

    assert cli_store.configs[-1].redis.database == 0
