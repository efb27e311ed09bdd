from __future__ import annotations

import pytest

from mapred_verify.bench.errors import SetupError
from mapred_verify.store.factory import StoreFactory, load_backend_settings


def test_node_from_env(monkeypatch):
    monkeypatch.setenv("MRV_NODE", "127.0.0.1:8098")
    monkeypatch.setenv("MRV_HTTP_TIMEOUT_SECONDS", "5")
    monkeypatch.delenv("MRV_BACKENDS_FILE", raising=False)
    built = StoreFactory().build()
    try:
        assert built["node"] == "http://127.0.0.1:8098"
        assert built["client"].timeout == 5.0
    finally:
        built["client"].close()


def test_cli_node_wins_and_backends_load(monkeypatch, tmp_path):
    monkeypatch.setenv("MRV_NODE", "http://ignored:1")
    settings = tmp_path / "backends.yml"
    settings.write_text("default: bc\nbackends:\n  bc: bitcask\n  lvl: leveldb\n", encoding="utf-8")
    built = StoreFactory().build("http://store:8098", str(settings))
    try:
        client = built["client"]
        assert client.base_url == "http://store:8098"
        assert client.backends == {"bc": "bitcask", "lvl": "leveldb"}
        assert client.default_backend == "bc"
    finally:
        built["client"].close()


def test_no_node(monkeypatch):
    monkeypatch.delenv("MRV_NODE", raising=False)
    with pytest.raises(SetupError):
        StoreFactory().build()


def test_bad_settings(tmp_path):
    with pytest.raises(SetupError):
        load_backend_settings(str(tmp_path / "nope.yml"))
    p = tmp_path / "list.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(SetupError, match="mapping"):
        load_backend_settings(str(p))
