import os

from batchrelay.config import access
from batchrelay.config.schema import Config


def test_get_config_uses_cache_and_force_reload(monkeypatch):
    calls = {"n": 0}

    def _fake_load_config(_path=None):
        calls["n"] += 1
        cfg = Config()
        cfg.relay.first_id = 100 + calls["n"]
        return cfg

    monkeypatch.setattr(access, "load_config", _fake_load_config)
    access.clear_config_cache()

    first = access.get_config()
    second = access.get_config()
    third = access.get_config(force_reload=True)

    assert first.relay.first_id == second.relay.first_id
    assert third.relay.first_id != second.relay.first_id
    assert calls["n"] == 2


def test_clear_config_cache_for_single_path(monkeypatch, tmp_path):
    calls = {"n": 0}

    def _fake_load_config(_path=None):
        calls["n"] += 1
        return Config()

    monkeypatch.setattr(access, "load_config", _fake_load_config)
    access.clear_config_cache()

    a = tmp_path / "a.json"
    b = tmp_path / "b.json"
    access.get_config(config_path=a)
    access.get_config(config_path=b)
    access.clear_config_cache(config_path=a)
    access.get_config(config_path=a)
    access.get_config(config_path=b)
    assert calls["n"] == 3
    access.clear_config_cache()


def test_rewritten_file_is_reloaded_without_force(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"relay": {"url": "http://a.example:8545"}}', encoding="utf-8")
    access.clear_config_cache()

    first = access.get_config(config_path=path)
    assert access.get_config(config_path=path) is first

    path.write_text('{"relay": {"url": "http://b.example:8545"}}', encoding="utf-8")
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000))

    second = access.get_config(config_path=path)
    assert second is not first
    assert second.relay.url == "http://b.example:8545"
    access.clear_config_cache()


def test_file_created_after_first_lookup_is_picked_up(tmp_path):
    path = tmp_path / "config.json"
    access.clear_config_cache()

    assert access.get_config(config_path=path).relay.url == "http://localhost:8545"
    path.write_text('{"relay": {"firstId": 9}}', encoding="utf-8")
    assert access.get_config(config_path=path).relay.first_id == 9
    access.clear_config_cache()
