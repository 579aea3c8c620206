import server


def test_reload_skips_when_mtime_unchanged(monkeypatch):
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "data_file_mtime", lambda _path: 100.0)

    called = {"count": 0}

    def fake_load_data(_path):
        called["count"] += 1
        return {}

    monkeypatch.setattr(server, "load_data", fake_load_data)

    changed = server._reload_data_if_changed()
    assert changed is False
    assert called["count"] == 0


def test_reload_swaps_runtime_data_when_mtime_advances(monkeypatch):
    old_data = {"course_count": 1, "programs": [("OLD", "2000")]}
    new_data = {"course_count": 2, "programs": [("NEW", "2024")]}

    monkeypatch.setattr(server, "_data", old_data, raising=False)
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "data_file_mtime", lambda _path: 200.0)
    monkeypatch.setattr(server, "load_data", lambda _path: new_data)

    server._projection_cache.put("stale", {"v": 1})
    changed = server._reload_data_if_changed()
    assert changed is True
    assert server._data is new_data
    assert server._data_mtime == 200.0
    assert server._projection_cache.get("stale") is None


def test_reload_failure_keeps_previous_data(monkeypatch):
    old_data = {"course_count": 1, "programs": [("OLD", "2000")]}

    monkeypatch.setattr(server, "_data", old_data, raising=False)
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "data_file_mtime", lambda _path: 200.0)

    def boom(_path):
        raise RuntimeError("reload failed")

    monkeypatch.setattr(server, "load_data", boom)

    changed = server._reload_data_if_changed()
    assert changed is False
    assert server._data is old_data
    assert server._data_mtime == 100.0


def test_forced_reload_ignores_mtime(monkeypatch):
    new_data = {"course_count": 3, "programs": []}

    monkeypatch.setattr(server, "_data", {"course_count": 1}, raising=False)
    monkeypatch.setattr(server, "_data_mtime", 100.0, raising=False)
    monkeypatch.setattr(server, "data_file_mtime", lambda _path: 100.0)
    monkeypatch.setattr(server, "load_data", lambda _path: new_data)

    assert server._reload_data_if_changed(force=True) is True
    assert server._data is new_data
