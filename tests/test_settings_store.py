from pathlib import Path


def test_settings_defaults_load_when_missing(tmp_path: Path):
    from cargo_offload.settings import SettingsStore

    store = SettingsStore(home=tmp_path)
    data = store.load()
    assert isinstance(data, dict)
    assert data.get("schema_version") == 1
    assert data.get("host") is None
    assert data.get("max_workers") == 8


def test_settings_roundtrip_save_load(tmp_path: Path):
    from cargo_offload.settings import SettingsStore

    store = SettingsStore(home=tmp_path)
    store.save({"host": "ci@build01:2222", "target": "aarch64-unknown-linux-gnu", "future_key": 1})

    loaded = store.load()
    assert loaded["host"] == "ci@build01:2222"
    assert loaded["target"] == "aarch64-unknown-linux-gnu"
    # unknown keys survive
    assert loaded["future_key"] == 1
    assert store.get("ssh_extra_args", "x") == ""
    assert store.get("port", 22) == 22


def test_settings_corrupt_json_is_backed_up(tmp_path: Path):
    from cargo_offload.settings import SettingsStore

    store = SettingsStore(home=tmp_path)
    p = store.path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("{not valid json", encoding="utf-8")

    loaded = store.load()
    assert loaded.get("schema_version") == 1

    baks = sorted(p.parent.glob(p.name + ".bak.*"))
    assert baks, "Expected a backup to be created for corrupt settings"


def test_settings_path_from_env(tmp_path: Path, monkeypatch):
    from cargo_offload.settings import SettingsStore

    monkeypatch.setenv("CARGO_OFFLOAD_SETTINGS", str(tmp_path / "ci" / "offload.json"))
    store = SettingsStore.from_env()
    assert store.path() == tmp_path / "ci" / "offload.json"
