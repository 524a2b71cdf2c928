from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

LOGGER = logging.getLogger(__name__)

# Point the tool at a different settings file, e.g. per CI job:
#   export CARGO_OFFLOAD_SETTINGS=/srv/ci/offload.json
ENV_SETTINGS_PATH = "CARGO_OFFLOAD_SETTINGS"


def _offload_home() -> Path:
    return Path.home() / ".cargo_offload"


def default_settings() -> Dict[str, Any]:
    return {
        "schema_version": 1,
        "host": None,
        "port": None,
        "target": None,
        "copy_all_artifacts": False,
        "per_artifact": False,
        "max_workers": 8,
        # e.g. "-o StrictHostKeyChecking=accept-new"
        "ssh_extra_args": "",
    }


@dataclass
class SettingsStore:
    """Load/save persistent settings.

    Settings are kept as a plain dict so unknown keys written by newer versions
    survive a load/save cycle.
    """

    filename: str = "settings.json"
    home: Path = field(default_factory=_offload_home)

    @classmethod
    def from_env(cls) -> "SettingsStore":
        override = (os.environ.get(ENV_SETTINGS_PATH) or "").strip()
        if override:
            p = Path(override).expanduser()
            return cls(filename=p.name, home=p.parent)
        return cls()

    def path(self) -> Path:
        return self.home / self.filename

    def load(self) -> Dict[str, Any]:
        path = self.path()
        base = default_settings()

        if not path.exists():
            return base

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("settings root is not an object")
            merged = dict(base)
            merged.update(data)
            return merged
        except (OSError, ValueError) as e:
            LOGGER.warning("Ignoring unreadable settings file %s: %s", path, e)
            ts = time.strftime("%Y%m%d_%H%M%S")
            bak = path.with_name(f"{path.name}.bak.{ts}")
            try:
                bak.write_bytes(path.read_bytes())
            except OSError as bak_err:
                LOGGER.debug("Could not back up %s: %s", path, bak_err)
            return base

    def save(self, data: Dict[str, Any]) -> None:
        self.home.mkdir(parents=True, exist_ok=True)
        path = self.path()
        tmp = path.with_suffix(path.suffix + ".tmp")

        payload = dict(data or {})
        payload.setdefault("schema_version", 1)

        txt = json.dumps(payload, indent=2, sort_keys=True)
        tmp.write_text(txt, encoding="utf-8")
        os.replace(tmp, path)

    def get(self, key: str, default: Any = None) -> Any:
        value = self.load().get(key)
        return default if value is None else value
