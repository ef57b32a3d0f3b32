"""Key-value persistence for whole-ledger snapshots."""

from __future__ import annotations
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from trading_agent.core.errors import PersistenceError

logger = logging.getLogger("trading_agent.ledger.store")


class StateStore(Protocol):
    def load(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def save(self, key: str, data: Dict[str, Any]) -> None:
        ...


class MemoryStore:
    """In-process store; keeps JSON-encoded copies so callers cannot alias state."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def save(self, key: str, data: Dict[str, Any]) -> None:
        self._data[key] = json.dumps(data)


class JsonFileStore:
    """One <key>.json file per key under `directory`. Writes are atomic."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"cannot read {path}: {e}") from e

    def save(self, key: str, data: Dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, path)
        except OSError as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise PersistenceError(f"cannot write {path}: {e}") from e
        logger.debug("Saved state %s", path)
