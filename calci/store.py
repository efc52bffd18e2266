"""
Persistence port: a string key-value store, plus tolerant loaders for the
three values the calculator keeps between sessions and the history export.
"""

from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

log = logging.getLogger(__name__)

HISTORY_KEY = "calculatorHistory"
MEMORY_KEY = "calculatorMemory"
DARK_MODE_KEY = "calculatorDarkMode"

EXPORT_FILENAME = "calculator_history.txt"

class StoreError(Exception): pass

class KeyValueStore:
    """Interface: ``load`` returns None for absent keys, ``save`` may raise StoreError."""
    def load(self, key: str) -> Optional[str]: raise NotImplementedError
    def save(self, key: str, value: str) -> None: raise NotImplementedError

class MemoryStore(KeyValueStore):
    def __init__(self, data: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(data or {})
    def load(self, key: str) -> Optional[str]: return self.data.get(key)
    def save(self, key: str, value: str) -> None: self.data[key] = value

class JsonFileStore(KeyValueStore):
    """All keys in one JSON object on disk; written atomically via a temp file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StoreError(f"cannot read {self.path}: {exc}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"corrupt store {self.path}: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"corrupt store {self.path}: expected an object")
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def load(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def save(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StoreError:
            log.warning("discarding unreadable store %s", self.path)
            data = {}
        data[key] = value
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise StoreError(f"cannot write {self.path}: {exc}") from exc

# ============================ Tolerant loaders ==============================

def _safe_load(store: KeyValueStore, key: str) -> Optional[str]:
    try: return store.load(key)
    except StoreError as exc:
        log.warning("error loading %s: %s", key, exc); return None

def load_history(store: KeyValueStore) -> List[str]:
    raw = _safe_load(store, HISTORY_KEY)
    if raw is None: return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("malformed history in store, starting empty"); return []
    if not isinstance(data, list) or not all(isinstance(s, str) for s in data):
        log.warning("history in store is not a list of strings, starting empty"); return []
    return data

def load_memory(store: KeyValueStore) -> float:
    raw = _safe_load(store, MEMORY_KEY)
    if raw is None: return 0.0
    try:
        value = float(raw)
    except ValueError:
        log.warning("malformed memory value %r, starting at 0", raw); return 0.0
    return value if math.isfinite(value) else 0.0

def load_dark_mode(store: KeyValueStore) -> bool:
    return _safe_load(store, DARK_MODE_KEY) == "true"

def dump_history(history: Sequence[str]) -> str: return json.dumps(list(history), ensure_ascii=False)

# ============================== Export ======================================

def history_text(history: Sequence[str]) -> str: return "\n".join(history)

def export_history(history: Sequence[str], path: Union[str, Path]) -> Path:
    target = Path(path)
    target.write_text(history_text(history), encoding="utf-8")
    log.info("exported %d history line(s) to %s", len(history), target)
    return target
