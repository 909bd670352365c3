"""
Persistent key-value storage for client-side state

Values are JSON-serializable blobs keyed by name ("cart", "currentUser",
"orders", "preferredLanguage", "credentials"). A blob that cannot be decoded is
treated as absent.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class Storage:
    """Base interface. Subclasses store raw JSON text per key."""

    def get_raw(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_raw(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def keys(self):
        raise NotImplementedError

    def get(self, key: str, default: Any = None) -> Any:
        raw = self.get_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding corrupt persisted value for %r", key)
            return default

    def set(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value))


class MemoryStorage(Storage):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_raw(self, key):
        return self._data.get(key)

    def set_raw(self, key, value):
        self._data[key] = value

    def remove(self, key):
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)


class FileStorage(Storage):
    """Keeps every key in a single JSON document on disk.

    The document is re-read on every access so several stores sharing the same
    path see each other's writes, and rewritten wholesale on every mutation.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Storage file %s is corrupt, starting empty", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s has unexpected layout, starting empty", self.path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _dump(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get_raw(self, key):
        return self._load().get(key)

    def set_raw(self, key, value):
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key):
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)

    def keys(self):
        return list(self._load())


def load_model(storage: Storage, key: str, model: Type[M]) -> Optional[M]:
    data = storage.get(key)
    if data is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError:
        logger.warning("Persisted %r does not match %s, ignoring it", key, model.__name__)
        return None


def load_model_list(storage: Storage, key: str, model: Type[M]) -> List[M]:
    data = storage.get(key)
    if not isinstance(data, list):
        if data is not None:
            logger.warning("Persisted %r is not a list, ignoring it", key)
        return []
    try:
        return [model.model_validate(d) for d in data]
    except ValidationError:
        logger.warning("Persisted %r does not match %s, ignoring it", key, model.__name__)
        return []


def dump_models(models) -> List[dict]:
    return [m.model_dump(mode="json") for m in models]
