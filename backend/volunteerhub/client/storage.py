"""Key-value storage for client-side state that must outlive a session."""

import json
from pathlib import Path
from typing import Protocol


class KeyValueStore(Protocol):
    """Async string store, the shape of a mobile device's local storage."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...


class InMemoryStore:
    """Process-local store."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self.data)


class JsonFileStore(InMemoryStore):
    """Store persisted as a single JSON object, rewritten on every change."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        initial = {}
        if self.path.exists():
            initial = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        super().__init__(initial)

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.data, indent=2, sort_keys=True), encoding="utf-8")

    async def set(self, key: str, value: str) -> None:
        await super().set(key, value)
        self._flush()

    async def remove(self, key: str) -> None:
        await super().remove(key)
        self._flush()
