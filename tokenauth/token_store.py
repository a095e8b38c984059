from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path


class CredentialStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryCredentialStore(CredentialStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)


class FileCredentialStore(CredentialStore):
    def __init__(self, path: str | Path = ".tokens.json") -> None:
        self._path = Path(path)

    async def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    async def set(self, key: str, value: str) -> None:
        all_values = self._read_all()
        all_values[key] = value
        self._write_all(all_values)

    async def delete(self, key: str) -> None:
        all_values = self._read_all()
        all_values.pop(key, None)
        self._write_all(all_values)

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}

        text = self._path.read_text(encoding="utf-8")
        if not text.strip():
            return {}

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as error:
            raise RuntimeError(f"Invalid JSON in credential store file: {self._path}") from error
        if not isinstance(raw, dict):
            raise RuntimeError("Credential store file is invalid; expected top-level JSON object.")

        credentials: dict[str, str] = {}
        for key, value in raw.items():
            if not isinstance(value, str):
                raise RuntimeError(f"Credential store entry {key!r} must be a string.")
            credentials[key] = value
        return credentials

    def _write_all(self, credentials: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staged = self._path.with_name(f"{self._path.name}.tmp")
        try:
            staged.write_text(json.dumps(credentials, indent=2, sort_keys=True), encoding="utf-8")
            staged.replace(self._path)
        finally:
            staged.unlink(missing_ok=True)
