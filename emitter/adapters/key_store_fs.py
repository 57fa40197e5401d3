from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class FileSystemKeyStore:
    base_dir: str | None = None

    def load_certificate(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def load_private_key(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def _resolve(self, path: str) -> Path:
        """Resolve relative paths against `base_dir` when one is set."""
        candidate = Path(path).expanduser()
        if self.base_dir and not candidate.is_absolute():
            candidate = Path(self.base_dir) / candidate
        return candidate
