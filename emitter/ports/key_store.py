from __future__ import annotations

from typing import Protocol


class KeyStore(Protocol):
    """Loads signing material; raises OSError when it cannot be read."""
    def load_certificate(self, path: str) -> bytes:
        """Return the PEM-encoded certificate stored at `path`."""
        ...

    def load_private_key(self, path: str) -> bytes:
        """Return the PEM-encoded private key stored at `path`."""
        ...
