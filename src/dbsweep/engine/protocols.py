# src/dbsweep/engine/protocols.py
from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class Configurable(Protocol):
    """Something with an externally visible configuration."""

    def public_view(self) -> Dict[str, Any]:
        ...


@runtime_checkable
class Runnable(Protocol):
    def run(self) -> Any:
        ...
