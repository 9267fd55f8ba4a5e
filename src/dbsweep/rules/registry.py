# src/dbsweep/rules/registry.py
from __future__ import annotations

from typing import Callable, Dict, List, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from dbsweep.rules.base import RuleCheck

# Registry: check kind -> RuleCheck subclass
_CHECKS: Dict[str, Type["RuleCheck"]] = {}


def register_check(kind: str) -> Callable[[Type["RuleCheck"]], Type["RuleCheck"]]:
    """Decorator to register a RuleCheck class under a stable kind name."""

    def deco(cls: Type["RuleCheck"]) -> Type["RuleCheck"]:
        if kind in _CHECKS and _CHECKS[kind] is not cls:
            raise ValueError(f"Check kind '{kind}' is already registered.")
        _CHECKS[kind] = cls
        cls.kind = kind
        return cls

    return deco


def get_check(kind: str) -> Type["RuleCheck"]:
    register_default_checks()
    return _CHECKS[kind]


def available_checks() -> List[str]:
    register_default_checks()
    return sorted(_CHECKS)


def register_default_checks() -> None:
    """Import built-in checks so their @register_check decorators run."""
    import dbsweep.rules.builtin  # noqa: F401
