# src/dbsweep/rules/factory.py
from __future__ import annotations

from typing import Dict, List, Optional

from dbsweep.config.models import CheckSpec
from dbsweep.engine.counters import TaskState
from dbsweep.errors import ConfigError
from dbsweep.rules.base import RuleCheck
from dbsweep.rules.registry import available_checks, get_check

RESERVED_COUNTERS = frozenset(s.value for s in TaskState)
_OUTCOME_SUFFIXES = (".success", ".error")


class CheckFactory:
    """
    Translate CheckSpec objects into RuleCheck instances.

    Responsibilities:
      - Resolve the check class from the registry
      - Instantiate it (constructors validate their own params)
      - Keep counter keys unique within a process and clear of lifecycle keys
    """

    def __init__(self, specs: Optional[List[CheckSpec]]):
        self.specs = specs or []

    def build_checks(self) -> Optional[List[RuleCheck]]:
        """None when no checks are configured (the skip path)."""
        if not self.specs:
            return None

        checks: List[RuleCheck] = []
        counters: Dict[str, int] = {}

        for spec in self.specs:
            try:
                cls = get_check(spec.kind)
            except KeyError as e:
                raise ConfigError(
                    f"Unknown check kind '{spec.kind}'. Available: {', '.join(available_checks())}"
                ) from e

            try:
                check = cls(spec)
            except ValueError as e:
                raise ConfigError(str(e)) from e

            if check.counter in RESERVED_COUNTERS or check.counter.endswith(_OUTCOME_SUFFIXES):
                raise ConfigError(
                    f"Check counter '{check.counter}' is reserved; "
                    f"avoid {', '.join(sorted(RESERVED_COUNTERS))} and names ending in .success or .error"
                )

            # same kind twice without explicit counters → kind, kind#2, ...
            seen = counters.get(check.counter, 0)
            counters[check.counter] = seen + 1
            if seen:
                if spec.counter:
                    raise ConfigError(f"Duplicate check counter '{spec.counter}'")
                check.counter = f"{check.counter}#{seen + 1}"

            checks.append(check)

        return checks

