# src/dbsweep/rules/builtin/regex.py
from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Tuple

from dbsweep.config.models import CheckSpec
from dbsweep.rules.base import RuleCheck
from dbsweep.rules.registry import register_check


@register_check("regex")
class RegexCheck(RuleCheck):
    """
    Pass when the value of `column` fully matches `pattern`.

    NULL never matches.
    """

    def __init__(self, spec: CheckSpec):
        super().__init__(spec)
        self.column = self._get_required_param("column", str)
        pattern = self._get_required_param("pattern", str)
        try:
            self.pattern = re.compile(pattern)
        except re.error as e:
            raise ValueError(f"Check '{spec.kind}' has an invalid pattern {pattern!r}: {e}") from e

    def _evaluate(self, record: Mapping[str, Any], context: Optional[Any]) -> Tuple[bool, str]:
        value = record.get(self.column)
        if value is None:
            return False, f"{self.column} is NULL"
        return self.pattern.fullmatch(str(value)) is not None, str(value)
