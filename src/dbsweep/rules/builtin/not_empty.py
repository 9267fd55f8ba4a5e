# src/dbsweep/rules/builtin/not_empty.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from dbsweep.config.models import CheckSpec
from dbsweep.rules.base import RuleCheck
from dbsweep.rules.registry import register_check


@register_check("not_empty")
class NotEmptyCheck(RuleCheck):
    """Pass when `column` is neither NULL nor blank."""

    def __init__(self, spec: CheckSpec):
        super().__init__(spec)
        self.column = self._get_required_param("column", str)

    def _evaluate(self, record: Mapping[str, Any], context: Optional[Any]) -> Tuple[bool, str]:
        value = record.get(self.column)
        if value is None or not str(value).strip():
            return False, f"{self.column} is empty"
        return True, str(value)
