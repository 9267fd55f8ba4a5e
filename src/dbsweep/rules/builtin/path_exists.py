# src/dbsweep/rules/builtin/path_exists.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from dbsweep.connectors.filesystem import ResourceContext
from dbsweep.errors import ResourceContextError
from dbsweep.rules.base import RuleCheck
from dbsweep.rules.registry import register_check


def _location(check: RuleCheck, record: Mapping[str, Any], context: Optional[ResourceContext]) -> str:
    if context is None:
        raise ResourceContextError(f"Check '{check.counter}' needs a filesystem context")
    column = check._get_optional_param("path_column", "path")
    value = record.get(column)
    if value is None:
        raise ValueError(f"Record has no value for '{column}'")
    return str(value)


@register_check("path_exists")
class PathExistsCheck(RuleCheck):
    """
    Pass when the record's location exists on the filesystem.

    Params:
      path_column: record field holding the location (default "path")
      directory:   when true, the location must also be a directory
    """

    def _evaluate(self, record: Mapping[str, Any], context: Optional[ResourceContext]) -> Tuple[bool, str]:
        path = _location(self, record, context)
        if self._get_optional_param("directory", False):
            return context.is_dir(path), path
        return context.exists(path), path


@register_check("path_missing")
class PathMissingCheck(PathExistsCheck):
    """Pass when the record's location does not exist."""

    def _evaluate(self, record: Mapping[str, Any], context: Optional[ResourceContext]) -> Tuple[bool, str]:
        exists, path = super()._evaluate(record, context)
        return not exists, path
