# src/dbsweep/rules/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

from dbsweep.config.models import CheckSpec, SkipCheckSpec

if TYPE_CHECKING:
    from dbsweep.connectors.filesystem import ResourceContext
    from dbsweep.engine.sinks import Sink


DEFAULT_SUCCESS_TEMPLATE = "{entity}\t{detail}"
DEFAULT_ERROR_TEMPLATE = "{entity}\t{detail}"


class _Fields(dict):
    """format_map() mapping that leaves unknown placeholders untouched."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_template(template: str, fields: Mapping[str, Any]) -> str:
    return template.format_map(_Fields({k: ("" if v is None else v) for k, v in fields.items()}))


@dataclass(frozen=True)
class CheckOutcome:
    """
    Result of one check against one location record.

    `raw_passed` is what the condition said; `passed` has inversion applied.
    A check that could not run at all has `error` set and never passes.
    """

    passed: bool
    raw_passed: bool
    message: str = ""
    error: Optional[str] = None


class RuleCheck(ABC):
    """
    Abstract base class for all rule checks.

    Subclasses implement `_evaluate(record, context)` returning
    (raw_passed, detail). Inversion, message templates and
    sink handles live here.
    """

    kind: str = ""

    def __init__(self, spec: CheckSpec):
        self.spec = spec
        self.params: Dict[str, Any] = dict(spec.params or {})
        self.counter: str = spec.counter or spec.kind
        # resolved by the dispatcher before any task runs
        self.success_sink: Optional["Sink"] = None
        self.error_sink: Optional["Sink"] = None

    def __str__(self) -> str:
        return f"{self.spec.kind}({self.params})"

    def __repr__(self) -> str:
        return str(self)

    # ---- display / routing -------------------------------------------------

    @property
    def title(self) -> Optional[str]:
        return self.spec.title

    @property
    def note(self) -> Optional[str]:
        return self.spec.note

    @property
    def header(self) -> Optional[str]:
        return self.spec.header

    @property
    def invert_check(self) -> bool:
        return self.spec.invert_check

    @property
    def process_on_success(self) -> bool:
        return self.spec.process_on_success

    @property
    def process_on_error(self) -> bool:
        return self.spec.process_on_error

    @property
    def success_filename(self) -> Optional[str]:
        return self.spec.success_filename

    @property
    def error_filename(self) -> Optional[str]:
        return self.spec.error_filename

    # ---- evaluation ----------------------------------------------------------

    @abstractmethod
    def _evaluate(
        self, record: Mapping[str, Any], context: Optional["ResourceContext"]
    ) -> Tuple[bool, str]:
        """Return (raw_passed, detail) for one location record."""
        ...

    def evaluate(self, record: Mapping[str, Any], context: Optional["ResourceContext"]) -> CheckOutcome:
        try:
            raw, detail = self._evaluate(record, context)
        except Exception as e:
            return CheckOutcome(passed=False, raw_passed=False, message=str(e), error=repr(e))
        raw = bool(raw)
        return CheckOutcome(passed=raw != self.invert_check, raw_passed=raw, message=detail)

    def message(self, outcome: CheckOutcome, record: Mapping[str, Any], entity: str) -> str:
        if outcome.passed:
            template = self.spec.on_success or DEFAULT_SUCCESS_TEMPLATE
        else:
            template = self.spec.on_error or DEFAULT_ERROR_TEMPLATE
        fields = {**record, "entity": entity, "check": self.counter, "detail": outcome.message}
        return render_template(template, fields)

    # ---- params --------------------------------------------------------------

    def _get_required_param(self, key: str, param_type: type = str) -> Any:
        """
        Get a required parameter, raising a clear error if missing or wrong type.

        Raises:
            ValueError: If parameter is missing or has wrong type
        """
        if key not in self.params:
            raise ValueError(
                f"Check '{self.spec.kind}' requires parameter '{key}' but it was not provided"
            )
        value = self.params[key]
        if not isinstance(value, param_type):
            raise ValueError(
                f"Check '{self.spec.kind}' parameter '{key}' must be {param_type.__name__}, "
                f"got {type(value).__name__}"
            )
        return value

    def _get_optional_param(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)


class SkipCommandCheck:
    """
    Stand-in used when a process has no checks: it carries display text and
    sinks only, and echoes location records instead of judging them.
    """

    def __init__(self, spec: SkipCheckSpec):
        self.spec = spec
        self.counter = spec.counter
        self.success_sink: Optional["Sink"] = None
        self.error_sink: Optional["Sink"] = None

    @property
    def title(self) -> Optional[str]:
        return self.spec.title

    @property
    def note(self) -> Optional[str]:
        return self.spec.note

    def record_line(self, record: Mapping[str, Any], entity: str) -> Optional[str]:
        if not self.spec.record:
            return None
        return render_template(self.spec.record, {**record, "entity": entity})
