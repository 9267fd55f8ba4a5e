# src/dbsweep/config/settings.py
"""
Effective configuration: file < environment < CLI.

Environment:
  - DBSWEEP_METASTORE:   metastore URI
  - DBSWEEP_FILESYSTEM:  filesystem root URI
  - DBSWEEP_OUTPUT_DIR:  report directory
  - DBSWEEP_PARALLELISM: worker pool size

Run-level selections (database override list, include/exclude regex,
test-sql) apply to every process in the file.
"""

from __future__ import annotations

import datetime as dt
import os
import re
from typing import Any, Dict, List, Mapping, Optional

from dbsweep.config.models import SweepConfig
from dbsweep.errors import ConfigError

_ENV_FIELDS = {
    "metastore": "DBSWEEP_METASTORE",
    "filesystem": "DBSWEEP_FILESYSTEM",
    "output_dir": "DBSWEEP_OUTPUT_DIR",
    "parallelism": "DBSWEEP_PARALLELISM",
}

_PROCESS_OVERRIDES = ("dbs_override", "include_regex", "exclude_regex", "test_sql")


def resolve_effective_config(
    config: SweepConfig,
    cli_overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SweepConfig:
    """
    Layer environment variables and CLI options over a loaded config.

    None-valued CLI options are ignored (not given on the command line).
    """
    env = os.environ if environ is None else environ
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    top: Dict[str, Any] = {}
    for field, var in _ENV_FIELDS.items():
        if env.get(var):
            top[field] = env[var]
    for field in _ENV_FIELDS:
        if field in cli:
            top[field] = cli[field]

    if "parallelism" in top:
        try:
            top["parallelism"] = int(top["parallelism"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"parallelism must be an integer, got {top['parallelism']!r}") from e
        if top["parallelism"] < 1:
            raise ConfigError("parallelism must be >= 1")

    per_process = {k: cli[k] for k in _PROCESS_OVERRIDES if k in cli and cli[k] not in ([], "")}
    if "dbs_override" in per_process:
        per_process["dbs_override"] = list(per_process["dbs_override"])
    for key in ("include_regex", "exclude_regex"):
        if key in per_process:
            _check_regex(per_process[key], key)

    processes = [p.model_copy(update=per_process) for p in config.processes]
    only: Optional[List[str]] = cli.get("processes")
    if only:
        unknown = set(only) - {p.id for p in processes}
        if unknown:
            raise ConfigError(f"Unknown process id(s): {', '.join(sorted(unknown))}")
        processes = [p for p in processes if p.id in only]

    return config.model_copy(update={**top, "processes": processes})


def _check_regex(pattern: str, label: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid {label.replace('_', ' ')} '{pattern}': {e}") from e


_VAR = re.compile(r"\$\{([^}]+)\}")


def substitute_variables(text: Optional[str], now: Optional[dt.datetime] = None) -> Optional[str]:
    """
    Expand ${...} variables in report text.

      ${date}       2026-10-18
      ${time}       13:45:02
      ${timestamp}  2026-10-18 13:45:02
      ${env:NAME}   value of environment variable NAME ("" if unset)

    Unknown variables are left as-is.
    """
    if text is None:
        return None
    moment = now or dt.datetime.now()

    def _sub(m: re.Match) -> str:
        var = m.group(1).strip()
        if var == "date":
            return moment.strftime("%Y-%m-%d")
        if var == "time":
            return moment.strftime("%H:%M:%S")
        if var == "timestamp":
            return moment.strftime("%Y-%m-%d %H:%M:%S")
        if var.startswith("env:"):
            return os.getenv(var[4:], "")
        return m.group(0)

    return _VAR.sub(_sub, text)
