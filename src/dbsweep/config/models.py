# src/dbsweep/config/models.py
from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlparse, urlunparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SqlType = Literal["string", "int", "float", "bool", "date"]


class Parameter(BaseModel):
    """A named query parameter with its default value."""

    model_config = ConfigDict(extra="forbid")

    initial: Any = Field(None, description="Default value bound when no override is given.")
    sql_type: Optional[SqlType] = Field(None, description="Coerce values to this type before binding.")

    def coerce(self, value: Any) -> Any:
        if value is None or self.sql_type is None:
            return value
        if self.sql_type == "string":
            return str(value)
        if self.sql_type == "int":
            return int(value)
        if self.sql_type == "float":
            return float(value)
        if self.sql_type == "bool":
            if isinstance(value, str):
                return value.strip().lower() in ("true", "t", "1", "yes", "y")
            return bool(value)
        if self.sql_type == "date":
            if isinstance(value, dt.date):
                return value
            return dt.date.fromisoformat(str(value))
        return value


class QueryDefinition(BaseModel):
    """A SQL template with `:name` placeholders."""

    model_config = ConfigDict(extra="forbid")

    statement: str
    parameters: Dict[str, Parameter] = Field(default_factory=dict)
    description: Optional[str] = None


class CheckSpec(BaseModel):
    """
    Declarative definition of one rule check.

    Outcome routing:
      - process_on_success: write `on_success` to the success sink on pass
      - process_on_error:   write `on_error` to the error sink on fail
      - invert_check:       a failing raw condition counts as a pass (and
                            vice versa)
    """

    model_config = ConfigDict(extra="forbid")

    kind: str = Field(..., description="Registered check kind (e.g. path_exists).")
    counter: Optional[str] = Field(None, description="Counter key; defaults to the kind.")
    title: Optional[str] = None
    note: Optional[str] = None
    header: Optional[str] = None
    invert_check: bool = False
    process_on_success: bool = False
    process_on_error: bool = True
    success_filename: Optional[str] = None
    error_filename: Optional[str] = None
    success_description: Optional[str] = None
    error_description: Optional[str] = None
    on_success: Optional[str] = Field(None, description="Message template written on pass.")
    on_error: Optional[str] = Field(None, description="Message template written on fail.")
    params: Dict[str, Any] = Field(default_factory=dict)


class SkipCheckSpec(BaseModel):
    """Display-only fallback used when a process has no checks."""

    model_config = ConfigDict(extra="forbid")

    counter: str = "skip_check"
    title: Optional[str] = None
    note: Optional[str] = None
    record: Optional[str] = Field(None, description="Template written per location record.")


# Fields that may be shown outside the process (reports, `dbsweep config`).
PUBLIC_PROCESS_FIELDS = {
    "id",
    "display_name",
    "active",
    "title",
    "note",
    "header",
    "db_listing_query",
    "paths_listing_query",
    "entity_column",
    "entity_parameter",
    "checks",
    "skip_check",
    "dbs_override",
    "include_regex",
    "exclude_regex",
    "test_sql",
}


class ProcessConfig(BaseModel):
    """One database-set process: list databases, fan out, check locations."""

    model_config = ConfigDict(extra="forbid")

    id: str
    display_name: Optional[str] = None
    active: bool = True

    title: Optional[str] = None
    note: Optional[str] = None
    header: Optional[str] = None

    db_listing_query: str
    db_listing_parameters: Dict[str, Any] = Field(default_factory=dict)
    entity_column: str = "name"

    paths_listing_query: Optional[str] = None
    path_listing_parameters: Dict[str, Any] = Field(default_factory=dict)
    entity_parameter: str = "db"

    checks: Optional[List[CheckSpec]] = None
    skip_check: Optional[SkipCheckSpec] = None

    dbs_override: Optional[List[str]] = None
    include_regex: Optional[str] = None
    exclude_regex: Optional[str] = None
    test_sql: bool = False

    @field_validator("include_regex", "exclude_regex")
    @classmethod
    def _compile_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid regex '{v}': {e}") from e
        return v

    @property
    def name(self) -> str:
        return self.display_name or self.id

    @property
    def has_checks(self) -> bool:
        return bool(self.checks)

    def public_view(self) -> Dict[str, Any]:
        """Externally visible projection (no query parameter values)."""
        return self.model_dump(include=PUBLIC_PROCESS_FIELDS, exclude_none=True)


class SweepConfig(BaseModel):
    """Top-level run configuration (one YAML file)."""

    model_config = ConfigDict(extra="forbid")

    name: str = "dbsweep"
    metastore: str = Field(..., description="Metastore URI (postgres://..., duckdb:///...).")
    filesystem: str = Field("file:///", description="Filesystem root for location checks.")
    output_dir: str = "./dbsweep-reports"
    parallelism: int = Field(4, ge=1)

    queries: Dict[str, QueryDefinition] = Field(default_factory=dict)
    processes: List[ProcessConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> "SweepConfig":
        seen = set()
        for p in self.processes:
            if p.id in seen:
                raise ValueError(f"Duplicate process id '{p.id}'")
            seen.add(p.id)
            refs = [p.db_listing_query] + ([p.paths_listing_query] if p.paths_listing_query else [])
            for ref in refs:
                if ref not in self.queries:
                    raise ValueError(f"Process '{p.id}' references unknown query '{ref}'")
        return self

    def public_view(self) -> Dict[str, Any]:
        """Serializable view with metastore credentials masked."""
        return {
            "name": self.name,
            "metastore": mask_uri(self.metastore),
            "filesystem": self.filesystem,
            "output_dir": self.output_dir,
            "parallelism": self.parallelism,
            "queries": sorted(self.queries),
            "processes": [p.public_view() for p in self.processes],
        }


def mask_uri(uri: str) -> str:
    parsed = urlparse(uri)
    if not parsed.password:
        return uri
    netloc = parsed.netloc.replace(f":{parsed.password}@", ":***@")
    return urlunparse(parsed._replace(netloc=netloc))
