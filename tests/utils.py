# tests/utils.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from dbsweep.config.models import SweepConfig

DATABASES = ["db1", "db2", "db3"]

QUERIES: Dict[str, Dict] = {
    "db_listing": {"statement": "SELECT name, owner FROM dbs ORDER BY name"},
    "paths_listing": {
        "statement": "SELECT db, path FROM locations WHERE db = :db ORDER BY path",
        "parameters": {"db": {"initial": None, "sql_type": "string"}},
    },
    "owned_dbs": {
        "statement": "SELECT name FROM dbs WHERE owner = :owner ORDER BY name",
        "parameters": {"owner": {"initial": "alice"}},
    },
}


def make_config(tmp_path: Path, processes: List[Dict], **extra) -> SweepConfig:
    raw = {
        "name": "test-sweep",
        "metastore": "duckdb://:memory:",
        "filesystem": tmp_path.as_uri(),
        "output_dir": str(tmp_path / "reports"),
        "parallelism": 2,
        "queries": QUERIES,
        "processes": processes,
    }
    raw.update(extra)
    return SweepConfig.model_validate(raw)


def read_lines(path: Path) -> List[str]:
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()
