# src/dbsweep/connectors/filesystem.py
"""
Per-database resource context: a filesystem handle built on pyarrow.fs.

Checks that look at locations (does the database directory exist? is it a
directory?) need a live filesystem. Each task asks the factory for its own
context before any check runs; a factory that cannot reach the filesystem
returns None, which the dispatcher escalates when checks are configured.

Supported roots are whatever `pyarrow.fs.FileSystem.from_uri` accepts:
local paths / file://, s3://, gs://, hdfs:// (with libhdfs available).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from pyarrow import fs as pafs

from dbsweep.logging import get_logger, log_exception

_logger = get_logger(__name__)


@dataclass
class ResourceContext:
    """Filesystem handle bound to one database."""

    entity: str
    filesystem: pafs.FileSystem
    root: str

    def resolve(self, path: str) -> str:
        """Strip URI schemes, and anchor relative paths at the root."""
        if "://" in path:
            parsed = urlparse(path)
            return parsed.path or "/"
        if path.startswith("/"):
            return path
        return f"{self.root.rstrip('/')}/{path}"

    def info(self, path: str) -> pafs.FileInfo:
        return self.filesystem.get_file_info(self.resolve(path))

    def exists(self, path: str) -> bool:
        return self.info(path).type != pafs.FileType.NotFound

    def is_dir(self, path: str) -> bool:
        return self.info(path).type == pafs.FileType.Directory


class ResourceContextFactory:
    """
    Opens one ResourceContext per database.

    `initialize()` never raises: connectivity problems are logged and
    reported as None so the caller can decide how fatal they are.
    """

    def __init__(self, uri: str = "file:///", logger=None):
        self.uri = uri
        self._log = logger or _logger

    def _open(self):
        return pafs.FileSystem.from_uri(self.uri)

    def initialize(self, entity: str) -> Optional[ResourceContext]:
        try:
            filesystem, root = self._open()
            probe = filesystem.get_file_info(root or "/")
        except Exception as e:
            log_exception(self._log, f"Filesystem '{self.uri}' unavailable for {entity}", e)
            return None

        if probe.type == pafs.FileType.NotFound:
            self._log.warning("Filesystem root '%s' not found (database %s)", self.uri, entity)
            return None

        return ResourceContext(entity=entity, filesystem=filesystem, root=root or "/")
