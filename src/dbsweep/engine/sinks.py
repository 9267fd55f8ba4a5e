# src/dbsweep/engine/sinks.py
"""
Report sinks: append-only text files in one output directory.

Several checks may route to the same filename; the registry hands them the
same Sink so lines from different worker threads never interleave mid-line.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, List, Optional, TextIO, Union

from dbsweep.logging import get_logger

_logger = get_logger(__name__)


class Sink:
    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()
        self._fh: Optional[TextIO] = None
        self.lines_written = 0
        self.lines_dropped = 0
        self.closed = False

    def println(self, line: str = "") -> None:
        with self._lock:
            if self.closed:
                # a task abandoned by a fatal abort may still be reporting
                self.lines_dropped += 1
                return
            if self._fh is None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._fh = self.path.open("a", encoding="utf-8")
            self._fh.write(f"{line}\n")
            self._fh.flush()
            self.lines_written += 1

    def close(self) -> None:
        with self._lock:
            self.closed = True
            if self._fh is not None:
                self._fh.close()
                self._fh = None

    def __repr__(self) -> str:
        return f"Sink({str(self.path)!r})"


class SinkRegistry:
    """Resolves filenames to shared Sinks under `output_dir`."""

    def __init__(self, output_dir: Union[str, Path], logger=None):
        self.output_dir = Path(output_dir)
        self._log = logger or _logger
        self._lock = threading.Lock()
        self._sinks: Dict[Path, Sink] = {}

    def resolve(self, filename: str) -> Sink:
        path = self.output_dir / filename
        with self._lock:
            sink = self._sinks.get(path)
            if sink is None:
                self._log.debug("Opening sink %s", path)
                sink = Sink(path)
                self._sinks[path] = sink
            return sink

    def default_success(self, process_id: str) -> Sink:
        return self.resolve(f"{process_id}_success.md")

    def default_error(self, process_id: str) -> Sink:
        return self.resolve(f"{process_id}_error.md")

    def paths(self) -> List[Path]:
        with self._lock:
            return list(self._sinks)

    def close_all(self) -> None:
        with self._lock:
            sinks = list(self._sinks.values())
        for sink in sinks:
            sink.close()
