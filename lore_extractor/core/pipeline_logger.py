"""Structured, run-scoped logging for the extraction pipeline.

Provides consistent logging with:
- Timestamps
- Log levels (DEBUG, INFO, WARNING, ERROR)
- Phase/context tracking
- Structured data logging
- An in-memory record of every entry, returned with the run result

A RunLogger is created at the start of each run and passed to every phase
and agent. Nothing is stored at module level, so concurrent runs for
different universes never share entries. Handler setup (console, file) is
process configuration and lives in configure_logging().
"""

import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

LOGGER_NAME = "lore_extractor"


@dataclass
class LogEntry:
    """One accumulated log record."""

    timestamp: datetime
    level: str  # DEBUG, INFO, WARN, ERROR
    phase: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level,
            "phase": self.phase,
            "message": self.message,
            "data": {k: _json_safe(v) for k, v in self.data.items()},
        }


class RunLogger:
    """Structured logger for one pipeline run."""

    def __init__(self, run_id: str = "", name: str = LOGGER_NAME):
        """Initialize the run logger.

        Args:
            run_id: Identifier shown in the pipeline banner (the universe id).
            name: stdlib logger name records are forwarded to.
        """
        self.logger = logging.getLogger(name)
        self.run_id = run_id
        self._entries: list[LogEntry] = []
        self._phase: str = ""
        self._phase_start: float = 0
        self._pipeline_start: float = 0

    # -- accumulated entries --

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def warnings(self) -> list[str]:
        """Messages of every WARN entry, in order."""
        return [e.message for e in self._entries if e.level == "WARN"]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    def log_summary(self) -> dict[str, Any]:
        """Counts by level and the phases seen, in order."""
        phases: list[str] = []
        for entry in self._entries:
            if entry.phase and entry.phase not in phases:
                phases.append(entry.phase)
        return {
            "total_entries": len(self._entries),
            "warnings": sum(1 for e in self._entries if e.level == "WARN"),
            "errors": sum(1 for e in self._entries if e.level == "ERROR"),
            "phases": phases,
        }

    def _record(self, level: str, message: str, data: dict[str, Any], phase: str | None = None) -> None:
        self._entries.append(LogEntry(
            timestamp=datetime.now(timezone.utc),
            level=level,
            phase=self._phase if phase is None else phase,
            message=message,
            data=dict(data),
        ))

    # -- timing helpers --

    def _ts(self) -> str:
        """Get current timestamp."""
        return datetime.now().strftime("%H:%M:%S")

    def _elapsed(self) -> str:
        """Get elapsed time since phase start."""
        if self._phase_start:
            return f"{time.monotonic() - self._phase_start:.1f}s"
        return ""

    def total_seconds(self) -> float:
        if not self._pipeline_start:
            return 0.0
        return time.monotonic() - self._pipeline_start

    def _total_elapsed(self) -> str:
        """Get total elapsed time since pipeline start."""
        if not self._pipeline_start:
            return ""
        elapsed = self.total_seconds()
        mins = int(elapsed // 60)
        secs = elapsed % 60
        if mins > 0:
            return f"{mins}m {secs:.0f}s"
        return f"{secs:.1f}s"

    # -- pipeline / phase structure --

    def start_pipeline(self, source: str = ""):
        """Mark pipeline start."""
        self._pipeline_start = time.monotonic()
        label = source or self.run_id
        self._record("INFO", f"Starting pipeline: {label}", {}, phase="pipeline")
        self.logger.info(f"[{self._ts()}] Starting pipeline: {label}")

    def end_pipeline(self, success: bool = True, stats: dict | None = None):
        """Mark pipeline end."""
        elapsed = self._total_elapsed()
        status = "COMPLETE" if success else "FAILED"
        self._record("INFO", f"Pipeline {status}", {"duration": elapsed}, phase="pipeline")

        if stats:
            self.summary(stats)
        self.logger.info(f"\n{'='*50}")
        self.logger.info(f"Pipeline {status} [{elapsed}]")
        self.logger.info(f"{'='*50}")

    def start_phase(self, phase: str, total: int = 0, model: str = ""):
        """Start a new pipeline phase."""
        self._phase = phase
        self._phase_start = time.monotonic()

        parts = [phase.upper()]
        if total > 0:
            parts.append(f"{total} items")
        if model:
            parts.append(model.split("/")[-1])

        header = parts[0]
        if len(parts) > 1:
            header += f" ({', '.join(parts[1:])})"

        self._record("INFO", f"Phase started: {phase}", {"total": total} if total else {})
        self.logger.info("")
        self.logger.info(header)

    def end_phase(self):
        """End current phase."""
        self._phase = ""

    def phase_result(self, phase: str, result: str, **metrics):
        """Log phase completion with key metrics.

        Args:
            phase: Phase name (e.g., "Extraction")
            result: Brief result description
            **metrics: Key-value metrics to display
        """
        elapsed = self._elapsed()
        self._record("INFO", f"{phase}: {result}", metrics)
        parts = [result]
        if metrics:
            parts.append(", ".join(f"{k}={v}" for k, v in metrics.items()))
        if elapsed:
            parts.append(f"[{elapsed}]")
        self.logger.info(f"  Done: {' | '.join(parts)}")

    # -- leveled messages --

    def debug(self, message: str, **data):
        """Log debug message (only shown in verbose mode)."""
        self._record("DEBUG", message, data)
        if data:
            message = f"{message} | {_format_data(data)}"
        self.logger.debug(f"[{self._ts()}] {message}")

    def info(self, message: str, **data):
        """Log info message."""
        self._record("INFO", message, data)
        if data:
            message = f"{message} | {_format_data(data)}"
        self.logger.info(f"  {message}")

    def warning(self, message: str, **data):
        """Log warning message. Warnings are returned to the caller on success."""
        self._record("WARN", message, data)
        if data:
            message = f"{message} | {_format_data(data)}"
        self.logger.warning(f"[{self._ts()}] WARN: {message}")

    def error(self, message: str, exc: BaseException | None = None, **data):
        """Log error message."""
        if exc:
            data = {**data, "exception": f"{type(exc).__name__}: {exc}"}
        self._record("ERROR", message, data)
        if data:
            message = f"{message} | {_format_data(data)}"
        self.logger.error(f"[{self._ts()}] ERROR: {message}")

    def milestone(self, message: str, **data):
        """Log a high-level milestone (always visible, highlighted)."""
        self._record("INFO", message, data)
        if data:
            message = f"{message} | {_format_data(data)}"
        self.logger.info(f"  -> {message}")

    def summary(self, stats: dict):
        """Log a summary block for end-of-pipeline stats."""
        lines = ["SUMMARY"]
        for key, value in stats.items():
            if isinstance(value, dict):
                lines.append(f"  {key}:")
                for k, v in value.items():
                    lines.append(f"    {k}: {v}")
            else:
                lines.append(f"  {key}: {value}")
        self.logger.info("\n".join(lines))


class ConsoleFormatter(logging.Formatter):
    """Console formatter - concise, message only."""

    def format(self, record: logging.LogRecord) -> str:
        # The message already includes timestamp from RunLogger methods
        return record.getMessage()


class FileFormatter(logging.Formatter):
    """File formatter - includes full details for analysis."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname[:4]
        return f"{ts} [{level}] {record.getMessage()}"


def configure_logging(
    verbose: bool = False,
    log_dir: str | Path | None = None,
    run_label: str = "run",
) -> Path | None:
    """Attach console (and optionally file) handlers to the package logger.

    Idempotent for the console handler. Returns the log file path, if any.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    console = next(
        (h for h in logger.handlers if isinstance(h, logging.StreamHandler)
         and not isinstance(h, logging.FileHandler)),
        None,
    )
    if console is None:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(ConsoleFormatter())
        logger.addHandler(console)
    console.setLevel(logging.DEBUG if verbose else logging.INFO)

    if not log_dir:
        return None

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"{run_label}_{timestamp}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(FileFormatter())
    file_handler.setLevel(logging.DEBUG)
    logger.addHandler(file_handler)
    return log_file


def _format_data(data: dict[str, Any]) -> str:
    """Format structured data for logging."""
    parts = []
    for k, v in data.items():
        if isinstance(v, str) and len(v) > 50:
            v = v[:47] + "..."
        elif isinstance(v, list) and len(v) > 5:
            v = f"[{len(v)} items]"
        parts.append(f"{k}={v}")
    return ", ".join(parts)


def _json_safe(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    return str(value)
