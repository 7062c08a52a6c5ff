"""Logging, timing and metrics for the note graph server.

Every service method and MCP tool runs inside ``timed_operation``. The
collector keeps per-operation call counts, durations and failures, plus the
size of the most recent result (node and edge counts for a graph, match
counts for a search), which ``ng_status`` reports.
"""
import functools
import json
import logging
import re
import time
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

NOTEGRAPH_HOME = Path.home() / ".notegraph"
DEFAULT_LOG_DIR = NOTEGRAPH_HOME / "logs"
DEFAULT_METRICS_FILE = NOTEGRAPH_HOME / "metrics.json"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

F = TypeVar("F", bound=Callable[..., Any])

# Result sizes kept as an operation's last_result
RESULT_KEYS = ("node_count", "ghost_count", "edge_count", "result_count", "updated_count")


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    console: bool = True,
) -> Path:
    """Send the ``notegraph_mcp`` logger hierarchy to a rotating log file.

    Args:
        log_dir: Directory for ``notegraph.log``. Defaults to ~/.notegraph/logs/
        level: Logging level for the package loggers
        max_bytes: Size at which the log file rotates (default: 10 MB)
        backup_count: Number of rotated files to keep
        console: Also log to stderr (stdout belongs to the MCP transport)

    Returns:
        Path to the log directory
    """
    log_path = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
    log_path.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger("notegraph_mcp")
    package_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    log_file = log_path / "notegraph.log"
    file_handler = RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    package_logger.addHandler(file_handler)

    has_console = any(type(h) is logging.StreamHandler for h in package_logger.handlers)
    if console and not has_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    package_logger.info(
        f"Logging to {log_file} (rotating at {max_bytes} bytes, {backup_count} backups)"
    )
    return log_path


def _sanitize_error_message(message: Optional[str], max_length: int = 200) -> Optional[str]:
    """Make an error message safe to keep in metrics.

    Replaces the home directory with ``~``, flattens newlines, collapses
    runs of spaces and truncates to max_length (ending with ``...``).
    """
    if message is None:
        return None
    cleaned = message.replace(str(Path.home()), "~")
    cleaned = re.sub(r"[\r\n]+", " ", cleaned)
    cleaned = re.sub(r" {2,}", " ", cleaned).strip()
    if len(cleaned) > max_length:
        cleaned = cleaned[: max_length - 3] + "..."
    return cleaned


@dataclass
class OperationMetrics:
    """Running totals for one operation name."""

    count: int = 0
    success_count: int = 0
    error_count: int = 0
    total_duration_ms: float = 0.0
    min_duration_ms: Optional[float] = None
    max_duration_ms: float = 0.0
    last_error: Optional[str] = None
    last_error_time: Optional[str] = None
    last_result: Dict[str, int] = field(default_factory=dict)

    def record(
        self,
        duration_ms: float,
        error: Optional[str] = None,
        result: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.count += 1
        self.total_duration_ms += duration_ms
        if self.min_duration_ms is None or duration_ms < self.min_duration_ms:
            self.min_duration_ms = duration_ms
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)

        if error is not None:
            self.error_count += 1
            self.last_error = error
            self.last_error_time = datetime.now(timezone.utc).isoformat()
            return

        self.success_count += 1
        sizes = {k: v for k, v in (result or {}).items() if k in RESULT_KEYS}
        if sizes:
            self.last_result = sizes

    def snapshot(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "success_rate": self.success_count / self.count if self.count else 0,
            "avg_duration_ms": round(self.total_duration_ms / self.count, 2) if self.count else 0,
            "min_duration_ms": round(self.min_duration_ms or 0, 2),
            "max_duration_ms": round(self.max_duration_ms, 2),
            "last_error": self.last_error,
            "last_error_time": self.last_error_time,
            "last_result": dict(self.last_result),
        }


class MetricsCollector:
    """Thread-safe per-operation metrics (build_graph, search, rename_note, ...).

    Metrics live in memory. Given a ``metrics_file``, they are loaded from it
    on start and written back every ``auto_save_interval`` operations and on
    ``save_metrics``.
    """

    def __init__(
        self,
        metrics_file: Optional[Union[str, Path]] = None,
        auto_save_interval: int = 100,
    ):
        self._operations: Dict[str, OperationMetrics] = defaultdict(OperationMetrics)
        self._lock = Lock()
        self._started = datetime.now(timezone.utc)
        self._metrics_file = Path(metrics_file) if metrics_file else None
        self._auto_save_interval = auto_save_interval
        self._unsaved = 0

        if self._metrics_file is not None:
            self._load_metrics()

    def record_operation(
        self,
        operation: str,
        duration_ms: float,
        success: bool,
        error: Optional[str] = None,
        result: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record one call of ``operation``.

        Args:
            operation: Operation name, e.g. 'build_graph' or 'ng_search'
            duration_ms: Wall time of the call
            success: Whether the call completed without raising
            error: Error message of a failed call
            result: Result sizes of a successful call (node_count, result_count, ...)
        """
        with self._lock:
            failure = None if success else (_sanitize_error_message(error) or "unknown error")
            self._operations[operation].record(duration_ms, failure, result)
            self._unsaved += 1
            if (
                self._metrics_file is not None
                and self._auto_save_interval > 0
                and self._unsaved >= self._auto_save_interval
            ):
                self._save_metrics_unlocked()

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Snapshot of every operation's metrics, keyed by operation name."""
        with self._lock:
            return {name: m.snapshot() for name, m in self._operations.items()}

    def get_summary(self) -> Dict[str, Any]:
        """Totals across all operations."""
        with self._lock:
            total = sum(m.count for m in self._operations.values())
            succeeded = sum(m.success_count for m in self._operations.values())
            return {
                "uptime_seconds": (datetime.now(timezone.utc) - self._started).total_seconds(),
                "total_operations": total,
                "total_success": succeeded,
                "total_errors": total - succeeded,
                "overall_success_rate": succeeded / total if total else 1.0,
                "operations_tracked": sorted(self._operations),
            }

    def reset(self) -> None:
        """Forget all metrics (used between tests)."""
        with self._lock:
            self._operations.clear()
            self._started = datetime.now(timezone.utc)
            self._unsaved = 0

    def set_metrics_file(self, metrics_file: Optional[Union[str, Path]]) -> None:
        """Enable (or disable with None) persistence to the given file."""
        with self._lock:
            self._metrics_file = Path(metrics_file) if metrics_file else None

    def _load_metrics(self) -> bool:
        if not self._metrics_file.exists():
            return False
        try:
            data = json.loads(self._metrics_file.read_text(encoding="utf-8"))
            started = data.get("start_time")
            if started:
                self._started = datetime.fromisoformat(started)
            for name, stored in data.get("operations", {}).items():
                self._operations[name] = OperationMetrics(**stored)
        except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable metrics file {self._metrics_file}: {e}")
            self._operations.clear()
            return False
        logger.debug(
            f"Loaded metrics for {len(self._operations)} operations from {self._metrics_file}"
        )
        return True

    def _save_metrics_unlocked(self) -> bool:
        if self._metrics_file is None:
            return False
        data = {
            "start_time": self._started.isoformat(),
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "operations": {name: vars(m) for name, m in self._operations.items()},
        }
        temp_file = self._metrics_file.with_suffix(".tmp")
        try:
            self._metrics_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
            temp_file.replace(self._metrics_file)
        except OSError as e:
            logger.error(f"Failed to save metrics to {self._metrics_file}: {e}")
            return False
        self._unsaved = 0
        return True

    def save_metrics(self) -> bool:
        """Write metrics to the metrics file.

        Returns:
            True if written, False on failure or when no file is configured.
        """
        with self._lock:
            return self._save_metrics_unlocked()


metrics = MetricsCollector()


@contextmanager
def timed_operation(operation: str, **context) -> Iterator[Dict[str, Any]]:
    """Time a block and record it in ``metrics`` under ``operation``.

    Yields a dict for result sizes; the keys in ``RESULT_KEYS`` become the
    operation's last result.

    Example:
        with timed_operation("ng_graph", tag="#project") as op:
            graph = service.get_graph(tag="#project")
            op["node_count"] = len(graph.nodes)
    """
    correlation_id = uuid.uuid4().hex[:8]
    context_str = ", ".join(f"{k}={v}" for k, v in context.items())
    logger.debug(f"[{correlation_id}] START {operation} ({context_str})")

    result_info: Dict[str, Any] = {}
    error_msg = None
    start = time.perf_counter()
    try:
        yield result_info
    except Exception as e:
        error_msg = str(e) or type(e).__name__
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        metrics.record_operation(operation, duration_ms, error_msg is None, error_msg, result_info)
        status = "OK" if error_msg is None else f"ERROR: {error_msg}"
        sizes = ", ".join(f"{k}={v}" for k, v in result_info.items())
        logger.debug(f"[{correlation_id}] END {operation} ({duration_ms:.2f}ms) [{status}] {sizes}")


def _measure_result(result: Any, op: Dict[str, Any]) -> None:
    nodes = getattr(result, "nodes", None)
    edges = getattr(result, "edges", None)
    if isinstance(nodes, list) and isinstance(edges, list):
        op["node_count"] = len(nodes)
        op["ghost_count"] = sum(1 for node in nodes if node.is_ghost)
        op["edge_count"] = len(edges)
    elif isinstance(result, (list, tuple)):
        op["result_count"] = len(result)


def traced(operation_name: Optional[str] = None) -> Callable[[F], F]:
    """Run a service method inside ``timed_operation``.

    The note_id, query and tag keyword arguments go into the log context.
    Graph results are measured in nodes, ghosts and edges; list results in
    items.

    Example:
        @traced("build_graph")
        def get_graph(self, query=None, tag=None) -> NoteGraph:
            ...
    """
    def decorator(func: F) -> F:
        op_name = operation_name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            context = {
                key: str(kwargs[key])[:50]
                for key in ("note_id", "query", "tag")
                if kwargs.get(key) is not None
            }
            with timed_operation(op_name, **context) as op:
                result = func(*args, **kwargs)
                _measure_result(result, op)
                return result

        return wrapper  # type: ignore
    return decorator
