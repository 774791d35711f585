"""
Mind Monitoring — Snapshots, health string, rotating event log, HTTP dashboard.

The step loop owns the ``NetworkState`` exclusively.  Anything running on
another thread only ever sees immutable ``StateSnapshot`` objects that the
loop publishes through a ``SnapshotPublisher`` after a tick completes.

Layers:

1. ``health_context()`` — One-line summary, e.g.
   "Mind: 100 neurons, tick 12,345, 7 firing, 31 refractory".
2. ``MindLogger`` — JSON-line events to a rotating ``events.log``.
3. ``MonitoringDashboard`` — HTTP server with ``/health`` and ``/stats``.

Usage::

    from mind_monitoring import SnapshotPublisher, MonitoringDashboard
    publisher = SnapshotPublisher()
    dashboard = MonitoringDashboard(cfg, publisher)
    dashboard.start()
    ...
    publisher.publish(state)        # after each step()
    dashboard.stop()

# ---- Changelog ----
# [2026-10-19] Initial implementation.
#   What: StateSnapshot, SnapshotPublisher, health_context, MindLogger with
#         rotating file handler, MonitoringDashboard HTTP server.
#   Why:  Lets observers read progress without touching live arrays.
# -------------------
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import threading
import time
from dataclasses import asdict, dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any, Dict, Optional

from mind_config import MindConfig
from mind_paths import get_log_dir
from mind_state import NetworkState, get_telemetry

logger = logging.getLogger("mind.monitoring")


# ── Snapshots ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StateSnapshot:
    """Immutable summary of a ``NetworkState`` at the end of a tick."""

    tick: int
    neurons: int
    fired_count: int
    refractory_count: int
    mean_activity: float
    max_activity: float
    timestamp: float

    @classmethod
    def from_state(cls, state: NetworkState) -> "StateSnapshot":
        tel = get_telemetry(state)
        return cls(
            tick=tel.tick,
            neurons=tel.neurons,
            fired_count=tel.fired_count,
            refractory_count=tel.refractory_count,
            mean_activity=tel.mean_activity,
            max_activity=tel.max_activity,
            timestamp=time.time(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SnapshotPublisher:
    """Thread-safe holder of the most recent ``StateSnapshot``.

    ``publish`` must be called from the thread that steps the network,
    between ticks.  ``latest`` may be called from any thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: Optional[StateSnapshot] = None
        self._published = 0

    def publish(self, state: NetworkState) -> StateSnapshot:
        snapshot = StateSnapshot.from_state(state)
        with self._lock:
            self._latest = snapshot
            self._published += 1
        return snapshot

    def latest(self) -> Optional[StateSnapshot]:
        with self._lock:
            return self._latest

    @property
    def published_count(self) -> int:
        with self._lock:
            return self._published


# ── Health context (Layer 1) ───────────────────────────────────────────


def health_context(snapshot: Optional[StateSnapshot]) -> str:
    """Generate a human-readable one-line health summary.

    Args:
        snapshot: Latest published snapshot, or None before the first tick.

    Returns:
        Status string.
    """
    if snapshot is None:
        return "Mind: not started"
    parts = [
        f"Mind: {snapshot.neurons:,} neurons",
        f"tick {snapshot.tick:,}",
        f"{snapshot.fired_count:,} firing",
        f"{snapshot.refractory_count:,} refractory",
    ]
    return ", ".join(parts)


# ── Rotating logger (Layer 2) ─────────────────────────────────────────


class MindLogger:
    """Rotating file logger for run events.

    Writes structured JSON-line events to ``events.log`` with automatic
    rotation based on file size.

    Args:
        config: ``MindConfig`` with monitoring parameters.
    """

    def __init__(self, config: MindConfig) -> None:
        self._cfg = config.monitoring
        self._logger = logging.getLogger("mind.events")
        self._handler: Optional[logging.Handler] = None
        self._setup_handler()

    @property
    def log_path(self) -> Path:
        log_dir = Path(self._cfg.log_dir).expanduser() if self._cfg.log_dir else get_log_dir()
        return log_dir / "events.log"

    def _setup_handler(self) -> None:
        """Configure rotating file handler."""
        log_path = self.log_path
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            str(log_path),
            maxBytes=self._cfg.max_log_size_mb * 1024 * 1024,
            backupCount=self._cfg.backup_count,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        self._logger.addHandler(handler)
        self._logger.setLevel(logging.INFO)
        # Event lines go to the file only, not the console.
        self._logger.propagate = False
        self._handler = handler

    def log_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """Write a structured event to the event log."""
        event = {
            "timestamp": time.time(),
            "event": event_type,
            "data": data,
        }
        self._logger.info(json.dumps(event, default=str))

    def close(self) -> None:
        """Detach and close the file handler."""
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None


# ── HTTP dashboard (Layer 3) ──────────────────────────────────────────


class _DashboardHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the monitoring dashboard."""

    # Set per server by MonitoringDashboard
    publisher: Optional[SnapshotPublisher] = None

    def do_GET(self) -> None:
        """Handle GET requests."""
        if self.path == "/health":
            self._json_response(self._health_data())
        elif self.path == "/stats":
            self._json_response(self._stats_data())
        else:
            self.send_error(404, "Not Found")

    def _latest(self) -> Optional[StateSnapshot]:
        return self.publisher.latest() if self.publisher is not None else None

    def _health_data(self) -> Dict[str, Any]:
        """Minimal health check response."""
        return {
            "status": "ok",
            "timestamp": time.time(),
            "context": health_context(self._latest()),
        }

    def _stats_data(self) -> Dict[str, Any]:
        """Latest snapshot as JSON."""
        snapshot = self._latest()
        if snapshot is None:
            return {"error": "no snapshot published yet"}
        return snapshot.to_dict()

    def _json_response(self, data: Dict[str, Any]) -> None:
        """Send a JSON response."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        """Route access logs to debug instead of stderr."""
        logger.debug("dashboard: " + format, *args)


class MonitoringDashboard:
    """HTTP monitoring server running in a daemon thread.

    Args:
        config: ``MindConfig`` with monitoring parameters.
        publisher: Source of snapshots served to clients.
        host: Interface to bind (default loopback).
    """

    def __init__(
        self,
        config: MindConfig,
        publisher: SnapshotPublisher,
        host: str = "127.0.0.1",
    ) -> None:
        self._cfg = config.monitoring
        self._host = host
        self._server: Optional[HTTPServer] = None
        self._thread: Optional[threading.Thread] = None

        # Per-instance handler class so two dashboards never share state
        self._handler_cls = type(
            "_BoundDashboardHandler",
            (_DashboardHandler,),
            {"publisher": publisher},
        )

    def start(self) -> None:
        """Start the HTTP server in a daemon thread."""
        if not self._cfg.http_enabled:
            logger.info("HTTP dashboard disabled by config")
            return

        try:
            self._server = HTTPServer((self._host, self._cfg.http_port), self._handler_cls)
        except OSError as exc:
            logger.warning("Failed to start dashboard: %s", exc)
            self._server = None
            return

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="mind-dashboard",
        )
        self._thread.start()
        logger.info("Dashboard started on port %d", self.port)

    def stop(self) -> None:
        """Shut down the HTTP server."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    @property
    def port(self) -> int:
        """Bound port (differs from config when it asked for port 0)."""
        if self._server is not None:
            return int(self._server.server_address[1])
        return self._cfg.http_port

    @property
    def is_running(self) -> bool:
        """True if the server thread is alive."""
        return self._thread is not None and self._thread.is_alive()
