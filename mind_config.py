"""
Mind Configuration — Centralized configuration for the network driver.

Provides a single ``MindConfig`` dataclass that holds all tuneable
parameters for network construction, the run loop and the monitoring
infrastructure.  Configuration can be loaded from a dict of overrides, a
JSON file, or left at sensible defaults.

Usage::

    from mind_config import MindConfig, load_mind_config

    # Defaults
    cfg = load_mind_config()

    # With overrides
    cfg = load_mind_config({"network": {"neurons": 400, "seed": 7}})

    # From JSON file
    cfg = load_mind_config(config_path="~/.mind/mind.json")

# ---- Changelog ----
# [2026-10-19] Initial implementation.
#   What: MindConfig dataclass with three sections (network, driver,
#         monitoring) and load_mind_config() factory.
#   Why:  One source of truth for the driver, the CLI and monitoring,
#         user-overridable from a dict or file.
# -------------------
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("mind.config")

SECTIONS = ("network", "driver", "monitoring")


# ── Section dataclasses ────────────────────────────────────────────────


@dataclass
class NetworkConfig:
    """Construction parameters for the random initial state."""

    neurons: int = 100
    seed: Optional[int] = None
    dtype: str = "float32"


@dataclass
class DriverConfig:
    """Run loop parameters.

    ``report_interval`` is advisory wall-clock seconds between progress
    lines; ``max_ticks`` of None means run until cancelled.
    """

    report_interval: float = 1.0
    max_ticks: Optional[int] = None
    snapshot_every: int = 1


@dataclass
class MonitoringConfig:
    """Configuration for the monitoring infrastructure."""

    log_dir: Optional[str] = None
    max_log_size_mb: int = 10
    backup_count: int = 5
    event_log_enabled: bool = False
    http_port: int = 8848
    http_enabled: bool = False


# ── Top-level config ───────────────────────────────────────────────────


@dataclass
class MindConfig:
    """Top-level configuration.

    Groups all tunables into three sections.  Use ``load_mind_config()``
    to create an instance with user overrides applied.
    """

    network: NetworkConfig = field(default_factory=NetworkConfig)
    driver: DriverConfig = field(default_factory=DriverConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ── Factory ────────────────────────────────────────────────────────────


def _apply_overrides(obj: Any, overrides: Dict[str, Any]) -> None:
    """Apply a dict of overrides to a dataclass instance (in-place)."""
    for key, value in overrides.items():
        if hasattr(obj, key):
            setattr(obj, key, value)
        else:
            logger.debug("Ignoring unknown config key %r", key)


def load_mind_config(
    overrides: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None,
) -> MindConfig:
    """Create a ``MindConfig`` with defaults, optionally overridden.

    Override precedence (highest wins):
        1. ``overrides`` dict argument
        2. ``config_path`` JSON file
        3. Built-in defaults

    Args:
        overrides: Dict keyed by section name (``network``, ``driver``,
            ``monitoring``) whose values are dicts of field→value pairs.
        config_path: Path to a JSON file with the same structure as
            ``overrides``.  A missing file is not an error.

    Returns:
        Fully populated ``MindConfig``.
    """
    cfg = MindConfig()

    # Layer 1: JSON file
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            try:
                with open(p) as f:
                    file_data = json.load(f)
                for section in SECTIONS:
                    if section in file_data:
                        _apply_overrides(getattr(cfg, section), file_data[section])
            except (OSError, ValueError, TypeError, AttributeError) as exc:
                logger.warning("Failed to load config from %s: %s", p, exc)

    # Layer 2: dict overrides (win over file)
    if overrides is not None:
        for section in SECTIONS:
            if section in overrides:
                _apply_overrides(getattr(cfg, section), overrides[section])

    return cfg
