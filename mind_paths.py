"""Unified path resolution for all Mind components.

The driver, the CLI and the monitoring logger use this module to decide
where configuration and logs live on disk.

Resolution order (first match wins):
    1. MIND_HOME environment variable
    2. ~/.mind.conf JSON config file  {"mind_home": "/path/..."}
    3. Default: ~/.mind
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional


_CONF_FILE = "~/.mind.conf"
_DEFAULT_HOME = "~/.mind"


def get_mind_home() -> Path:
    """Return the canonical Mind data directory."""
    # 1. Explicit env var (highest priority)
    env_home = os.environ.get("MIND_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()

    # 2. Persistent config file
    conf_path = Path(_CONF_FILE).expanduser()
    if conf_path.is_file():
        try:
            data = json.loads(conf_path.read_text())
            home = data.get("mind_home", "").strip()
            if home:
                return Path(home).expanduser().resolve()
        except (json.JSONDecodeError, OSError, AttributeError):
            pass  # Corrupt or unreadable, fall through

    # 3. Default
    return Path(_DEFAULT_HOME).expanduser().resolve()


def get_log_dir() -> Path:
    """Return the logs subdirectory."""
    return get_mind_home() / "logs"


def get_config_path() -> Path:
    """Return the default JSON configuration file path."""
    return get_mind_home() / "mind.json"


def write_conf(mind_home: str, conf_path: Optional[str] = None) -> Path:
    """Write the config file so all components agree on the home directory.

    Args:
        mind_home: Absolute or expandable path to data directory.
        conf_path: Override config file location (for testing).

    Returns:
        Path to the written config file.
    """
    target = Path(conf_path or _CONF_FILE).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    data = {"mind_home": str(Path(mind_home).expanduser())}
    target.write_text(json.dumps(data, indent=2) + "\n")
    return target


def read_conf(conf_path: Optional[str] = None) -> Optional[str]:
    """Read the configured mind_home from the config file.

    Returns:
        The configured path string, or None if no config file exists.
    """
    target = Path(conf_path or _CONF_FILE).expanduser()
    if not target.is_file():
        return None
    try:
        data = json.loads(target.read_text())
        return data.get("mind_home")
    except (json.JSONDecodeError, OSError):
        return None
