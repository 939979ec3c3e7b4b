"""Persistent settings for the Jumbleberry Fields solver.

Stores defaults in ~/.jbfields_settings.json. Command-line flags override
whatever is loaded here.
"""

import json
from pathlib import Path

DEFAULTS = {
    "ev_table_path": "ev_table.json",
    "workers": 1,
    "host": "127.0.0.1",
    "port": 8080,
    "simulation_games": 100000,
}


def _default_path():
    """Return the default path for the settings file."""
    return Path.home() / ".jbfields_settings.json"


def load_settings(path=None):
    """Load settings from JSON file. Returns DEFAULTS on missing/corrupt.

    Merges with DEFAULTS so missing keys get default values.
    Unknown keys and values of the wrong type are ignored.
    """
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        data = json.loads(path.read_text())
        if not isinstance(data, dict):
            return dict(DEFAULTS)
        result = dict(DEFAULTS)
        for key, default in DEFAULTS.items():
            value = data.get(key)
            if type(value) is type(default):
                result[key] = value
        return result
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return dict(DEFAULTS)
