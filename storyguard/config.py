"""Global configuration (collaborator connection, voice check tunables)."""

import copy
import json
from pathlib import Path
from typing import Any

_CONFIG_DEFAULTS: dict[str, Any] = {
    "llm_connection": {
        "provider_url": "",
        "api_key": "",
        "provider_format": "koboldcpp",
        "model": "",
        "timeout": 120.0,
    },
    "voice": {
        "context_window": 50,
        "stutter_min_length": 30,
        "dna_threshold": 0.7,
    },
}


def _config_path(data_dir: Path) -> Path:
    return data_dir / "config.json"


def get_config(data_dir: Path) -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config = copy.deepcopy(_CONFIG_DEFAULTS)
    path = _config_path(data_dir)
    if path.is_file():
        stored = json.loads(path.read_text())
        for section, defaults in config.items():
            values = stored.get(section)
            if isinstance(values, dict):
                defaults.update({k: v for k, v in values.items() if k in defaults})
    return config


def update_config(data_dir: Path, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config."""
    config = get_config(data_dir)
    for section, values in fields.items():
        if section in config and isinstance(values, dict):
            config[section].update({k: v for k, v in values.items() if k in config[section]})
    data_dir.mkdir(parents=True, exist_ok=True)
    _config_path(data_dir).write_text(json.dumps(config, indent=2))
    return config
