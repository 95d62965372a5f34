"""YAML file loading and saving.

Reads with ``yaml.safe_load`` so untrusted files cannot instantiate Python
objects, and writes with ``yaml.safe_dump`` in block style so the config
stays easy to edit by hand.

Examples:
    ```python
    from nostaro.core.yaml import load_yaml, save_yaml

    data = load_yaml("~/.nostaro/config.yaml")
    save_yaml("~/.nostaro/config.yaml", data)
    ```

See Also:
    [NostaroConfig][nostaro.core.config.NostaroConfig]: Pydantic model
        built from the returned dictionary.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML mapping.

    Returns:
        Parsed mapping; an empty dict if the file exists but is empty.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file contains invalid YAML syntax.
        ValueError: If the top-level value is not a mapping.
    """
    path = Path(config_path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    return data


def save_yaml(config_path: str | Path, data: dict[str, Any], *, private: bool = False) -> None:
    """Write *data* as block-style YAML, creating parent directories.

    With ``private=True`` the file is restricted to the owner (mode 0600)
    because it holds key material.
    """
    path = Path(config_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    if private:
        os.chmod(path, 0o600)
