"""Load LiveSiteConfig from livesite.toml / livesite.yaml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from livesite._errors import ConfigError
from livesite.config import LiveSiteConfig

_KNOWN_KEYS: dict[str, tuple[type, ...]] = {
    "pattern": (str,),
    "host": (str,),
    "port": (int,),
    "heartbeat_interval": (int, float),
    "stats": (bool,),
}


def load_config(root: Path, **overrides: object) -> LiveSiteConfig:
    """Load LiveSiteConfig from root, optionally merging a config file.

    Looks for livesite.toml, livesite.yaml, or livesite.yml in root. If
    found, loads and merges with overrides. Overrides take precedence;
    ``None`` overrides are ignored so unset CLI flags fall back to the file.

    Raises:
        ConfigError: If a config file exists but cannot be parsed, or a
            value has the wrong type.

    """
    file_config = _read_config_file(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    return LiveSiteConfig(root=root, **merged)  # type: ignore[arg-type]


def _read_config_file(root: Path) -> dict[str, object]:
    """Read config from toml/yaml if present. Returns empty dict otherwise."""
    toml_path = root / "livesite.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    for name in ("livesite.yaml", "livesite.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    return {}


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"cannot read {path.name}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_section(data, path)


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"cannot read {path.name}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path.name} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_section(data, path)


def _flatten_section(data: dict[str, object], path: Path) -> dict[str, object]:
    """Extract livesite.* and known top-level keys, checking value types."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("livesite")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v

    for k, v in result.items():
        expected = _KNOWN_KEYS[k]
        # bool is an int subclass; only accept it where bool is expected.
        if not isinstance(v, expected) or (isinstance(v, bool) and bool not in expected):
            msg = f"{path.name}: {k!r} has invalid value {v!r}"
            raise ConfigError(msg)
    return result
