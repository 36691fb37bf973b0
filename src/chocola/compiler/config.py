"""Project configuration read from ``chocola.config.json``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from chocola.compiler.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "chocola.config.json"


@dataclass
class BundleConfig:
    src_dir: str = "src"
    out_dir: str = "dist"
    lib_dir: str = "lib"
    empty_out_dir: bool = True


@dataclass
class DevConfig:
    hostname: str = "localhost"
    port: int = 3000


@dataclass
class ChocolaConfig:
    bundle: BundleConfig = field(default_factory=BundleConfig)
    dev: DevConfig = field(default_factory=DevConfig)
    path: Path | None = None


_BUNDLE_KEYS = {
    "srcDir": "src_dir",
    "outDir": "out_dir",
    "libDir": "lib_dir",
}

_DEV_KEYS = {
    "hostname": "hostname",
    "port": "port",
}


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be an object in {CONFIG_FILENAME}")
    return value


def _apply(target: Any, section: Dict[str, Any], keys: Dict[str, str], name: str) -> None:
    for json_key, attr in keys.items():
        value = section.get(json_key)
        if value:
            setattr(target, attr, value)
        else:
            logger.warning(
                "%s.%s not defined in %s: using default %r",
                name,
                json_key,
                CONFIG_FILENAME,
                getattr(target, attr),
            )


def parse_config(raw: Dict[str, Any]) -> ChocolaConfig:
    config = ChocolaConfig()

    bundle = _section(raw, "bundle")
    _apply(config.bundle, bundle, _BUNDLE_KEYS, "bundle")
    config.bundle.empty_out_dir = bundle.get("emptyOutDir") is not False
    logger.info("Using emptyOutDir = %s", config.bundle.empty_out_dir)

    if "dev" in raw:
        _apply(config.dev, _section(raw, "dev"), _DEV_KEYS, "dev")

    try:
        config.dev.port = int(config.dev.port)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"dev.port must be a number, got {config.dev.port!r}") from e

    return config


def load_config(root_dir: Path) -> ChocolaConfig:
    """Load ``chocola.config.json`` from the project root."""
    config_path = root_dir / CONFIG_FILENAME
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(
            "An error occurred while fetching the Chocola config file", str(config_path)
        ) from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(
            f"An error occurred while fetching the Chocola config file: {e}",
            str(config_path),
        ) from e

    if not isinstance(raw, dict):
        raise ConfigError("Config file must contain a JSON object", str(config_path))

    config = parse_config(raw)
    config.path = config_path
    return config
