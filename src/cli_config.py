"""Configuration loading and overrides for runtime tunables.

Precedence, lowest to highest: built-in Constants, YAML/JSON config file,
environment variables, CLI flags.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants, _load_yaml_config

logger = logging.getLogger(__name__)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from ``path`` or from the default YAML locations.

    JSON is used for ``.json`` files, YAML otherwise. A missing or unreadable
    explicit file is logged and treated as empty.
    """
    if not (isinstance(path, str) and path.strip()):
        return _load_yaml_config()

    if not os.path.isfile(path):
        logger.warning("Config file not found: %s", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        logger.error("Failed to load config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Copy recognized settings from a config mapping onto Constants.

    Recognized layout::

        registry:
          url: https://registry.npmjs.org/
          timeout: 30
        download:
          destination_dir: npm_packages
          dependencies_dir: node_modules
        logging:
          level: INFO
    """
    registry = cfg.get("registry") or {}
    download = cfg.get("download") or {}
    log_cfg = cfg.get("logging") or {}

    if isinstance(registry, dict):
        if registry.get("url"):
            Constants.REGISTRY_URL_NPM = str(registry["url"])
        if registry.get("timeout") is not None:
            Constants.REQUEST_TIMEOUT = _as_int(registry["timeout"], Constants.REQUEST_TIMEOUT)
    if isinstance(download, dict):
        if download.get("destination_dir"):
            Constants.DEFAULT_DESTINATION_DIR = str(download["destination_dir"])
        if download.get("dependencies_dir"):
            Constants.DEPENDENCIES_DIR = str(download["dependencies_dir"])
    if isinstance(log_cfg, dict) and log_cfg.get("level"):
        os.environ.setdefault(Constants.ENV_LOG_LEVEL, str(log_cfg["level"]).upper())


def apply_env_overrides() -> None:
    """Honor NPMFETCH_REGISTRY_URL and NPMFETCH_REQUEST_TIMEOUT."""
    url = os.environ.get(Constants.ENV_REGISTRY_URL, "").strip()
    if url:
        Constants.REGISTRY_URL_NPM = url
    timeout = os.environ.get(Constants.ENV_REQUEST_TIMEOUT, "").strip()
    if timeout:
        Constants.REQUEST_TIMEOUT = _as_int(timeout, Constants.REQUEST_TIMEOUT)


def apply_cli_overrides(args) -> None:
    """Apply CLI flags, which take precedence over everything else."""
    if getattr(args, "REGISTRY_URL", None):
        Constants.REGISTRY_URL_NPM = args.REGISTRY_URL
    if getattr(args, "REQUEST_TIMEOUT", None) is not None:
        Constants.REQUEST_TIMEOUT = int(args.REQUEST_TIMEOUT)


def _as_int(value: Any, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer setting %r", value)
        return fallback
