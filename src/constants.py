"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    PACKAGE_ERROR = 3
    USAGE_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    REGISTRY_ACCEPT_HEADER = "application/json"
    USER_AGENT = "npmfetch/0.1"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    PACKAGE_JSON_FILE = "package.json"
    DEPENDENCIES_DIR = "node_modules"
    DEFAULT_DESTINATION_DIR = "npm_packages"
    DEFAULT_VERSION = "latest"

    COPY_CHUNK_SIZE = 64 * 1024
    PACKUMENT_CACHE_TTL_SEC = 300

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "NPMFETCH_LOG_LEVEL"
    ENV_REGISTRY_URL = "NPMFETCH_REGISTRY_URL"
    ENV_REQUEST_TIMEOUT = "NPMFETCH_REQUEST_TIMEOUT"

    CONFIG_FILE_CANDIDATES = [
        "npmfetch.yml",
        "npmfetch.yaml",
        os.path.join("~", ".config", "npmfetch", "npmfetch.yml"),
    ]


def _load_yaml_config(candidates: Optional[list] = None) -> Dict[str, Any]:
    """Load the first YAML config found among the default locations.

    Args:
        candidates: Paths to try in order. Defaults to Constants.CONFIG_FILE_CANDIDATES.

    Returns:
        dict: Parsed configuration, or an empty dict when no file is present.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    for candidate in candidates or Constants.CONFIG_FILE_CANDIDATES:
        path = os.path.expanduser(candidate)
        if not os.path.isfile(path):
            continue
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logging.warning("Ignoring unreadable config file %s: %s", path, exc)
            continue
        if isinstance(data, dict):
            return data
        logging.warning("Ignoring config file %s: top level is not a mapping", path)
    return {}
