"""npmfetch - download npm packages straight from the registry.

    Returns:
        int: Exit code
"""
import json
import logging
import sys

from constants import ExitCodes, Constants
from common.errors import (
    MalformedSpecifierError,
    NpmFetchError,
    RegistryUnavailableError,
    RetrievalError,
)
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import apply_cli_overrides, apply_config, apply_env_overrides, load_config
from downloader import download_package, fetch_package_metadata
from registry.npm.client import NpmRegistryClient
from versioning.cache import TTLCache
from versioning.models import NameAndVersion
from versioning.parser import split_name_and_version

logger = logging.getLogger(__name__)


def parse_package_token(token: str) -> NameAndVersion:
    """Split a CLI package token; a bare (possibly scoped) name means "latest"."""
    token = token.strip()
    if token and token.rfind("@") <= 0:
        return NameAndVersion(token, Constants.DEFAULT_VERSION)
    return split_name_and_version(token)


def _exit_code_for(exc: Exception) -> ExitCodes:
    if isinstance(exc, MalformedSpecifierError):
        return ExitCodes.USAGE_ERROR
    if isinstance(exc, (RegistryUnavailableError, RetrievalError)):
        return ExitCodes.CONNECTION_ERROR
    if isinstance(exc, NpmFetchError):
        return ExitCodes.PACKAGE_ERROR
    return ExitCodes.FILE_ERROR


def _setup_logging(args) -> None:
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)

    apply_config(load_config(getattr(args, "CONFIG", None)))
    apply_env_overrides()
    apply_cli_overrides(args)
    _setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main"),
        )

    try:
        name, specifier = parse_package_token(args.PACKAGE)
        with NpmRegistryClient() as client:
            if args.METADATA_ONLY:
                resolved = fetch_package_metadata(name, specifier, client=client)
                sys.stdout.write(json.dumps(resolved.registry_data, indent=2) + "\n")
            else:
                target = download_package(
                    name,
                    specifier,
                    args.DESTINATION,
                    include_deps=args.INCLUDE_DEPS,
                    include_dev_deps=args.INCLUDE_DEV_DEPS,
                    client=client,
                    cache=TTLCache(default_ttl=Constants.PACKUMENT_CACHE_TTL_SEC),
                )
                logger.info("Done: %s", target)
    except (NpmFetchError, OSError) as exc:
        logger.error("%s", exc)
        sys.exit(_exit_code_for(exc).value)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
