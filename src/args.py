"""Argument parsing functionality for npmfetch."""

import argparse
from typing import List, Optional


def parse_args(argv: Optional[List[str]] = None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="npmfetch",
        description=(
            "npmfetch - download npm packages (and optionally their dependencies) "
            "straight from the registry"
        ),
        add_help=True,
    )

    parser.add_argument("PACKAGE",
                        help='Package to fetch, e.g. "rollup@^2.77.0" or "@scope/pkg@1.2.3". '
                             'A bare name resolves "latest".',
                        type=str)
    parser.add_argument("-o", "--output",
                        dest="DESTINATION",
                        help="Directory to write the package to "
                             "(default: ./npm_packages/<name>/<version>)",
                        action="store",
                        type=str)
    parser.add_argument("--deps",
                        dest="INCLUDE_DEPS",
                        help="Also download dependencies (recursively) into node_modules.",
                        action="store_true")
    parser.add_argument("--dev-deps",
                        dest="INCLUDE_DEV_DEPS",
                        help="Also download the package's devDependencies into node_modules.",
                        action="store_true")
    parser.add_argument("--metadata-only",
                        dest="METADATA_ONLY",
                        help="Only resolve the version and print its registry metadata as JSON.",
                        action="store_true")
    parser.add_argument("--registry",
                        dest="REGISTRY_URL",
                        help="Registry base URL (default: https://registry.npmjs.org/)",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="REQUEST_TIMEOUT",
                        help="HTTP request timeout in seconds",
                        action="store",
                        type=int)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
