import argparse
import logging
import sys

from visionterm.core.config import ensure_api_key, settings
from visionterm.core.exceptions import ConfigError, StorageError
from visionterm.core.logging import setup_logging
from visionterm.db.persistence import open_store
from visionterm.services.gateway import Gateway
from visionterm.ui.app import VisiontermApp
from visionterm.version import __version__

logger = logging.getLogger(__name__)

EPILOG = f"""\
environment:
  REKA_API_KEY     Your gateway API key (or use the config file)

config file:
  {settings.config_file} containing {{"api_key": "..."}}
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="visionterm",
        description="Terminal client for asking a vision-AI gateway about your videos.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--version", action="version", version=f"visionterm {__version__}")
    parser.add_argument("command", nargs="?", choices=["version"], help="print the version and exit")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "version":
        print(f"visionterm {__version__}")
        return 0

    setup_logging()
    logger.info(f"Starting visionterm {__version__}")

    try:
        api_key = ensure_api_key()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("\nPlease set your API key:", file=sys.stderr)
        print("  export REKA_API_KEY=your_api_key_here", file=sys.stderr)
        print(f"\nOr add it to {settings.config_file}:", file=sys.stderr)
        print('  {"api_key": "your_api_key_here"}', file=sys.stderr)
        return 1

    try:
        store = open_store()
    except StorageError as e:
        print(f"Error opening database: {e}", file=sys.stderr)
        return 1

    try:
        VisiontermApp(Gateway(api_key), store).run()
    finally:
        store.close()
        logger.info("Shut down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
