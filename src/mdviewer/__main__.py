"""Entry point for mdviewer."""

import argparse
import logging
import sys
from pathlib import Path

from textual.logging import TextualHandler

from .app import run_app
from .config import Config

logger = logging.getLogger("mdviewer")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mdviewer", description="View Markdown documents.")
    parser.add_argument("file", type=Path, help="document to open")
    parser.add_argument("internal_target", nargs="?", help="anchor to scroll to, e.g. #usage")
    parser.add_argument("--storage-dir", type=Path, help="directory for configuration and data")
    parser.add_argument("--test", action="store_true", help="verbose logging, no error output")
    return parser.parse_args(argv)


def setup_logging(data_dir: Path, is_test: bool = False) -> None:
    """Log to mdviewer.log in the data directory and to the Textual console."""
    data_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(data_dir / "mdviewer.log", encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(file_handler)
    logger.addHandler(TextualHandler(stderr=False))
    logger.setLevel(logging.DEBUG if is_test else logging.INFO)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for mdviewer."""
    args = parse_args(argv)
    try:
        # Load configuration
        config = Config.load(args.storage_dir)

        setup_logging(config.data_directory, args.test)

        # Run the application
        return run_app(config, args.file, args.internal_target)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logger.exception("Unhandled error")
        if not args.test:
            print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
