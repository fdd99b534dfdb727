"""Entry point: python -m blocker_tools.doodle_gallery [--path PATH] [--import FILE ...]"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from colorama import Fore, Style, init

from . import config


def _configure_logging(level: str) -> None:
    config.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=config.LOG_FORMAT,
        filename=str(config.LOG_FILE),
    )


def _import_files(data_path: str | None, files: list[Path], name: str | None) -> int:
    """Add image files as doodles, as the drawing tool's save would."""
    from .export import encode_image_file
    from .storage import GalleryStore, resolve_path

    init()
    store = GalleryStore.open(data_path)
    added = 0
    for f in files:
        if not f.is_file():
            print(Fore.RED + f"Not a file: {f}" + Style.RESET_ALL)
            continue
        store.add_doodle(encode_image_file(f), name=name)
        added += 1
    colour = Fore.GREEN if added else Fore.YELLOW
    print(colour + f"Imported {added}/{len(files)} doodles into {resolve_path(data_path)}" + Style.RESET_ALL)
    return 0 if added == len(files) else 1


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Doodle Gallery — browse, group and reorder saved doodles",
    )
    parser.add_argument(
        "--path",
        default=None,
        help=f"Path to the gallery JSON file (default: {config.DATA_PATH})",
    )
    parser.add_argument(
        "--import",
        dest="import_files",
        nargs="+",
        type=Path,
        default=None,
        metavar="FILE",
        help="Add image files as doodles and exit",
    )
    parser.add_argument(
        "--name",
        default=None,
        help="Name for imported doodles (marks them as named)",
    )
    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        help=f"Logging level (default: {config.LOG_LEVEL}); logs go to {config.LOG_FILE}",
    )
    args = parser.parse_args()

    _configure_logging(args.log_level)

    if args.import_files:
        raise SystemExit(_import_files(args.path, args.import_files, args.name))

    from .app import GalleryApp

    app = GalleryApp(data_path=args.path)
    app.run()


if __name__ == "__main__":
    main()
