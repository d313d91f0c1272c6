#!/usr/bin/env python3
"""mdshelf: markdown viewer with a sidebar of open and recent files."""

from __future__ import annotations

import argparse
import sys

from loguru import logger
from PySide6.QtWidgets import QApplication, QStyle

from mdshelf.config import APP_NAME, STATE_DIR_ENV, resolve_app_paths
from mdshelf.logging_config import configure_logging
from mdshelf.window import FileOpenEventFilter, MdShelfWindow


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="View markdown files with a persistent sidebar of open and recent documents.",
    )
    parser.add_argument(
        "files",
        nargs="*",
        help="Files to open. When none of them exist, the previous session is restored.",
    )
    parser.add_argument(
        "--state-dir",
        default=None,
        help=f"Directory for session and recent-file records (default: ${STATE_DIR_ENV} or ~/.mdshelf).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main() -> int:
    args = build_parser().parse_args()
    configure_logging(verbose=args.verbose)
    paths = resolve_app_paths(args.state_dir)
    logger.debug("State directory: {}", paths.state_dir)

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setDesktopFileName(APP_NAME)
    app.setWindowIcon(app.style().standardIcon(QStyle.StandardPixmap.SP_FileDialogDetailedView))

    window = MdShelfWindow(paths)
    app.installEventFilter(FileOpenEventFilter(window))
    window.show()
    window.session.start(args.files)
    app.exec()
    # User-initiated close is always a clean exit.
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
