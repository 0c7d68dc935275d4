"""
tuneguess.py

Real entrypoint that launches the TuneGuess application.

Integration
- Loads and validates the config file
- Configures logging
- Creates QApplication, MainWindow (which owns the WebPlayerBridge)
- Wires RoundSession, YouTubeCatalog and GameController and loads the playlist list
- Starts the Qt event loop
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication, Qt
from PyQt6.QtWidgets import QApplication

from catalog_api import CatalogError, YouTubeCatalog
from config import get_config, load_config
from game_controller import GameController
from logging_setup import configure_logging
from main_window import MainWindow
from round_session import RoundSession


logger = logging.getLogger(__name__)


def _print_error(message: str) -> None:
    print(json.dumps({"ok": False, "error": message}, ensure_ascii=False, indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    argument_parser = argparse.ArgumentParser(description="TuneGuess: guess the song from a YouTube playlist")
    argument_parser.add_argument("--config", type=Path, default=None, help="Path to tuneguess_config.json.")
    argument_parser.add_argument("--kiosk", action="store_true", help="Enable kiosk window flags.")
    argument_parser.add_argument("--fullscreen", action="store_true", help="Start in fullscreen.")
    argument_parser.add_argument("--log-level", default=None, help="Override logging.level from the config file.")
    parsed_args = argument_parser.parse_args(argv)

    try:
        if parsed_args.config is not None:
            app_config, config_path = load_config(parsed_args.config)
        else:
            app_config, config_path = get_config()
    except (OSError, ValueError) as exception:
        _print_error(str(exception))
        return 2

    configure_logging(
        parsed_args.log_level or app_config.logging.level,
        json_output=app_config.logging.json_output,
    )
    logger.info("Using config %s with %d collections", config_path, len(app_config.collections))

    try:
        catalog = YouTubeCatalog.from_app_config(app_config)
    except CatalogError as exception:
        _print_error(str(exception))
        return 2

    QCoreApplication.setAttribute(Qt.ApplicationAttribute.AA_ShareOpenGLContexts)
    qt_application = QApplication(sys.argv[:1] if argv is not None else sys.argv)

    main_window = MainWindow(kiosk_mode=bool(parsed_args.kiosk), volume_percent=app_config.player.volume_percent)

    round_session = RoundSession(
        player=main_window.player_bridge(),
        scoring_rules=app_config.scoring.to_rules(),
        tick_interval_ms=app_config.timer.tick_interval_ms,
        parent=main_window,
    )
    controller = GameController(catalog=catalog, round_session=round_session, parent=main_window)
    main_window.attach_controller(controller)

    main_window.resize(960, 720)
    main_window.show()
    if parsed_args.fullscreen:
        main_window.showFullScreen()

    controller.load_collections()

    try:
        return int(qt_application.exec())
    finally:
        round_session.shutdown()
        controller.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
