"""Application bootstrap for Boxmark."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtWidgets import QApplication, QMainWindow

from .core.config import ConfigManager
from .ui.canvas import AnnotationCanvas

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


def create_application(argv: List[str]) -> QApplication:
    """
    Create and configure the Qt application.

    Returns:
        Configured QApplication instance
    """
    app = QApplication(argv)
    app.setApplicationName("Boxmark")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("Boxmark")
    return app


def create_main_window(
    config_manager: ConfigManager,
    image_path: Optional[Path] = None
) -> QMainWindow:
    """
    Create the main window around an annotation canvas.

    The class picked on the canvas becomes the default for the next session.

    Args:
        config_manager: Source and store of the application configuration
        image_path: Image to open, if any

    Returns:
        QMainWindow instance
    """
    window = QMainWindow()
    window.setWindowTitle("Boxmark")
    window.resize(1200, 800)

    canvas = AnnotationCanvas(config_manager.config, window)
    window.setCentralWidget(canvas)

    status = window.statusBar()
    canvas.labels_saved.connect(lambda path: status.showMessage(f"Saved {path}", 3000))
    canvas.load_failed.connect(lambda message: status.showMessage(message))
    canvas.active_class_changed.connect(
        lambda class_id: status.showMessage(f"Class {canvas.classes.name_of(class_id)}", 2000)
    )
    canvas.active_class_changed.connect(
        lambda class_id: config_manager.update(default_class_id=class_id)
    )

    if image_path is not None:
        canvas.load_image(image_path)
        window.setWindowTitle(f"Boxmark - {image_path.name}")
    return window


def run(argv: Optional[List[str]] = None) -> int:
    """
    Run the Boxmark application.

    Returns:
        Exit code
    """
    argv = list(sys.argv if argv is None else argv)
    logger.info("Starting Boxmark")

    try:
        app = create_application(argv)
        image_path = Path(argv[1]) if len(argv) > 1 else None
        window = create_main_window(ConfigManager(), image_path)
        window.show()
        logger.info("MainWindow shown")

        return app.exec()

    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        return 1


def main() -> None:
    """Main entry point for the application."""
    sys.exit(run())


if __name__ == "__main__":
    main()
