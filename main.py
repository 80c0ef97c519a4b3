"""Manufacturing Kanban Board — Entry Point."""
import logging
import os
import sys

from mfgboard.application import create_application, load_api_settings
from mfgboard.core.i18n import TranslationManager
from mfgboard.main_window import MainWindow


def main():
    logging.basicConfig(
        level=os.environ.get("MFGBOARD_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    app = create_application(sys.argv)
    TranslationManager.init(os.environ.get("MFGBOARD_LANG", "en"))
    window = MainWindow(load_api_settings())
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
