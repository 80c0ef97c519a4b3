"""Application factory — QApplication creation, theme, API settings.

API settings resolve in this order: environment variable, QSettings,
compiled-in default.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from PyQt6.QtCore import QSettings, QtMsgType, qInstallMessageHandler
from PyQt6.QtWidgets import QApplication
from PyQt6.QtGui import QFont

from mfgboard.constants import (
    API_URL_ENV_VAR,
    APP_NAME,
    APP_ORGANIZATION,
    DEFAULT_API_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT_S,
)

logger = logging.getLogger(__name__)
_qt_logger = logging.getLogger("qt")

_QT_LOG_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}


def _qt_message_handler(msg_type, context, message):
    """Route Qt's own messages into logging.

    Suppresses harmless QPainter warnings that occur when Qt's style
    engine creates image caches for rounded-corner widgets before they
    have a valid size (common during startup).
    """
    if "QPainter" in message:
        return
    if "Paint device returned engine == 0" in message:
        return
    _qt_logger.log(_QT_LOG_LEVELS.get(msg_type, logging.WARNING), message)


@dataclass(frozen=True)
class ApiSettings:
    """Where and how to reach the dashboard API."""
    base_url: str = DEFAULT_API_BASE_URL
    timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S


def load_api_settings(settings: QSettings | None = None, environ=None) -> ApiSettings:
    """Resolve the API settings (environment, then QSettings, then defaults)."""
    settings = settings if settings is not None else QSettings()
    environ = os.environ if environ is None else environ

    base_url = environ.get(API_URL_ENV_VAR) or settings.value("api/base_url", "") or ""
    base_url = str(base_url).strip() or DEFAULT_API_BASE_URL

    raw_timeout = settings.value("api/timeout_s", DEFAULT_REQUEST_TIMEOUT_S)
    try:
        timeout = float(raw_timeout)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid api/timeout_s setting: %r", raw_timeout)
        timeout = DEFAULT_REQUEST_TIMEOUT_S
    if timeout <= 0:
        timeout = DEFAULT_REQUEST_TIMEOUT_S

    return ApiSettings(base_url=base_url, timeout_s=timeout)


def create_application(argv: list[str]) -> QApplication:
    """Create and configure the QApplication instance."""
    qInstallMessageHandler(_qt_message_handler)

    app = QApplication(argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_ORGANIZATION)

    # Font
    font = QFont("Segoe UI", 10)
    font.setStyleHint(QFont.StyleHint.SansSerif)
    app.setFont(font)

    # Dark theme QSS
    qss_path = Path(__file__).parent / "ui" / "styles" / "dark_theme.qss"
    if qss_path.exists():
        app.setStyleSheet(qss_path.read_text(encoding="utf-8"))

    return app
