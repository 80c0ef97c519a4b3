"""Application-wide constants.

Runtime overrides for the API location live in QSettings / environment,
see mfgboard.application.load_api_settings.
"""

APP_NAME = "Manufacturing Kanban"
APP_VERSION = "0.1.0"
APP_ORGANIZATION = "MfgTracker"

# Window constraints
MIN_WINDOW_WIDTH = 1100
MIN_WINDOW_HEIGHT = 700

# API
DEFAULT_API_BASE_URL = "http://localhost:3000/api"
API_URL_ENV_VAR = "MFGBOARD_API_URL"
DEFAULT_REQUEST_TIMEOUT_S = 15.0
CARDS_PATH = "kanban/cards"
CONFIG_PATH = "kanban/config"
ACTIONS_PATH = "mfg/parts/actions"
USERS_PATH = "users"
EQUIPMENT_PATH = "equipment"
PROCESSES_PATH = "processes"

# Drag & drop
DRAG_ACTIVATION_DISTANCE_PX = 8

# Column autosave quiet period
COLUMN_AUTOSAVE_DELAY_MS = 300

# Done column: cards not updated within this window are hidden from the board
DONE_VISIBLE_WINDOW_HOURS = 24
DONE_COLUMN_TITLE = "Done"

# New column defaults
NEW_COLUMN_TITLE = "New Column"

# Sort sentinels (sort after every real name)
UNASSIGNED_USER_SORT_KEY = "zzz_Unassigned"
UNASSIGNED_PROCESS_SORT_KEY = "zzz_Unassigned Processes"
MULTIPLE_PROCESS_SORT_KEY = "zzz_Multiple Processes"

# Card widget geometry
COLUMN_WIDTH = 300
CARD_MIN_HEIGHT = 64

# Drag-and-drop MIME types
CARD_MIME_TYPE = "application/x-mfgboard-card"
COLUMN_MIME_TYPE = "application/x-mfgboard-column"

# Default board used when the server has no stored config
DEFAULT_COLUMNS = [
    ("backlog", "Backlog"),
    ("in-progress", "In Progress"),
    ("review", "Review"),
    ("done", "Done"),
]
