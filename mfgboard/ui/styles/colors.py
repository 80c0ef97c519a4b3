"""Color palette constants for the dark board theme."""

# Base theme colors
BACKGROUND = "#0F172A"
PANEL_BG = "#1E293B"
SURFACE = "#334155"
BORDER = "#475569"

# Column background (slightly lighter than the board)
COLUMN_BG = "#151E31"

# Accent colors
ACCENT = "#3B82F6"
ACCENT_HOVER = "#60A5FA"
ACCENT_PRESSED = "#2563EB"

# Semantic colors
WARNING = "#F59E0B"
ERROR = "#EF4444"
SUCCESS = "#10B981"

# Text colors
TEXT_PRIMARY = "#F8FAFC"
TEXT_SECONDARY = "#B0BEC5"
TEXT_DISABLED = "#64748B"

# Card states
CARD_SELECTED_BORDER = ACCENT
CARD_DRAGGING_OPACITY = 0.4
CARD_OVERDUE = ERROR
DROP_HIGHLIGHT = "#1D4ED8"

# Notification banner backgrounds
NOTIFICATION_COLORS = {
    "success": "#065F46",
    "error": "#7F1D1D",
    "info": "#1E3A8A",
}
