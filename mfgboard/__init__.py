"""Manufacturing kanban board — desktop client for the mfg tracking dashboard."""

__version__ = "0.1.0"
