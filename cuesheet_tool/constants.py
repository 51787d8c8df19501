from __future__ import annotations

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------

# App folders
LOGS_DIRNAME = "logs"
PROJECTS_DIRNAME = "projects"

# Environment overrides
ENV_LOG_LEVEL = "CUESHEET_LOG_LEVEL"
ENV_LOG_TO_CONSOLE = "CUESHEET_LOG_TO_CONSOLE"
ENV_PROJECTS_DIR = "CUESHEET_PROJECTS_DIR"
ENV_AUTOSAVE_SECONDS = "CUESHEET_AUTOSAVE_SECONDS"

# ---------------------------------------------------------------------------
# Editing engine limits
# ---------------------------------------------------------------------------

# Open documents (tabs) at once.
MAX_TABS = 10

# Undo snapshots kept per document (oldest dropped first).
HISTORY_CAPACITY = 50

# Auto-save inactivity window.
AUTOSAVE_DELAY_SECONDS = 2.0

# Pointer-drag selection updates are coalesced to roughly one per frame (~60fps).
FRAME_INTERVAL_MS = 16

# Confidence given to rows that are un-approved back to library matches.
UNAPPROVED_CONFIDENCE = 0.7
