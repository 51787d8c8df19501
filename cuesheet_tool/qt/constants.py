"""Qt GUI constants (internal)."""

# Custom item-data role carrying the row's cue id.
CUE_ID_ROLE = 0x0100 + 41

# Row tints by derived status (RGBA).
STATUS_TINTS = {
    "complete": (46, 160, 67, 36),
    "needs_approval": (210, 153, 34, 48),
    "pending": (0, 0, 0, 0),
}

# Cell tint for composer/publisher values below this confidence.
LOW_CONFIDENCE = 0.8
LOW_CONFIDENCE_TINT = (218, 54, 51, 40)

# Selection overlay and fill-preview overlay.
SELECTION_TINT = (56, 139, 253, 60)
FILL_PREVIEW_TINT = (56, 139, 253, 30)

# Pixel radius around a selected cell's bottom-right corner that grabs the fill handle.
FILL_HANDLE_PX = 6

# Auto-save tick (the debounce itself lives in AutoSaver).
AUTOSAVE_TICK_MS = 500
