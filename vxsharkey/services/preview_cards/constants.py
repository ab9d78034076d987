"""Design tokens and layout constants for note preview cards."""

# Output dimensions (OpenGraph large image)
OUTPUT_WIDTH = 1200
OUTPUT_HEIGHT = 630

# Text limits
BODY_MAX_CHARS = 300
QUOTE_MAX_CHARS = 100

# Attachment grid
MAX_GRID_IMAGES = 4
GRID_CLASSES = {
    1: "grid-1",  # single image
    2: "grid-2",  # two columns
    3: "grid-3",  # three columns
    4: "grid-4",  # two by two
}

FOOTER_TEXT = "🦈 vxsharkey"

COLORS = {
    "background_start": "#1a1a2e",
    "background_end": "#16213e",
    "text": "#ffffff",
    "muted": "#aaaaaa",
    "footer": "#888888",
    "quote_text": "#dddddd",
    "quote_bg": "rgba(255, 255, 255, 0.1)",
    "accent": "#4a9eff",
}

# Chromium flags for containerised hosts
BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
)
