"""
config.py
Central configuration for the daily.dev reputation tracker.
Overrides loaded from a .env file next to this module (not committed to git)
or from the real environment, which always wins.
"""

import logging
import math
import os
from datetime import timedelta
from pathlib import Path

logger = logging.getLogger("config")

# ============================================
# Paths
# ============================================
BASE_DIR = Path(__file__).parent

# ============================================
# .env loader (no external dependency)
# ============================================
_env_path = BASE_DIR / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                os.environ.setdefault(key.strip(), value.strip())


def _flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "on", "yes")


def _number(name, default):
    """Positive float setting; anything else falls back to default with a warning."""
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        number = float(value)
    except ValueError:
        number = None
    if number is None or not math.isfinite(number) or number <= 0:
        logger.warning("Ignoring invalid %s=%r, using %r", name, value, default)
        return default
    return number


# ============================================
# Cache
# ============================================
CACHE_FILE = Path(os.environ.get(
    "DEVREP_CACHE_FILE", str(Path.home() / ".dailydev_data.json")
)).expanduser()
CACHE_TTL = timedelta(hours=_number("CACHE_TTL_HOURS", 24.0))

# ============================================
# HTTP
# ============================================
# None keeps the requests default (no timeout); set to seconds to bound calls
HTTP_TIMEOUT = _number("HTTP_TIMEOUT", None)
USER_AGENT = os.environ.get(
    "USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
)

# ============================================
# daily.dev
# ============================================
NEXT_DATA_SCRIPT_ID = "__NEXT_DATA__"
CARD_IMAGE_BASE = os.environ.get("DAILYDEV_CARD_BASE", "https://api.daily.dev/devcards/v2")
CARD_IMAGE_TOKEN = os.environ.get("DAILYDEV_CARD_TOKEN", "cik")

# Streak digits on the default devcard v2 render.
# Format: (x, y, width, height) in pixels from the card's top-left corner.
STREAK_REGION = (200, 384, 200, 100)

# Smallest card the region fits inside; anything smaller means the
# generator's layout changed and the crop would read the wrong pixels.
CARD_MIN_WIDTH = STREAK_REGION[0] + STREAK_REGION[2]    # 400
CARD_MIN_HEIGHT = STREAK_REGION[1] + STREAK_REGION[3]   # 484

# ============================================
# OCR Configuration
# ============================================
RECOGNITION_BACKEND = os.environ.get("RECOGNITION_BACKEND", "ocrspace").strip().lower()

OCR_SPACE_URL = os.environ.get("OCR_SPACE_URL", "https://api.ocr.space/parse/image")
OCR_SPACE_API_KEY = os.environ.get("OCR_SPACE_API_KEY", "helloworld")  # free anonymous key
OCR_LANGUAGE = os.environ.get("OCR_LANGUAGE", "eng")

# Local EasyOCR backend
EASYOCR_LANGUAGES = ["en"]
EASYOCR_GPU = _flag("EASYOCR_GPU", False)

# When False, an OCR failure still persists the freshly scraped user with
# an empty streak instead of aborting the whole refresh.
STREAK_REQUIRED = _flag("STREAK_REQUIRED", True)

# ============================================
# Startup registration
# ============================================
STARTUP_MARKER = "# Daily.dev Reputation Utility"
