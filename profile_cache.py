"""
profile_cache.py — On-disk cache of the last scraped profile.

One JSON file (~/.dailydev_data.json by default) holds the user record,
the streak, the profile URL and when they were last refreshed:

    {
      "user": {"name": "ada", "reputation": 120, "id": "abc123"},
      "streak": "42",
      "timestamp": "2026-10-19T08:30:00+00:00",
      "profile_url": "https://app.daily.dev/ada"
    }

Anything that doesn't load cleanly is treated as "no cache": the caller
re-scrapes instead of surfacing a parse error. Files written by the older
Go build (zero timestamp "0001-01-01T00:00:00Z", no id/streak) still load.

Default TTL: 24 hours
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from config import CACHE_FILE, CACHE_TTL
from scrape import UserRecord

logger = logging.getLogger("profile_cache")

_FRACTION_OVERFLOW = re.compile(r"(\.\d{6})\d+")


# ─────────────────────────────────────────────────────────────
# CACHE RECORD
# ─────────────────────────────────────────────────────────────

@dataclass
class CachedProfile:
    """The single persisted entity. Empty until the first refresh."""
    profile_url: str = ""
    user: Optional[UserRecord] = None
    streak: str = ""
    last_refreshed_at: Optional[datetime] = None
    # not persisted: True only when this run recomputed the data
    refreshed: bool = field(default=False, compare=False)

    def to_dict(self) -> dict:
        user = None
        if self.user is not None:
            user = {
                "name": self.user.name,
                "reputation": self.user.reputation,
                "id": self.user.card_id,
            }
        return {
            "user": user,
            "streak": self.streak,
            "timestamp": self.last_refreshed_at.isoformat() if self.last_refreshed_at else None,
            "profile_url": self.profile_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CachedProfile":
        """Build from parsed JSON. Raises ValueError/TypeError on bad shape."""
        if not isinstance(data, dict):
            raise TypeError("cache root is not an object")

        profile_url = data.get("profile_url", "")
        if not isinstance(profile_url, str):
            raise TypeError("profile_url is not a string")

        streak = data.get("streak", "")
        if not isinstance(streak, str):
            raise TypeError("streak is not a string")

        return cls(
            profile_url=profile_url,
            user=_user_from_dict(data.get("user")),
            streak=streak,
            last_refreshed_at=_parse_timestamp(data.get("timestamp")),
        )


def _user_from_dict(raw) -> Optional[UserRecord]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise TypeError("user is not an object")

    name = raw.get("name", "")
    reputation = raw.get("reputation", 0)
    card_id = raw.get("id", raw.get("cardId", ""))
    if not isinstance(name, str) or not isinstance(card_id, str):
        raise TypeError("user.name/user.id is not a string")
    if isinstance(reputation, bool) or not isinstance(reputation, int):
        raise TypeError("user.reputation is not an integer")
    return UserRecord(name=name, reputation=reputation, card_id=card_id)


def _parse_timestamp(raw) -> Optional[datetime]:
    if raw in (None, ""):
        return None
    if not isinstance(raw, str):
        raise TypeError("timestamp is not a string")

    # fromisoformat() before 3.11 rejects "Z" and Go's nanosecond fractions
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    raw = _FRACTION_OVERFLOW.sub(r"\1", raw)
    ts = datetime.fromisoformat(raw)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    # Go's zero time.Time: never refreshed
    if ts.year == 1:
        return None
    return ts


# ─────────────────────────────────────────────────────────────
# LOAD / SAVE
# ─────────────────────────────────────────────────────────────

def load_profile(path=CACHE_FILE) -> Optional[CachedProfile]:
    """
    Read the cache file.

    Returns None if the file is missing, unreadable or malformed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        profile = CachedProfile.from_dict(data)
    except FileNotFoundError:
        logger.debug("No cache at %s", path)
        return None
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Ignoring unreadable cache %s: %s", path, e)
        return None

    logger.debug("Cache loaded: %s (refreshed %s)", path, profile.last_refreshed_at)
    return profile


def save_profile(profile: CachedProfile, path=CACHE_FILE) -> None:
    """
    Atomically replace the cache file.

    The JSON goes to a sibling .tmp file first and is moved over the real
    file with os.replace(), so a failed write leaves the previous cache
    intact. Raises OSError if the file can't be written.
    """
    path = Path(path)
    tmp = path.with_suffix(path.suffix + ".tmp")
    text = json.dumps(profile.to_dict(), indent=2)
    try:
        tmp.write_text(text + "\n", encoding="utf-8")
        os.replace(str(tmp), str(path))
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("Cache saved: %s", path)


# ─────────────────────────────────────────────────────────────
# STALENESS
# ─────────────────────────────────────────────────────────────

def is_stale(profile: CachedProfile, now: datetime, ttl=CACHE_TTL) -> bool:
    """True if the profile was never refreshed or is older than ttl."""
    if profile.last_refreshed_at is None:
        return True
    return now - profile.last_refreshed_at > ttl
