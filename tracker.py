"""
tracker.py — daily.dev reputation tracker — main entry point.

Pipeline (only when the cache is stale):
  1. GET the profile page, pull the user out of __NEXT_DATA__   (scrape.py)
  2. GET the user's devcard PNG                                 (card_image.py)
  3. Crop the streak region                                     (card_image.py)
  4. OCR the crop                                               (ocr.py)
  5. First run of digits on the first line = streak             (ocr.py)
  6. Merge into the cached profile and write it back            (profile_cache.py)

Run states:
  COLD_START — no cached profile URL; ask for one, then refresh
  STALE      — cached, but never refreshed or older than the TTL; refresh
  FRESH      — cached within the TTL; no network at all

A failure while scraping the user aborts the run and leaves the cache
file untouched. OCR failures do the same unless STREAK_REQUIRED=false,
in which case the user is saved with an empty streak.

Usage:
    devrep                    # show reputation, refreshing once a day
    devrep --force            # refresh now
    devrep --url https://app.daily.dev/<username>
    devrep --verbose          # debug logging
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from enum import Enum

from card_image import crop_region, encode_png, fetch_card_image
from config import (
    CACHE_FILE, CACHE_TTL, RECOGNITION_BACKEND, STREAK_REGION, STREAK_REQUIRED,
)
from errors import DevRepError
from ocr import get_recognizer, parse_streak
from profile_cache import CachedProfile, is_stale, load_profile, save_profile
from scrape import scrape_user
from startup import install_on_startup

logger = logging.getLogger("tracker")


class State(Enum):
    COLD_START = "cold_start"
    STALE = "stale"
    FRESH = "fresh"


def classify(profile, now, ttl=CACHE_TTL):
    """Decide what this run has to do with the loaded cache."""
    if profile is None or not profile.profile_url:
        return State.COLD_START
    if is_stale(profile, now, ttl):
        return State.STALE
    return State.FRESH


# ─────────────────────────────────────────────────────────────
# ACQUISITION
# ─────────────────────────────────────────────────────────────

def read_streak(card_id, recognizer, region=STREAK_REGION):
    """Download the devcard, OCR the streak region and parse the digits."""
    img = fetch_card_image(card_id)
    crop = crop_region(img, *region)
    text = recognizer.recognize(encode_png(crop))
    streak = parse_streak(text)
    if not streak:
        logger.warning("No digits recognized in streak region (text=%r)", text)
    return streak


def refresh_profile(profile, recognizer, now, cache_path=CACHE_FILE,
                    streak_required=STREAK_REQUIRED):
    """
    Re-scrape everything for profile.profile_url and persist the result.

    Returns a new CachedProfile; the one passed in is never modified.
    Raises DevRepError if the refresh has to be abandoned, in which case
    nothing was written.
    """
    user = scrape_user(profile.profile_url)

    try:
        streak = read_streak(user.card_id, recognizer)
    except DevRepError as e:
        if streak_required:
            raise
        logger.warning("Streak unavailable, saving user only: %s", e)
        streak = ""

    updated = CachedProfile(
        profile_url=profile.profile_url,
        user=user,
        streak=streak,
        last_refreshed_at=now,
        refreshed=True,
    )
    try:
        save_profile(updated, cache_path)
    except OSError as e:
        print(f"Error saving cache: {e}")
    return updated


def run(cache_path=CACHE_FILE, force=False, profile_url=None, prompt=None,
        recognizer=None, now=None, ttl=CACHE_TTL):
    """
    One tracker run: load, decide, refresh if needed.

    Returns the CachedProfile to display, or None if no profile URL
    could be obtained.
    """
    now = now or datetime.now(timezone.utc)
    prompt = prompt or prompt_profile_url

    profile = load_profile(cache_path)
    if profile_url:
        # explicit URL change: keep nothing from the old profile
        profile = CachedProfile(profile_url=profile_url)
        force = True

    state = classify(profile, now, ttl)
    logger.debug("Cache state: %s", state.value)

    if state is State.COLD_START:
        url = prompt()
        if not url:
            return None
        profile = CachedProfile(profile_url=url)
        state = State.STALE

    if state is State.FRESH and not force:
        return profile

    recognizer = recognizer or get_recognizer(RECOGNITION_BACKEND)
    return refresh_profile(profile, recognizer, now, cache_path)


# ─────────────────────────────────────────────────────────────
# TERMINAL I/O
# ─────────────────────────────────────────────────────────────

def prompt_profile_url():
    """Ask for the profile URL on stdin. Returns "" on EOF."""
    try:
        url = input("Enter your Daily.dev profile URL (e.g., https://app.daily.dev/username): ")
    except EOFError:
        return ""
    return url.strip()


def display_reputation(profile):
    user = profile.user
    print("=" * 40)
    print(f" 🚀 Welcome back, {user.name}! 🚀")
    print("=" * 40)
    print(f" ⭐ Your current reputation: {user.reputation} ⭐")
    if profile.refreshed and profile.streak:
        print(f" 🔥 Current streak: {profile.streak} 🔥")
    print("=" * 40)


def main(argv=None):
    parser = argparse.ArgumentParser(description="daily.dev reputation tracker")
    parser.add_argument("--force", "-f", action="store_true",
                        help="Refresh even if the cache is still fresh")
    parser.add_argument("--url", metavar="URL",
                        help="Set (or replace) the daily.dev profile URL")
    parser.add_argument("--no-install", action="store_true",
                        help="Don't register in the shell startup file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show debug output")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Don't print the reputation banner")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.no_install:
        install_on_startup()

    try:
        profile = run(force=args.force, profile_url=args.url)
    except DevRepError as e:
        logger.debug("Refresh failed", exc_info=True)
        print(f"Error: {e}")
        return 1

    if profile is None:
        print("No profile URL given.")
        return 2

    if profile.refreshed:
        print(f"Profile URL: {profile.profile_url}")
    if profile.user is None:
        print("No cached user data yet. Run again with --force.")
        return 1
    if not args.quiet:
        display_reputation(profile)
    return 0


if __name__ == "__main__":
    sys.exit(main())
