"""
scrape.py — daily.dev profile page scraping.

daily.dev is a Next.js app: the server-rendered profile page carries its
whole page state as JSON inside <script id="__NEXT_DATA__">. We fetch the
page once, pull that payload out and walk props → pageProps → user.

Each step on the path raises its own ExtractionError subclass so a layout
change on daily.dev's side shows up as "Error extracting pageProps" rather
than a generic failure.
"""

import json
import logging
from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup

from config import HTTP_TIMEOUT, NEXT_DATA_SCRIPT_ID, USER_AGENT
from errors import (
    MalformedJSON, MissingId, MissingPageProps, MissingProps, MissingUser,
    NoEmbeddedPayload, ProfileFetchError,
)

logger = logging.getLogger("scrape")


@dataclass(frozen=True)
class UserRecord:
    """Scraped profile data. card_id addresses the user's devcard image."""
    name: str
    reputation: int
    card_id: str


def _descend(node, key, error_cls):
    child = node.get(key)
    if not isinstance(child, dict):
        raise error_cls()
    return child


def extract_user(html):
    """
    Extract the user record from a rendered profile page.

    Args:
        html: raw HTML text of https://app.daily.dev/<username>

    Returns:
        UserRecord

    Raises:
        NoEmbeddedPayload, MalformedJSON, MissingProps, MissingPageProps,
        MissingUser, MissingId
    """
    soup = BeautifulSoup(html, "html.parser")
    script = soup.find("script", id=NEXT_DATA_SCRIPT_ID)
    if script is None or not script.string or not script.string.strip():
        raise NoEmbeddedPayload()

    try:
        data = json.loads(script.string)
    except ValueError as e:
        raise MalformedJSON(f"JSON parse error: {e}") from e
    if not isinstance(data, dict):
        raise MalformedJSON("JSON parse error: payload is not an object")

    props = _descend(data, "props", MissingProps)
    page_props = _descend(props, "pageProps", MissingPageProps)
    user = _descend(page_props, "user", MissingUser)

    card_id = user.get("id")
    if not isinstance(card_id, str) or not card_id:
        raise MissingId("Error extracting user id")

    name = user.get("name", "")
    reputation = user.get("reputation", 0)
    # bool is an int subclass; JSON true is not a reputation
    if not isinstance(name, str) or isinstance(reputation, bool) \
            or not isinstance(reputation, int):
        raise MalformedJSON(
            f"Error unmarshaling user: name={name!r} reputation={reputation!r}"
        )

    return UserRecord(name=name, reputation=reputation, card_id=card_id)


def fetch_profile_html(profile_url):
    """GET the profile page. Single attempt, no retries."""
    try:
        r = requests.get(
            profile_url,
            headers={"User-Agent": USER_AGENT},
            timeout=HTTP_TIMEOUT,
        )
    except requests.RequestException as e:
        raise ProfileFetchError(f"Failed to visit URL: {e}") from e

    if not 200 <= r.status_code < 300:
        raise ProfileFetchError(
            f"Request failed: {profile_url} returned HTTP {r.status_code}"
        )
    return r.text


def scrape_user(profile_url):
    """Fetch a profile page and extract its user record."""
    logger.debug("Fetching profile %s", profile_url)
    html = fetch_profile_html(profile_url)
    user = extract_user(html)
    logger.debug("Scraped user %s (rep=%d, id=%s)",
                 user.name, user.reputation, user.card_id)
    return user
