"""
Unit tests for the acquisition orchestrator and CLI.
Network stages are patched at the tracker module boundary.
"""
import errno
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from unittest.mock import MagicMock, patch

from errors import DownloadError, MissingPageProps, ProfileFetchError
from profile_cache import CachedProfile, load_profile, save_profile
from scrape import UserRecord
from tracker import State, classify, main, read_streak, refresh_profile, run

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
URL = "https://app.daily.dev/ada"
ADA = UserRecord(name="ada", reputation=120, card_id="abc123")


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / ".dailydev_data.json"


@pytest.fixture
def recognizer():
    r = MagicMock()
    r.recognize.return_value = "42\nstreak\n"
    return r


@pytest.fixture
def pipeline(card_image):
    """Patch both network fetches with canned results."""
    with patch("tracker.scrape_user", return_value=ADA) as scrape, \
            patch("tracker.fetch_card_image", return_value=card_image) as fetch:
        yield scrape, fetch


def cached(hours_ago, user=ADA, streak="7"):
    return CachedProfile(
        profile_url=URL, user=user, streak=streak,
        last_refreshed_at=NOW - timedelta(hours=hours_ago),
    )


# ─────────────────────────────────────────────────────────────
# classify
# ─────────────────────────────────────────────────────────────

def test_classify():
    assert classify(None, NOW) is State.COLD_START
    assert classify(CachedProfile(), NOW) is State.COLD_START
    assert classify(CachedProfile(profile_url=URL), NOW) is State.STALE
    assert classify(cached(25), NOW) is State.STALE
    assert classify(cached(1), NOW) is State.FRESH


# ─────────────────────────────────────────────────────────────
# pipeline
# ─────────────────────────────────────────────────────────────

def test_read_streak_sends_cropped_png(pipeline, recognizer):
    _, fetch = pipeline
    assert read_streak("abc123", recognizer) == "42"
    fetch.assert_called_once_with("abc123")
    png = recognizer.recognize.call_args[0][0]
    assert png[:4] == b"\x89PNG"


def test_refresh_persists_merged_profile(pipeline, recognizer, cache_path):
    scrape, _ = pipeline
    original = CachedProfile(profile_url=URL)

    updated = refresh_profile(original, recognizer, NOW, cache_path)

    scrape.assert_called_once_with(URL)
    assert updated.user == ADA
    assert updated.streak == "42"
    assert updated.last_refreshed_at == NOW
    assert updated.refreshed
    assert original.user is None
    assert load_profile(cache_path) == updated


def test_scrape_failure_leaves_cache_untouched(recognizer, cache_path):
    save_profile(cached(30), cache_path)
    before = cache_path.read_text()

    with patch("tracker.scrape_user", side_effect=MissingPageProps()), \
            patch("tracker.fetch_card_image") as fetch:
        with pytest.raises(MissingPageProps):
            refresh_profile(cached(30), recognizer, NOW, cache_path)

    fetch.assert_not_called()
    recognizer.recognize.assert_not_called()
    assert cache_path.read_text() == before


def test_ocr_failure_aborts_by_default(recognizer, cache_path):
    save_profile(cached(30), cache_path)
    before = cache_path.read_text()

    with patch("tracker.scrape_user", return_value=ADA), \
            patch("tracker.fetch_card_image", side_effect=DownloadError("boom")):
        with pytest.raises(DownloadError):
            refresh_profile(cached(30), recognizer, NOW, cache_path)

    assert cache_path.read_text() == before


def test_ocr_failure_degrades_when_streak_optional(recognizer, cache_path):
    with patch("tracker.scrape_user", return_value=ADA), \
            patch("tracker.fetch_card_image", side_effect=DownloadError("boom")):
        updated = refresh_profile(CachedProfile(profile_url=URL), recognizer, NOW,
                                  cache_path, streak_required=False)

    assert updated.user == ADA
    assert updated.streak == ""
    assert load_profile(cache_path).user == ADA


def test_unrecognized_streak_is_not_fatal(pipeline, recognizer, cache_path):
    recognizer.recognize.return_value = ""
    updated = refresh_profile(CachedProfile(profile_url=URL), recognizer, NOW, cache_path)
    assert updated.streak == ""
    assert updated.user == ADA


def test_save_failure_keeps_result(pipeline, recognizer, tmp_path, capsys):
    bad_path = tmp_path / "no-such-dir" / "cache.json"
    updated = refresh_profile(CachedProfile(profile_url=URL), recognizer, NOW, bad_path)
    assert updated.streak == "42"
    assert "Error saving cache" in capsys.readouterr().out


def test_interrupted_save_leaves_stale_cache_usable(pipeline, recognizer, cache_path, capsys):
    save_profile(cached(30), cache_path)

    def disk_full(self, data, *args, **kwargs):
        with open(self, "w", encoding="utf-8") as f:
            f.write(data[:len(data) // 2])
        raise OSError(errno.ENOSPC, "No space left on device")

    with patch.object(Path, "write_text", disk_full):
        updated = refresh_profile(cached(30), recognizer, NOW, cache_path)

    assert updated.streak == "42"
    assert "Error saving cache" in capsys.readouterr().out
    # next run sees the old profile as stale, not as a cold start
    assert load_profile(cache_path) == cached(30)
    assert classify(load_profile(cache_path), NOW) is State.STALE


# ─────────────────────────────────────────────────────────────
# run
# ─────────────────────────────────────────────────────────────

def test_run_fresh_skips_network(recognizer, cache_path):
    save_profile(cached(1), cache_path)
    with patch("tracker.scrape_user") as scrape, \
            patch("tracker.fetch_card_image") as fetch:
        profile = run(cache_path, recognizer=recognizer, now=NOW)

    scrape.assert_not_called()
    fetch.assert_not_called()
    recognizer.recognize.assert_not_called()
    assert profile.user == ADA
    assert not profile.refreshed


def test_run_stale_refreshes(pipeline, recognizer, cache_path):
    save_profile(cached(25), cache_path)
    profile = run(cache_path, recognizer=recognizer, now=NOW)
    assert profile.refreshed
    assert profile.streak == "42"
    assert load_profile(cache_path).last_refreshed_at == NOW


def test_run_force_refreshes_fresh_cache(pipeline, recognizer, cache_path):
    save_profile(cached(1), cache_path)
    profile = run(cache_path, force=True, recognizer=recognizer, now=NOW)
    assert profile.refreshed


def test_run_cold_start_prompts_once(pipeline, recognizer, cache_path):
    scrape, _ = pipeline
    prompt = MagicMock(return_value=URL)

    profile = run(cache_path, prompt=prompt, recognizer=recognizer, now=NOW)

    prompt.assert_called_once()
    scrape.assert_called_once_with(URL)
    assert load_profile(cache_path).profile_url == URL
    assert profile.user == ADA


def test_run_malformed_cache_is_cold_start(pipeline, recognizer, cache_path):
    cache_path.write_text("{garbage")
    prompt = MagicMock(return_value=URL)
    run(cache_path, prompt=prompt, recognizer=recognizer, now=NOW)
    prompt.assert_called_once()


def test_run_cold_start_without_url(recognizer, cache_path):
    with patch("tracker.scrape_user") as scrape:
        assert run(cache_path, prompt=lambda: "", recognizer=recognizer, now=NOW) is None
    scrape.assert_not_called()
    assert not cache_path.exists()


def test_run_url_override_replaces_profile(pipeline, recognizer, cache_path):
    scrape, _ = pipeline
    save_profile(cached(1), cache_path)
    new_url = "https://app.daily.dev/grace"

    run(cache_path, profile_url=new_url, recognizer=recognizer, now=NOW)

    scrape.assert_called_once_with(new_url)
    assert load_profile(cache_path).profile_url == new_url


# ─────────────────────────────────────────────────────────────
# main
# ─────────────────────────────────────────────────────────────

def test_main_prints_banner(capsys):
    profile = cached(0, streak="42")
    profile.refreshed = True
    with patch("tracker.run", return_value=profile), \
            patch("tracker.install_on_startup") as install:
        assert main([]) == 0

    install.assert_called_once()
    out = capsys.readouterr().out
    assert "Welcome back, ada!" in out
    assert "reputation: 120" in out
    assert "streak: 42" in out
    assert f"Profile URL: {URL}" in out


def test_main_cached_run_hides_streak(capsys):
    with patch("tracker.run", return_value=cached(1, streak="42")):
        assert main(["--no-install"]) == 0
    out = capsys.readouterr().out
    assert "reputation: 120" in out
    assert "streak" not in out
    assert "Profile URL" not in out


def test_main_reports_pipeline_error(capsys):
    with patch("tracker.run", side_effect=ProfileFetchError("Failed to visit URL: boom")), \
            patch("tracker.install_on_startup"):
        assert main([]) == 1
    out = capsys.readouterr().out
    assert out.strip() == "Error: Failed to visit URL: boom"


def test_main_no_url(capsys):
    with patch("tracker.run", return_value=None):
        assert main(["--no-install"]) == 2


def test_main_passes_flags():
    with patch("tracker.run", return_value=cached(1)) as run_mock:
        main(["--no-install", "--force", "--url", URL, "--quiet"])
    run_mock.assert_called_once_with(force=True, profile_url=URL)
