"""
Iridium TLE fetcher (CelesTrak GP groups, disk cache, placeholder fallback).

 - Cache only SUCCESS payloads (no caching failures)
 - Robust HTML/error detection for CelesTrak
 - Malformed segments in a payload are skipped, never fatal
 - If every dataset fails, a single placeholder element set is returned so a run can
   still start with a one-satellite constellation
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import requests

from satmap.config import settings
from satmap.config.settings import TLE_LINE_LENGTH
from satmap.models.satellite import TLE

logger = logging.getLogger(__name__)


# -----------------------
# Cache helpers
# -----------------------
def _load_cache(cache_file: Path) -> dict:
    if not cache_file.exists():
        return {}
    try:
        data = json.loads(cache_file.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return data
        logger.warning("TLE cache content not a dict; starting fresh.")
        return {}
    except (OSError, ValueError):
        logger.warning("TLE cache file unreadable or corrupt, starting fresh.")
        return {}


def _save_cache(cache_file: Path, cache: dict) -> None:
    try:
        cache_file.write_text(json.dumps(cache, indent=2), encoding="utf-8")
    except OSError as e:
        logger.warning("Failed to write TLE cache: %s", e)


def _cache_get(cache: dict, dataset: str, now: datetime) -> Optional[str]:
    """
    Return the cached raw payload if present and within TTL else None.
    """
    entry = cache.get(dataset)
    if not isinstance(entry, dict):
        return None
    try:
        ts = datetime.fromisoformat(entry["timestamp"])
        if now - ts >= settings.TLE_CACHE_TTL:
            return None
    except (KeyError, TypeError, ValueError):
        # unreadable or naive timestamps count as stale
        return None
    text = entry.get("payload")
    if not isinstance(text, str) or not text.strip():
        return None
    logger.info("TLE cache hit for %s", dataset)
    return text


def _cache_put_success(cache_file: Path, cache: dict, dataset: str, now: datetime, payload: str) -> None:
    cache[dataset] = {
        "timestamp": now.isoformat(),
        "payload": payload,
        "source": "CelesTrak",
        "status": "ok",
    }
    _save_cache(cache_file, cache)


# -----------------------
# Small helpers
# -----------------------
def _looks_like_html(text: str) -> bool:
    t = (text or "").lower()
    return ("<html" in t) or ("<!doctype html" in t) or ("</html>" in t)


def _looks_like_celestrak_error(text: str) -> bool:
    t = (text or "").strip().lower()
    needles = [
        "no gp data", "not found", "invalid query",
        "forbidden", "access denied", "attention required",
    ]
    return any(n in t[:200] for n in needles)


def _is_tle_line(line: Optional[str], number: str) -> bool:
    return bool(line) and line.startswith(number + " ") and len(line) == TLE_LINE_LENGTH


# -----------------------
# TLE file parser
# -----------------------
def parse_tle_file(text: str) -> List[TLE]:
    """
    Three-line sets: name, '1 ...', '2 ...' (69 characters each line).
    Blank lines, HTML, stray lines and incomplete sets are skipped.
    """
    if not text or not isinstance(text, str):
        logger.warning("parse_tle_file received empty content.")
        return []

    lines = [l.strip() for l in text.strip().splitlines()]
    tles: List[TLE] = []
    i = 0
    while i < len(lines):
        name = lines[i]
        if not name or name.startswith("1 ") or name.startswith("2 ") or name.startswith("<"):
            i += 1
            continue
        if i + 2 >= len(lines):
            break
        l1, l2 = lines[i + 1], lines[i + 2]
        if _is_tle_line(l1, "1") and _is_tle_line(l2, "2"):
            tles.append(TLE(name=name, line1=l1, line2=l2))
            i += 3
        else:
            i += 1
    return tles


# -----------------------
# CelesTrak fetch (retry + html/error detection)
# -----------------------
def _fetch_celestrak(dataset: str, session: Optional[requests.Session] = None) -> str:
    if session is None:
        with requests.Session() as s:
            return _fetch_celestrak(dataset, s)

    group = settings.IRIDIUM_DATASET_GROUPS[dataset]
    session.headers.update({
        "User-Agent": "SatMap/1.0",
        "Accept": "text/plain, */*;q=0.8",
    })
    params = {"GROUP": group, "FORMAT": "tle"}

    last_exc: Optional[Exception] = None
    for attempt in range(1, settings.TLE_FETCH_ATTEMPTS + 1):
        try:
            resp = session.get(settings.CELESTRAK_GP_URL, params=params, timeout=settings.TLE_FETCH_TIMEOUT_S)
            resp.raise_for_status()

            ct = (resp.headers.get("Content-Type", "") or "").lower()
            text = resp.text or ""

            if "text/html" in ct or _looks_like_html(text) or _looks_like_celestrak_error(text):
                raise RuntimeError("CelesTrak returned non-TLE content (HTML/error page)")

            return text

        except requests.HTTPError as he:
            last_exc = he
            status = he.response.status_code if he.response is not None else None
            if status == 404:
                raise RuntimeError(f"CelesTrak: group {group} not found (404)") from he

        except (requests.RequestException, RuntimeError) as e:
            last_exc = e

        if attempt < settings.TLE_FETCH_ATTEMPTS:
            time.sleep(0.6 * attempt)

    raise RuntimeError(f"CelesTrak failed after retries for {dataset}: {last_exc}") from last_exc


def fallback_tles() -> List[TLE]:
    name, l1, l2 = settings.FALLBACK_IRIDIUM_TLE
    return [TLE(name=name, line1=l1, line2=l2)]


# -----------------------
# Public API
# -----------------------
def fetch_dataset(dataset: str, cache_file: Optional[Path] = None,
                  session: Optional[requests.Session] = None) -> List[TLE]:
    """
    One dataset: disk cache (TTL) first, then CelesTrak.
    Raises RuntimeError if the network fetch fails.
    """
    if dataset not in settings.IRIDIUM_DATASET_GROUPS:
        raise ValueError(f"Unknown Iridium dataset: {dataset!r}")

    cache_file = Path(cache_file or settings.TLE_CACHE_FILE)
    now = datetime.now(timezone.utc)
    cache = _load_cache(cache_file)

    cached = _cache_get(cache, dataset, now)
    if cached is not None:
        tles = parse_tle_file(cached)
        if tles:
            return tles
        logger.warning("Cached payload for %s has no usable TLEs; refetching.", dataset)

    text = _fetch_celestrak(dataset, session=session)
    tles = parse_tle_file(text)
    if tles:
        _cache_put_success(cache_file, cache, dataset, now, text)
    return tles


def fetch_iridium_tles(datasets: Optional[Iterable[str]] = None,
                       cache_file: Optional[Path] = None,
                       session: Optional[requests.Session] = None) -> List[TLE]:
    """
    Public fetcher for the selected Iridium datasets (default: all).
    Falls back to a single placeholder TLE when no dataset yields any elements.
    """
    selected: Sequence[str] = tuple(datasets) if datasets is not None else settings.DEFAULT_IRIDIUM_DATASETS
    unknown = [d for d in selected if d not in settings.IRIDIUM_DATASET_GROUPS]
    if unknown:
        raise ValueError(f"Unknown Iridium datasets: {unknown}")
    logger.info("Requesting TLEs for datasets: %s", ", ".join(selected) or "(none)")

    all_tles: List[TLE] = []
    for dataset in selected:
        try:
            tles = fetch_dataset(dataset, cache_file=cache_file, session=session)
        except RuntimeError as e:
            logger.error("Error fetching TLEs for %s: %s", dataset, e)
            continue
        if tles:
            logger.info("Fetched and parsed %d TLEs for %s.", len(tles), dataset)
            all_tles.extend(tles)
        else:
            logger.warning("Fetched data for %s, but no valid TLEs were parsed.", dataset)

    if not all_tles:
        logger.warning("All TLE fetches failed or returned no parsable TLEs. Using fallback TLE.")
        return fallback_tles()

    logger.info("Total TLEs collected: %d", len(all_tles))
    return all_tles
