"""Upload a finished report to a sharing service.

The service accepts ``POST <base>/reports`` with a JSON body of the
exported entries and job options, and answers with the id of the
stored report.  The base URL defaults to ``DEFAULT_URL`` and can be
overridden with the ``SHARE_URL`` environment variable.
"""

from __future__ import annotations

import logging
import os

import requests

from ipsbench import __version__
from ipsbench.results import Report

log = logging.getLogger("ipsbench")

DEFAULT_URL = "https://benchmark.fyi"
_USER_AGENT = f"ipsbench/{__version__}"


def share_url_base() -> str:
    """The sharing service base URL."""
    return os.environ.get("SHARE_URL") or DEFAULT_URL


def share_report(
    report: Report,
    *,
    compare: bool = False,
    base_url: str | None = None,
    timeout: float = 10.0,
) -> str | None:
    """Upload *report* and return the URL it was shared at.

    Returns None (after logging a warning) if the upload fails for any
    network or server reason.
    """
    base = (base_url or share_url_base()).rstrip("/")
    payload = {
        "entries": report.data(),
        "options": {"compare": compare},
    }

    try:
        resp = requests.post(
            f"{base}/reports",
            json=payload,
            timeout=timeout,
            headers={"User-Agent": _USER_AGENT},
        )
    except requests.ConnectionError:
        log.warning("Error sharing report: could not connect to %s", base)
        return None
    except requests.Timeout:
        log.warning("Error sharing report: %s timed out", base)
        return None
    except requests.RequestException as exc:
        log.warning("Error sharing report: %s", exc)
        return None

    if resp.status_code != 200:
        log.warning("Error sharing report: HTTP %d from %s", resp.status_code, base)
        return None

    try:
        report_id = resp.json()["id"]
    except (ValueError, KeyError, TypeError, requests.JSONDecodeError):
        log.warning("Error sharing report: unexpected response from %s", base)
        return None

    url = f"{base}/{report_id}"
    log.info("Shared at: %s", url)
    return url
