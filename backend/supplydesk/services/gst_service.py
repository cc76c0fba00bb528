"""
GSTIN lookup via the RapidAPI GSTIN tool.

The upstream answer is passed through as-is with its own success flag; an
unreachable or failing upstream is an UPSTREAM error, never a server error.
"""

import logging
import re

import httpx
from flask import current_app

from ..results import Err, ErrorKind, Ok, Result, validation

logger = logging.getLogger(__name__)

# 2 digit state code, 10 char PAN, entity digit, Z, checksum
GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z0-9]{10}[0-9A-Z]Z[0-9A-Z]$")


def _looks_successful(data) -> bool:
    if not isinstance(data, dict):
        return False
    inner = data.get("data")
    if isinstance(inner, dict) and inner.get("gstin"):
        return True
    return bool(data.get("gstin")) or data.get("success") is True


def lookup_gstin(gstin: str, *, client: httpx.Client | None = None) -> Result:
    """
    Fetch the registration details for a GSTIN.

    Pass client to reuse a connection pool (tests pass one built on
    httpx.MockTransport).
    """
    gstin = (gstin or "").strip().upper()
    if not GSTIN_PATTERN.match(gstin):
        return validation("Invalid GSTIN format")

    config = current_app.config
    if not config.get("RAPIDAPI_KEY"):
        logger.warning("GST lookup requested but RAPIDAPI_KEY is not configured")
        return Err(ErrorKind.UPSTREAM, "GST lookup service is not configured")

    url = config["GST_API_URL"].format(gstin=gstin)
    headers = {
        "x-rapidapi-host": config["RAPIDAPI_HOST"],
        "x-rapidapi-key": config["RAPIDAPI_KEY"],
    }

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=config.get("GST_LOOKUP_TIMEOUT", 10))
    try:
        response = client.get(url, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.TimeoutException:
        logger.warning("GST lookup timed out for %s", gstin)
        return Err(ErrorKind.UPSTREAM, "GST lookup timed out")
    except httpx.HTTPStatusError as exc:
        logger.warning("GST lookup failed for %s: HTTP %s", gstin, exc.response.status_code)
        return Err(ErrorKind.UPSTREAM, "Failed to fetch GST details")
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("GST lookup error for %s: %s", gstin, exc)
        return Err(ErrorKind.UPSTREAM, "Failed to fetch GST details")
    finally:
        if owns_client:
            client.close()

    if not _looks_successful(data):
        logger.info("GST lookup returned no details for %s", gstin)
        return Err(ErrorKind.UPSTREAM, "GST number not found", details=data)

    logger.info("GST lookup succeeded for %s", gstin)
    return Ok(data.get("data") if isinstance(data.get("data"), dict) else data)
