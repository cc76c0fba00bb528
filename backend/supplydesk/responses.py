# Overview: Maps Ok/Err results to the JSON response envelope.

from __future__ import annotations

from flask import current_app, request

from .pagination import Page
from .results import Err, ErrorKind, Ok, Result
from .time_utils import parse_iso_datetime
from .validation import ValidationError

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 400,
    ErrorKind.BUSINESS_RULE: 400,
    # Upstream failures are reported in-band with success: false
    ErrorKind.UPSTREAM: 200,
}


def to_response(result: Result, status: int = 200):
    """Render a result as {success, data?, message?, pagination?} plus status."""
    if isinstance(result, Ok):
        body: dict = {"success": True}
        if result.data is not None:
            body["data"] = result.data
        if result.message:
            body["message"] = result.message
        if result.pagination is not None:
            body["pagination"] = result.pagination
        return body, status

    if isinstance(result, Err):
        if result.kind is ErrorKind.FORBIDDEN:
            current_app.logger.warning(
                "Forbidden %s %s: %s", request.method, request.path, result.message
            )
        body = {"success": False, "message": result.message}
        if result.details is not None:
            body["errors"] = result.details
        return body, STATUS_BY_KIND[result.kind]

    raise TypeError(f"Unexpected result type: {type(result)!r}")


def error_body(message: str, status: int):
    return {"success": False, "message": message}, status


def pagination_args(default_limit: int = 10, max_limit: int = 100) -> Page:
    """Read page/limit query params (1-indexed, limit capped)."""
    page = request.args.get("page", default=1, type=int) or 1
    limit = request.args.get("limit", default=default_limit, type=int) or default_limit
    if page < 1:
        page = 1
    if limit < 1:
        limit = default_limit
    if limit > max_limit:
        limit = max_limit
    return Page(number=page, limit=limit)


def query_datetime(name: str, *, end_of_day: bool = False):
    """
    Read an ISO date/datetime query param; None when absent.

    A bare YYYY-MM-DD end bound covers the whole day.
    """
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date")
    if end_of_day and len(raw) == 10:
        value = value.replace(hour=23, minute=59, second=59, microsecond=999999)
    return value


def query_bool(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("true", "1", "yes")
