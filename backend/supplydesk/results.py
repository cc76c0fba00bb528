"""
Explicit operation results.

Service components return Ok or Err instead of raising for expected
failures. Routes hand the result to responses.to_response, which is the only
place error kinds become HTTP status codes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    BUSINESS_RULE = "BUSINESS_RULE"
    UPSTREAM = "UPSTREAM"


@dataclass(frozen=True)
class Ok:
    data: Any = None
    pagination: dict | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    details: Any = field(default=None)

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok, Err]


def validation(message: str, details: Any = None) -> Err:
    return Err(ErrorKind.VALIDATION, message, details)


def not_found(label: str) -> Err:
    return Err(ErrorKind.NOT_FOUND, f"{label} not found")


def forbidden(message: str = "Access denied") -> Err:
    return Err(ErrorKind.FORBIDDEN, message)


def conflict(message: str) -> Err:
    return Err(ErrorKind.CONFLICT, message)


def business_rule(message: str, details: Any = None) -> Err:
    return Err(ErrorKind.BUSINESS_RULE, message, details)
