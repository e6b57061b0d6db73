"""
Typed error sentinels raised by services.

Every error carries one stable machine-readable code; main.py maps the class
to an HTTP status and the error envelope.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, code: str, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(code)
        self.code = code
        self.message = message or code
        self.details = details or {}

    def envelope_error(self) -> str:
        return self.code

    def envelope_details(self) -> Dict[str, Any]:
        return dict(self.details)


class ValidationFailed(AppError):
    status_code = 400


class Unauthenticated(AppError):
    status_code = 401


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409


class StorageFailed(AppError):
    status_code = 502


class GenerationFailed(AppError):
    """Upstream generation failure; the code travels as details.reason."""

    status_code = 502

    def envelope_error(self) -> str:
        return "IMAGE_GENERATION_FAILED"

    def envelope_details(self) -> Dict[str, Any]:
        out = dict(self.details)
        out["reason"] = self.code
        return out


# guard failure; never surfaced as "forbidden"
SPACE_NOT_FOUND_OR_FORBIDDEN = "SPACE_NOT_FOUND_OR_FORBIDDEN"


class SpaceNotFoundOrForbidden(NotFound):
    def __init__(self) -> None:
        super().__init__(SPACE_NOT_FOUND_OR_FORBIDDEN, "space not found")

    def envelope_error(self) -> str:
        return "SPACE_NOT_FOUND"
