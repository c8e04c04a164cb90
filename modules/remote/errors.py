"""Failure taxonomy for remote AI calls.

Transports classify SDK/HTTP exceptions exactly once, at the point where
they surface, into one of the :class:`RemoteFailure` subclasses below. The
original exception is kept on ``.original`` (and as ``__cause__``) and the
failure text is preserved verbatim so callers can still reclassify a
terminal failure for display.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

TRANSIENT_MARKERS = ("429", "503", "quota", "overloaded")
QUOTA_MARKERS = ("429", "quota")
TRANSIENT_STATUS_CODES = (429, 503)


class FailureKind(str, Enum):
    """Structured classification of a failed remote call."""

    CREDENTIAL_MISSING = "credential_missing"
    TRANSIENT = "transient"
    HARD = "hard"
    EMPTY_RESULT = "empty_result"


class RemoteFailure(RuntimeError):
    """Base class for every classified remote failure."""

    kind: FailureKind = FailureKind.HARD

    def __init__(self, message: str, original: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.original = original


class CredentialMissing(RemoteFailure):
    """No usable API credential was configured."""

    kind = FailureKind.CREDENTIAL_MISSING


class TransientRemoteFailure(RemoteFailure):
    """Rate limited or overloaded; eligible for retry."""

    kind = FailureKind.TRANSIENT


class HardRemoteFailure(RemoteFailure):
    """Any other remote failure."""

    kind = FailureKind.HARD


class EmptyResult(RemoteFailure):
    """The call succeeded but carried no usable payload."""

    kind = FailureKind.EMPTY_RESULT


_KIND_TO_CLASS = {
    FailureKind.CREDENTIAL_MISSING: CredentialMissing,
    FailureKind.TRANSIENT: TransientRemoteFailure,
    FailureKind.HARD: HardRemoteFailure,
    FailureKind.EMPTY_RESULT: EmptyResult,
}


def _contains_marker(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def _status_code(exc: BaseException) -> Optional[int]:
    for attr in ("code", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_transient_text(text: str) -> bool:
    """Return True when the failure text signals rate limiting or overload."""
    return _contains_marker(text, TRANSIENT_MARKERS)


def is_quota_text(text: str) -> bool:
    """Return True when the failure text signals an exhausted quota."""
    return _contains_marker(text, QUOTA_MARKERS)


def failure_kind_of(exc: BaseException) -> FailureKind:
    """Return the structured kind of *exc*, classifying raw exceptions by text."""
    if isinstance(exc, RemoteFailure):
        return exc.kind
    if _status_code(exc) in TRANSIENT_STATUS_CODES or is_transient_text(str(exc)):
        return FailureKind.TRANSIENT
    return FailureKind.HARD


def classify_failure(exc: BaseException) -> RemoteFailure:
    """Wrap *exc* into the matching RemoteFailure, keeping its text and origin."""
    if isinstance(exc, RemoteFailure):
        return exc
    failure_cls = _KIND_TO_CLASS[failure_kind_of(exc)]
    return failure_cls(str(exc), original=exc)


def is_quota_failure(exc: BaseException) -> bool:
    """Classify a terminal failure for user messaging (quota vs. hard error)."""
    return is_quota_text(str(exc))
