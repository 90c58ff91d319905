from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CallbackErrorKind(str, Enum):
    """Reasons an authorization callback did not yield a code."""

    TIMED_OUT = "timed_out"
    MISSING_AUTHORIZATION_CODE = "missing_authorization_code"
    STATE_MISMATCH = "state_mismatch"


@dataclass(frozen=True)
class Success:
    code: str

    def __post_init__(self) -> None:
        if not self.code:
            raise ValueError("authorization code must not be empty")

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: CallbackErrorKind
    # Provider supplied error/error_description, diagnostics only
    detail: str | None = None

    @property
    def is_success(self) -> bool:
        return False


Outcome = Success | Failure
