from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .duffle import NotVerified, SignatureVerification, Verified
from .eventually import Failed, Result

VERIFICATION_FAILED_PREFIX = "Error: verification failed: "

PENDING_TEXT = "Verifying signature..."
UNSIGNED_TEXT = "This bundle is not digitally signed."
CHECK_ERROR_PREFIX = "Unable to check digital signature: "
DUFFLE_NOT_FOUND_TEXT = CHECK_ERROR_PREFIX + "Duffle binary not found"
FAILED_PREFIX = "Digital signature failed verification: "


class SigningStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"
    UNSIGNED = "unsigned"
    ERROR = "error"


@dataclass(frozen=True)
class VerificationUI:
    display: SigningStatus
    text: str

    def to_dict(self) -> dict:
        return {"status": self.display.value, "message": self.text}


PENDING_UI = VerificationUI(SigningStatus.PENDING, PENDING_TEXT)
UNSIGNED_UI = VerificationUI(SigningStatus.UNSIGNED, UNSIGNED_TEXT)
DUFFLE_NOT_FOUND_UI = VerificationUI(SigningStatus.ERROR, DUFFLE_NOT_FOUND_TEXT)


def strip_verification_prefix(reason: str) -> str:
    if reason.startswith(VERIFICATION_FAILED_PREFIX):
        return reason[len(VERIFICATION_FAILED_PREFIX):]
    return reason


def signing_status(result: Result[SignatureVerification]) -> VerificationUI:
    """Classify a verifier run: could-not-check is ERROR, checked-and-rejected is FAILED."""
    if isinstance(result, Failed):
        return VerificationUI(SigningStatus.ERROR, CHECK_ERROR_PREFIX + result.reason)
    outcome = result.value
    if isinstance(outcome, Verified):
        return VerificationUI(SigningStatus.VERIFIED, outcome.signer)
    if isinstance(outcome, NotVerified):
        return VerificationUI(SigningStatus.FAILED, FAILED_PREFIX + strip_verification_prefix(outcome.reason))
    raise TypeError(f"unknown verification outcome: {outcome!r}")
