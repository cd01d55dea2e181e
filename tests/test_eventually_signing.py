import pytest

from installer_core.duffle import NotVerified, Verified
from installer_core.eventually import (
    PENDING,
    Failed,
    Ready,
    Succeeded,
    fact_to_dict,
    failed,
    is_pending,
    map_result,
    succeeded,
)
from installer_core.signing import (
    SigningStatus,
    VERIFICATION_FAILED_PREFIX,
    signing_status,
    strip_verification_prefix,
)


def test_map_result_passes_failure_through() -> None:
    assert map_result(Succeeded(2), lambda v: v * 10) == Succeeded(20)
    failure = Failed("unreadable")
    assert map_result(failure, lambda v: v * 10) is failure
    assert succeeded(Succeeded(None)) is True
    assert failed(Succeeded(None)) is False


def test_fact_to_dict_distinguishes_absent_from_failed() -> None:
    assert is_pending(PENDING)
    assert fact_to_dict(PENDING) == {"ready": False}
    assert fact_to_dict(Ready(Succeeded(None))) == {"ready": True, "ok": True, "result": None}
    assert fact_to_dict(Ready(Failed("boom"))) == {"ready": True, "ok": False, "error": "boom"}


def test_verified_signer_is_shown_verbatim() -> None:
    ui = signing_status(Succeeded(Verified("Alice <alice@example.com>")))
    assert ui.display == SigningStatus.VERIFIED
    assert ui.text == "Alice <alice@example.com>"


@pytest.mark.parametrize(
    "reason, expected",
    [
        ("Error: verification failed: hash mismatch", "hash mismatch"),
        ("openpgp: signature made by unknown entity", "openpgp: signature made by unknown entity"),
        ("note Error: verification failed: inner", "note Error: verification failed: inner"),
    ],
)
def test_not_verified_strips_only_a_leading_prefix(reason: str, expected: str) -> None:
    ui = signing_status(Succeeded(NotVerified(reason)))
    assert ui.display == SigningStatus.FAILED
    assert ui.text == "Digital signature failed verification: " + expected


def test_verifier_process_failure_is_error_not_failed() -> None:
    ui = signing_status(Failed("duffle: Permission denied"))
    assert ui.display == SigningStatus.ERROR
    assert ui.text == "Unable to check digital signature: duffle: Permission denied"


def test_strip_prefix_exact() -> None:
    assert strip_verification_prefix(VERIFICATION_FAILED_PREFIX) == ""
    assert strip_verification_prefix("Error: verification failed:x") == "Error: verification failed:x"
