from __future__ import annotations

from dataclasses import dataclass

from .eventually import Failed, Pending, Succeeded
from .signing import SigningStatus
from .state import BundleStatusState

INSTALLABLE_SIGNING = (SigningStatus.VERIFIED, SigningStatus.UNSIGNED)


class InstallGateError(RuntimeError):
    pass


@dataclass(frozen=True)
class InstallGate:
    allowed: bool
    reason: str


def install_gate(state: BundleStatusState) -> InstallGate:
    """Decide whether install may be offered for a reconciled status."""
    manifest = state.bundle_manifest
    duffle = state.duffle
    if isinstance(manifest, Pending) or isinstance(duffle, Pending):
        return InstallGate(False, "Still checking the bundle")
    if isinstance(manifest.result, Failed):
        return InstallGate(False, f"Can't load bundle: {manifest.result.reason}")
    if not isinstance(duffle.result, Succeeded) or duffle.result.value is None:
        return InstallGate(False, "Duffle not found - cannot install bundle")
    signing = state.signing
    if signing.display == SigningStatus.PENDING:
        return InstallGate(False, "Still verifying the signature")
    if signing.display not in INSTALLABLE_SIGNING:
        return InstallGate(False, signing.text)
    return InstallGate(True, "Ready to install")
