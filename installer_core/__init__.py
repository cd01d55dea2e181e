"""Bundle status reconciliation for the installer screen."""

from .config import InstallerSettings, load_installer_settings
from .embedded import BundleSource
from .gate import InstallGate, InstallGateError, install_gate
from .reconciler import BundleStatusReconciler
from .signing import SigningStatus, VerificationUI
from .state import BundleStatusState

__all__ = [
    "BundleSource",
    "BundleStatusReconciler",
    "BundleStatusState",
    "InstallGate",
    "InstallGateError",
    "InstallerSettings",
    "SigningStatus",
    "VerificationUI",
    "install_gate",
    "load_installer_settings",
]
