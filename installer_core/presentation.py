from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .eventually import Failed, Pending, Succeeded
from .signing import SigningStatus, VerificationUI
from .state import BundleStatusState


class Severity(str, Enum):
    NEUTRAL = "neutral"
    MUTED = "muted"
    WARN = "warn"
    ERROR = "error"
    INFO = "info"


SEVERITY_COLORS = {
    Severity.NEUTRAL: None,
    Severity.MUTED: "grey",
    Severity.WARN: "orange",
    Severity.ERROR: "red",
    Severity.INFO: None,
}


@dataclass(frozen=True)
class StatusLine:
    severity: Severity
    text: str

    @property
    def color(self) -> Optional[str]:
        return SEVERITY_COLORS[self.severity]


@dataclass(frozen=True)
class DescriptionPanel:
    location: str
    fmt: str
    text: str


def signature_line(signing: VerificationUI) -> StatusLine:
    display = signing.display
    if display == SigningStatus.ERROR:
        return StatusLine(Severity.WARN, signing.text)
    if display == SigningStatus.FAILED:
        return StatusLine(Severity.ERROR, signing.text)
    if display == SigningStatus.VERIFIED:
        return StatusLine(Severity.NEUTRAL, signing.text)
    if display == SigningStatus.UNSIGNED:
        return StatusLine(Severity.MUTED, signing.text)
    if display == SigningStatus.PENDING:
        return StatusLine(Severity.NEUTRAL, signing.text)
    # statuses added later render plainly until mapped
    return StatusLine(Severity.NEUTRAL, signing.text)


def bundle_version_text(state: BundleStatusState) -> str:
    fact = state.bundle_manifest
    if isinstance(fact, Pending):
        return "Loading bundle details..."
    if isinstance(fact.result, Succeeded):
        return f"Version {fact.result.value.version}"
    return f"Can't load bundle: {fact.result.reason}"


def bundle_description_text(state: BundleStatusState) -> str:
    fact = state.bundle_manifest
    if isinstance(fact, Pending):
        return "Loading bundle description..."
    if isinstance(fact.result, Succeeded):
        return fact.result.value.description
    return ""


def thickness_text(state: BundleStatusState) -> str:
    if state.has_full_bundle is None:
        return "Checking bundle type..."
    if state.has_full_bundle:
        return "This installer contains all required images and can be run offline"
    return "This installer will download any required images from the network"


def duffle_line(state: BundleStatusState) -> StatusLine:
    fact = state.duffle
    if isinstance(fact, Pending):
        return StatusLine(Severity.INFO, "Finding Duffle binary...")
    result = fact.result
    if isinstance(result, Succeeded) and result.value is not None:
        return StatusLine(Severity.INFO, f"Duffle version {result.value.version}")
    if isinstance(result, Failed):
        return StatusLine(Severity.ERROR, f"Duffle not found - cannot install bundle ({result.reason})")
    return StatusLine(Severity.ERROR, "Duffle not found - cannot install bundle")


def description_panel(state: BundleStatusState) -> DescriptionPanel:
    if state.description_html:
        return DescriptionPanel(location="segment", fmt="html", text=state.description_html)
    text = bundle_description_text(state) or "No description available"
    return DescriptionPanel(location="header", fmt="text", text=text)
