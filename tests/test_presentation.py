from dataclasses import replace
from pathlib import Path

import pytest

from installer_core import presentation
from installer_core.duffle import BinaryInfo
from installer_core.eventually import Failed, Ready, Succeeded
from installer_core.gate import install_gate
from installer_core.objectmodel import BundleManifest
from installer_core.signing import SigningStatus, VerificationUI
from installer_core.state import INITIAL_STATE, BundleStatusState

MANIFEST = BundleManifest(name="helloworld", version="0.1.2", description="Says hello")
DUFFLE = BinaryInfo(path=Path("duffle"), version="v0.1.0")


def _loaded(signing: VerificationUI, *, duffle=DUFFLE, manifest=None, full=False) -> BundleStatusState:
    return BundleStatusState(
        bundle_manifest=Ready(manifest or Succeeded(MANIFEST)),
        duffle=Ready(Succeeded(duffle)),
        signing=signing,
        has_full_bundle=full,
    )


@pytest.mark.parametrize(
    "status, severity, color",
    [
        (SigningStatus.ERROR, presentation.Severity.WARN, "orange"),
        (SigningStatus.FAILED, presentation.Severity.ERROR, "red"),
        (SigningStatus.VERIFIED, presentation.Severity.NEUTRAL, None),
        (SigningStatus.UNSIGNED, presentation.Severity.MUTED, "grey"),
        (SigningStatus.PENDING, presentation.Severity.NEUTRAL, None),
    ],
)
def test_signature_line_covers_every_status(status, severity, color) -> None:
    line = presentation.signature_line(VerificationUI(status, "text"))
    assert line.severity == severity
    assert line.color == color
    assert line.text == "text"


def test_initial_state_texts() -> None:
    assert presentation.bundle_version_text(INITIAL_STATE) == "Loading bundle details..."
    assert presentation.bundle_description_text(INITIAL_STATE) == "Loading bundle description..."
    assert presentation.thickness_text(INITIAL_STATE) == "Checking bundle type..."
    assert presentation.duffle_line(INITIAL_STATE).text == "Finding Duffle binary..."


def test_loaded_state_texts() -> None:
    state = _loaded(VerificationUI(SigningStatus.VERIFIED, "Alice"), full=True)
    assert presentation.bundle_version_text(state) == "Version 0.1.2"
    assert presentation.thickness_text(state).endswith("can be run offline")
    assert presentation.duffle_line(state).text == "Duffle version v0.1.0"

    thin = _loaded(VerificationUI(SigningStatus.VERIFIED, "Alice"), full=False)
    assert presentation.thickness_text(thin).endswith("from the network")


def test_failed_manifest_and_missing_duffle_texts() -> None:
    state = _loaded(
        VerificationUI(SigningStatus.ERROR, "x"),
        duffle=None,
        manifest=Failed("no bundle found in data"),
    )
    assert presentation.bundle_version_text(state) == "Can't load bundle: no bundle found in data"
    assert presentation.bundle_description_text(state) == ""
    line = presentation.duffle_line(state)
    assert line.text == "Duffle not found - cannot install bundle"
    assert line.severity == presentation.Severity.ERROR


def test_description_panel_prefers_html() -> None:
    state = _loaded(VerificationUI(SigningStatus.VERIFIED, "Alice"))
    panel = presentation.description_panel(state)
    assert (panel.location, panel.fmt, panel.text) == ("header", "text", "Says hello")

    with_html = replace(state, description_html="<h1>Hello</h1>")
    panel = presentation.description_panel(with_html)
    assert (panel.location, panel.fmt, panel.text) == ("segment", "html", "<h1>Hello</h1>")

    empty = _loaded(VerificationUI(SigningStatus.VERIFIED, "Alice"), manifest=Failed("gone"))
    assert presentation.description_panel(empty).text == "No description available"


@pytest.mark.parametrize(
    "status, allowed",
    [
        (SigningStatus.VERIFIED, True),
        (SigningStatus.UNSIGNED, True),
        (SigningStatus.FAILED, False),
        (SigningStatus.ERROR, False),
        (SigningStatus.PENDING, False),
    ],
)
def test_install_gate_follows_signing(status, allowed) -> None:
    assert install_gate(_loaded(VerificationUI(status, "why"))).allowed is allowed


def test_install_gate_blocks_without_duffle_or_manifest() -> None:
    assert install_gate(INITIAL_STATE).allowed is False
    no_duffle = _loaded(VerificationUI(SigningStatus.UNSIGNED, "x"), duffle=None)
    assert install_gate(no_duffle).reason == "Duffle not found - cannot install bundle"
    no_manifest = _loaded(VerificationUI(SigningStatus.UNSIGNED, "x"), manifest=Failed("bad json"))
    assert install_gate(no_manifest).reason == "Can't load bundle: bad json"
