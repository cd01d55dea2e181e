import asyncio
import os
import time
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt6.QtWidgets")

from app_ui.screens.bundle_screen import BundleScreen  # noqa: E402
from installer_core.duffle import BinaryInfo  # noqa: E402
from installer_core.embedded import BundleInfo  # noqa: E402
from installer_core.eventually import Succeeded  # noqa: E402
from installer_core.objectmodel import BundleManifest  # noqa: E402
from installer_core.reconciler import BundleStatusReconciler  # noqa: E402

DUFFLE = BinaryInfo(path=Path("/usr/local/bin/duffle"), version="v0.1.0")
MANIFEST = BundleManifest(name="helloworld", version="0.1.2", description="Hello")
UNSIGNED_TEXT = "This bundle is not digitally signed."


def _app() -> QtWidgets.QApplication:
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    return app


def _slow_unsigned_reconciler(settings, delay_s: float) -> BundleStatusReconciler:
    async def _find_binary(_settings):
        await asyncio.sleep(delay_s)
        return Succeeded(DUFFLE)

    async def _load_bundle(_source):
        return Succeeded(BundleInfo(MANIFEST, is_signed=False, is_full_bundle=False))

    async def _has_full_bundle(_source):
        return False

    async def _load_description(_source):
        return None

    async def _verify(binary, path, timeout_s):
        raise AssertionError("unsigned bundles are never verified")

    async def _with_bundle_file(_source, fn):
        return await fn(Path("/tmp/bundle.json"), False)

    return BundleStatusReconciler(
        settings,
        find_binary=_find_binary,
        load_bundle=_load_bundle,
        has_full_bundle=_has_full_bundle,
        load_description=_load_description,
        verify=_verify,
        with_bundle_file=_with_bundle_file,
    )


def _pump(app, screen: BundleScreen, seconds: float, until=None) -> None:
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline:
        app.processEvents()
        if until is not None and until():
            return
        time.sleep(0.01)


def _settle(app, screen: BundleScreen) -> None:
    screen.deactivate()
    _pump(app, screen, 5.0, until=lambda: not screen.is_busy())


def test_finished_state_is_rendered(settings) -> None:
    app = _app()
    screen = BundleScreen(_slow_unsigned_reconciler(settings, 0.05))
    screen.show()
    try:
        _pump(app, screen, 5.0, until=lambda: not screen.is_busy())
        _pump(app, screen, 0.1)
        assert screen.signature_label.text() == UNSIGNED_TEXT
        assert screen.install_card.button.isEnabled()
    finally:
        _settle(app, screen)


def test_reshow_while_checking_restarts_and_completes(settings) -> None:
    app = _app()
    screen = BundleScreen(_slow_unsigned_reconciler(settings, 0.3))
    screen.show()
    try:
        _pump(app, screen, 0.05)
        screen.hide()
        screen.show()
        _pump(app, screen, 5.0, until=lambda: screen.signature_label.text() == UNSIGNED_TEXT)
        assert screen.signature_label.text() == UNSIGNED_TEXT
        assert screen.install_card.button.isEnabled()
        assert screen.reconciler.state.signing.text == UNSIGNED_TEXT
    finally:
        _settle(app, screen)


def test_hidden_screen_ignores_late_results(settings) -> None:
    app = _app()
    screen = BundleScreen(_slow_unsigned_reconciler(settings, 0.2))
    screen.show()
    try:
        _pump(app, screen, 0.05)
        screen.hide()
        _pump(app, screen, 5.0, until=lambda: not screen.is_busy())
        _pump(app, screen, 0.1)
        assert screen.signature_label.text() == "Verifying signature..."
        assert not screen.install_card.button.isEnabled()
    finally:
        _settle(app, screen)
