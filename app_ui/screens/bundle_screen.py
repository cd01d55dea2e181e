from typing import Optional

from PyQt6 import QtCore, QtWidgets

from app_ui.ui_helpers.status_worker import StatusWorker
from diagnostics.logging_setup import get_logger
from installer_core import presentation
from installer_core.gate import install_gate
from installer_core.reconciler import BundleStatusReconciler
from installer_core.state import INITIAL_STATE, BundleStatusState

INSTALL_DESCRIPTION = "Run the bundle install steps, as defined by the bundle author."
UPGRADE_DESCRIPTION = "Run upgrade steps on an active bundle."
UNINSTALL_DESCRIPTION = "Run the uninstall steps, as defined by the bundle author."
NO_INSTALL_DETECTED = "No install detected."

logger = get_logger("bundle_screen")


def _style_for(line: presentation.StatusLine, *, bold: bool = False) -> str:
    parts = []
    if line.color:
        parts.append(f"color: {line.color};")
    if bold:
        parts.append("font-weight: bold;")
    return " ".join(parts)


class _ActionCard(QtWidgets.QFrame):
    def __init__(self, title: str, meta: str, description: str, parent: Optional[QtWidgets.QWidget] = None):
        super().__init__(parent)
        self.setFrameShape(QtWidgets.QFrame.Shape.StyledPanel)
        layout = QtWidgets.QVBoxLayout(self)
        self.button = QtWidgets.QPushButton(title)
        self.button.setEnabled(False)
        layout.addWidget(self.button)
        self.meta_label = QtWidgets.QLabel(meta)
        self.meta_label.setStyleSheet("color: grey;")
        layout.addWidget(self.meta_label)
        desc = QtWidgets.QLabel(description)
        desc.setWordWrap(True)
        layout.addWidget(desc)

    def set_meta(self, text: str) -> None:
        self.meta_label.setText(text)


class BundleScreen(QtWidgets.QWidget):
    """Bundle details, signature status and the Install/Upgrade/Uninstall cards."""

    def __init__(self, reconciler: BundleStatusReconciler, parent: Optional[QtWidgets.QWidget] = None):
        super().__init__(parent)
        self.reconciler = reconciler
        self._worker: Optional[StatusWorker] = None
        self._thread: Optional[QtCore.QThread] = None
        self._shown = False
        self._reactivate = False

        layout = QtWidgets.QVBoxLayout(self)

        header = QtWidgets.QFrame()
        header.setFrameShape(QtWidgets.QFrame.Shape.StyledPanel)
        header_layout = QtWidgets.QVBoxLayout(header)
        self.version_label = QtWidgets.QLabel()
        self.version_label.setStyleSheet("font-weight: bold;")
        self.thickness_label = QtWidgets.QLabel()
        self.signature_label = QtWidgets.QLabel()
        self.description_label = QtWidgets.QLabel()
        self.description_label.setWordWrap(True)
        self.description_label.setStyleSheet("font-size: 14px;")
        for widget in (self.version_label, self.thickness_label, self.signature_label, self.description_label):
            header_layout.addWidget(widget)
        layout.addWidget(header)

        self.description_browser = QtWidgets.QTextBrowser()
        self.description_browser.setVisible(False)
        layout.addWidget(self.description_browser)

        cards = QtWidgets.QHBoxLayout()
        self.install_card = _ActionCard("Install", "", INSTALL_DESCRIPTION)
        self.install_card.button.clicked.connect(self._on_install_clicked)
        self.upgrade_card = _ActionCard("Upgrade", NO_INSTALL_DETECTED, UPGRADE_DESCRIPTION)
        self.uninstall_card = _ActionCard("Uninstall", NO_INSTALL_DETECTED, UNINSTALL_DESCRIPTION)
        for card in (self.install_card, self.upgrade_card, self.uninstall_card):
            cards.addWidget(card)
        layout.addLayout(cards)

        self.duffle_label = QtWidgets.QLabel()
        layout.addWidget(self.duffle_label)
        layout.addStretch()

        self.render_state(INITIAL_STATE)

    # lifecycle ------------------------------------------------------------

    def showEvent(self, event):  # noqa: N802
        super().showEvent(event)
        self.activate()

    def hideEvent(self, event):  # noqa: N802
        self.deactivate()
        super().hideEvent(event)

    def activate(self) -> None:
        self._shown = True
        if self._thread is not None:
            # the running activation is stopped; a fresh one starts when it ends
            self._reactivate = True
            self._worker.stop()
            return
        self._reactivate = False
        worker = StatusWorker(self.reconciler)
        thread = QtCore.QThread()
        self._worker = worker
        self._thread = thread
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        queued = QtCore.Qt.ConnectionType.QueuedConnection
        worker.state_changed.connect(self._on_state_changed, queued)
        worker.finished.connect(self._on_worker_finished, queued)
        worker.error.connect(self._on_worker_error, queued)
        thread.start()

    def deactivate(self) -> None:
        self._shown = False
        self._reactivate = False
        worker = self._worker
        if worker is None:
            return
        worker.stop()
        try:
            worker.state_changed.disconnect(self._on_state_changed)
        except TypeError:
            pass

    @QtCore.pyqtSlot(object)
    def _on_worker_finished(self, state: BundleStatusState) -> None:
        self._release_worker()
        if self._reactivate and self._shown:
            self.activate()
        elif self._shown:
            self.render_state(state)

    @QtCore.pyqtSlot(str)
    def _on_worker_error(self, message: str) -> None:
        logger.error("bundle status worker failed: %s", message)
        self._release_worker()
        if self._reactivate and self._shown:
            self.activate()

    def _release_worker(self) -> None:
        worker, thread = self._worker, self._thread
        self._worker = None
        self._thread = None
        if thread is not None:
            thread.quit()
            thread.wait()
            thread.deleteLater()
        if worker is not None:
            worker.deleteLater()

    def is_busy(self) -> bool:
        return self._thread is not None

    # rendering ------------------------------------------------------------

    @QtCore.pyqtSlot(object)
    def _on_state_changed(self, state: BundleStatusState) -> None:
        self.render_state(state)

    def render_state(self, state: BundleStatusState) -> None:
        version = presentation.bundle_version_text(state)
        self.version_label.setText(version)
        self.thickness_label.setText(presentation.thickness_text(state))

        signature = presentation.signature_line(state.signing)
        self.signature_label.setText(signature.text)
        self.signature_label.setStyleSheet(_style_for(signature))

        panel = presentation.description_panel(state)
        if panel.location == "segment":
            self.description_label.setVisible(False)
            self.description_browser.setHtml(panel.text)
            self.description_browser.setVisible(True)
        else:
            self.description_browser.setVisible(False)
            self.description_label.setText(panel.text)
            self.description_label.setVisible(True)

        duffle = presentation.duffle_line(state)
        self.duffle_label.setText(duffle.text)
        self.duffle_label.setStyleSheet(_style_for(duffle, bold=True))

        gate = install_gate(state)
        self.install_card.set_meta(version)
        self.install_card.button.setEnabled(gate.allowed)
        self.install_card.button.setToolTip("" if gate.allowed else gate.reason)

    def _on_install_clicked(self) -> None:
        gate = self.reconciler.trigger_install()
        if not gate.allowed:
            QtWidgets.QMessageBox.warning(self, "Install", gate.reason)
