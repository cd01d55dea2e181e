import asyncio
from typing import Optional

from PyQt6 import QtCore

from installer_core.reconciler import BundleStatusReconciler
from installer_core.state import BundleStatusState


class StatusWorker(QtCore.QObject):
    """Runs one reconciler activation on its own event loop inside a QThread."""

    state_changed = QtCore.pyqtSignal(object)
    finished = QtCore.pyqtSignal(object)
    error = QtCore.pyqtSignal(str)

    def __init__(self, reconciler: BundleStatusReconciler):
        super().__init__()
        self._reconciler = reconciler
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @QtCore.pyqtSlot()
    def run(self):
        def _forward(state: BundleStatusState) -> None:
            self.state_changed.emit(state)

        async def _activate() -> BundleStatusState:
            self._loop = asyncio.get_running_loop()
            return await self._reconciler.activate()

        self._reconciler.add_listener(_forward)
        try:
            state = asyncio.run(_activate())
            self.finished.emit(state)
        except Exception as exc:  # pragma: no cover - defensive
            self.error.emit(str(exc))
        finally:
            self._loop = None
            self._reconciler.remove_listener(_forward)

    def stop(self) -> None:
        loop = self._loop
        if loop is not None and loop.is_running():
            loop.call_soon_threadsafe(self._reconciler.deactivate)
        else:
            self._reconciler.deactivate()
