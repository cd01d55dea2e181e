# =============================================================================
# NAV INDEX (search these tags)
# [NAV-00] Imports / constants
# [NAV-90] MainWindow
# [NAV-99] main() entrypoint
# =============================================================================

# === [NAV-00] Imports / constants ============================================
# region NAV-00 Imports / constants
import sys
from typing import Any, Dict

from PyQt6 import QtWidgets

from app_ui.screens.bundle_screen import BundleScreen
from diagnostics.logging_setup import configure_logging, get_logger
from installer_core.config import load_installer_settings
from installer_core.contract import ACTION_INSTALL
from installer_core.eventually import Succeeded
from installer_core.reconciler import BundleStatusReconciler
from runtime_bus import get_global_bus

WINDOW_TITLE = "Bundle Installer"
logger = get_logger("app")
# endregion


# === [NAV-90] MainWindow =====================================================
# region NAV-90 MainWindow
class MainWindow(QtWidgets.QMainWindow):
    """Hosts the bundle screen and receives the operator's chosen action."""

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.pending_action: Dict[str, Any] = {}
        settings = load_installer_settings()
        self.reconciler = BundleStatusReconciler(settings, bus=get_global_bus(), parent=self)
        self.bundle_screen = BundleScreen(self.reconciler)
        self.setCentralWidget(self.bundle_screen)

    def request_action(self, action: str, state: Dict[str, Any]) -> None:
        self.pending_action = {"action": action, "state": state}
        fact = state.get("bundle_manifest")
        result = getattr(fact, "result", None)
        if action == ACTION_INSTALL and isinstance(result, Succeeded):
            manifest = result.value
            logger.info("install handed off name=%s version=%s", manifest.name, manifest.version)
            QtWidgets.QMessageBox.information(
                self,
                "Install",
                f"Installing {manifest.name} version {manifest.version}.",
            )

    def closeEvent(self, event):  # noqa: N802
        self.bundle_screen.deactivate()
        super().closeEvent(event)
# endregion


# === [NAV-99] main() entrypoint ==============================================
# region NAV-99 main() entrypoint
def main():
    info = configure_logging()
    print(f"Logging to {info['log_path']}")
    app = QtWidgets.QApplication(sys.argv)
    window = MainWindow()
    window.resize(900, 600)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
# endregion
