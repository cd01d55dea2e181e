# =============================================================================
# NAV INDEX (search these tags)
# [NAV-00] Imports / constants
# [NAV-10] Config loading (defaults/roaming)
# [NAV-20] Public getters
# [NAV-99] End
# =============================================================================

# === [NAV-00] Imports / constants ============================================
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

CONFIG_PATH = Path("data/roaming/installer_config.json")
_DEFAULT_INSTALLER_CONFIG = {
    "bundle_dir": "data",
    "duffle_path": None,
    "version_timeout_s": 5.0,
    "verify_timeout_s": 60.0,
}


@dataclass(frozen=True)
class InstallerSettings:
    bundle_dir: Path
    duffle_path: Optional[Path]
    version_timeout_s: float
    verify_timeout_s: float


# === [NAV-10] Config loading (defaults/roaming) ==============================
def load_installer_config(path: Optional[Path] = None) -> Dict:
    path = path or CONFIG_PATH
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(_DEFAULT_INSTALLER_CONFIG, indent=2), encoding="utf-8")
        return _DEFAULT_INSTALLER_CONFIG.copy()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return _DEFAULT_INSTALLER_CONFIG.copy()
    if not isinstance(data, dict):
        return _DEFAULT_INSTALLER_CONFIG.copy()
    for key, value in _DEFAULT_INSTALLER_CONFIG.items():
        data.setdefault(key, value)
    return data


def save_installer_config(data: Dict, path: Optional[Path] = None) -> None:
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# === [NAV-20] Public getters ==================================================
def load_installer_settings(path: Optional[Path] = None) -> InstallerSettings:
    config = load_installer_config(path)
    duffle_path = config.get("duffle_path")
    return InstallerSettings(
        bundle_dir=Path(config.get("bundle_dir") or _DEFAULT_INSTALLER_CONFIG["bundle_dir"]),
        duffle_path=Path(duffle_path) if duffle_path else None,
        version_timeout_s=_as_timeout(config.get("version_timeout_s"), "version_timeout_s"),
        verify_timeout_s=_as_timeout(config.get("verify_timeout_s"), "verify_timeout_s"),
    )


def _as_timeout(value, key: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return float(_DEFAULT_INSTALLER_CONFIG[key])
    if timeout <= 0:
        return float(_DEFAULT_INSTALLER_CONFIG[key])
    return timeout


# === [NAV-99] End =============================================================
__all__ = [
    "CONFIG_PATH",
    "InstallerSettings",
    "load_installer_config",
    "save_installer_config",
    "load_installer_settings",
]
