from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .eventually import PENDING, Eventually, fact_to_dict
from .signing import PENDING_UI, VerificationUI


@dataclass(frozen=True)
class BundleStatusState:
    """Everything the bundle screen shows, replaced whole on every change."""

    bundle_manifest: Eventually = PENDING
    duffle: Eventually = PENDING
    signing: VerificationUI = PENDING_UI
    has_full_bundle: Optional[bool] = None
    description_html: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bundle_manifest": fact_to_dict(self.bundle_manifest, lambda m: m.to_dict()),
            "duffle": fact_to_dict(
                self.duffle, lambda b: {"path": str(b.path), "version": b.version}
            ),
            "signing": self.signing.to_dict(),
            "has_full_bundle": self.has_full_bundle,
            "description_html": self.description_html,
        }


INITIAL_STATE = BundleStatusState()
