"""Topic constants for the runtime bus."""

# Bundle status
BUNDLE_STATUS_CHANGED = "bundle.status.changed"
BUNDLE_INSTALL_REQUESTED = "bundle.install.requested"

# Errors
ERROR_RAISED = "error.raised"

STICKY_TOPICS = frozenset({BUNDLE_STATUS_CHANGED})

__all__ = [
    "BUNDLE_STATUS_CHANGED",
    "BUNDLE_INSTALL_REQUESTED",
    "ERROR_RAISED",
    "STICKY_TOPICS",
]
