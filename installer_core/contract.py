from __future__ import annotations

from typing import Any, Dict, Protocol

ACTION_INSTALL = "install"


class Actionable(Protocol):
    """Parent orchestrator that carries out the operator's chosen action."""

    def request_action(self, action: str, state: Dict[str, Any]) -> None:
        ...
