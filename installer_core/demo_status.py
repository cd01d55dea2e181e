from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from diagnostics.logging_setup import configure_logging
from runtime_bus.bus import RuntimeBus

try:
    from runtime_bus import topics as BUS_TOPICS
except Exception:  # pragma: no cover
    BUS_TOPICS = None

from .config import load_installer_settings
from .presentation import bundle_version_text, duffle_line, signature_line, thickness_text
from .reconciler import BundleStatusReconciler

STATUS_TOPIC = BUS_TOPICS.BUNDLE_STATUS_CHANGED if BUS_TOPICS else "bundle.status.changed"


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check bundle status and whether it can be installed")
    parser.add_argument("--config", type=Path, default=None, help="Installer config JSON path")
    parser.add_argument("--bundle-dir", type=Path, default=None, help="Override the bundle directory")
    parser.add_argument("--json", action="store_true", help="Print each state as JSON")
    parser.add_argument("--install", action="store_true", help="Request install when the gate is open")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    configure_logging()
    settings = load_installer_settings(args.config)
    if args.bundle_dir is not None:
        settings = replace(settings, bundle_dir=args.bundle_dir)
    bus = RuntimeBus(sticky_topics=[STATUS_TOPIC])

    def _on_status(envelope):
        payload = getattr(envelope, "payload", {}) or {}
        if args.json:
            print(json.dumps(payload, sort_keys=True))
            return
        signing = payload.get("signing") or {}
        print(f"[status] {signing.get('status')}: {signing.get('message')}")

    sub_id = bus.subscribe(STATUS_TOPIC, _on_status)
    reconciler = BundleStatusReconciler(settings, bus=bus)
    try:
        state = asyncio.run(reconciler.activate())
    finally:
        bus.unsubscribe(sub_id)
        reconciler.deactivate()

    if not args.json:
        print(f"[bundle] {bundle_version_text(state)}")
        print(f"[bundle] {thickness_text(state)}")
        print(f"[duffle] {duffle_line(state).text}")
        print(f"[signature] {signature_line(state.signing).text}")
    gate = reconciler.install_gate()
    print(f"[install] {'allowed' if gate.allowed else 'blocked'}: {gate.reason}")
    if args.install and gate.allowed:
        reconciler.trigger_install()
    return 0 if gate.allowed else 1


if __name__ == "__main__":
    sys.exit(main())
