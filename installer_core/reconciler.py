"""Reconciles bundle, duffle and signature facts into one screen state.

An activation runs in three steps:

1. reset to the initial state (everything pending, "Verifying signature...");
2. load the bundle manifest, locate duffle, classify full/thin bundles and
   read the optional HTML description concurrently, then publish them in a
   single state write;
3. unless duffle or the manifest is missing, run the signature check against
   a scratch copy of the bundle and publish the signing outcome.

Deactivating bumps the activation generation; results from an older
generation are dropped instead of written.
An ERROR signing outcome is also raised on the bus error topic.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from diagnostics.logging_setup import get_logger

try:
    from runtime_bus import topics as BUS_TOPICS
except Exception:  # pragma: no cover
    BUS_TOPICS = None

from . import duffle as duffle_mod
from . import embedded
from .config import InstallerSettings
from .contract import ACTION_INSTALL, Actionable
from .duffle import BinaryInfo, SignatureVerification
from .embedded import BundleInfo, BundleSource
from .eventually import Failed, Result, Succeeded, failed, map_result, ready
from .gate import InstallGate, InstallGateError, install_gate
from .signing import (
    CHECK_ERROR_PREFIX,
    DUFFLE_NOT_FOUND_UI,
    PENDING_UI,
    UNSIGNED_UI,
    SigningStatus,
    VerificationUI,
    signing_status,
)
from .state import INITIAL_STATE, BundleStatusState

logger = get_logger("reconciler")

STATUS_CHANGED_TOPIC = getattr(BUS_TOPICS, "BUNDLE_STATUS_CHANGED", "bundle.status.changed")
INSTALL_REQUESTED_TOPIC = getattr(BUS_TOPICS, "BUNDLE_INSTALL_REQUESTED", "bundle.install.requested")
ERROR_RAISED_TOPIC = getattr(BUS_TOPICS, "ERROR_RAISED", "error.raised")

StateListener = Callable[[BundleStatusState], None]
BinaryFinder = Callable[[InstallerSettings], Awaitable[Result[Optional[BinaryInfo]]]]
BundleLoader = Callable[[BundleSource], Awaitable[Result[BundleInfo]]]
FullBundleCheck = Callable[[BundleSource], Awaitable[bool]]
DescriptionLoader = Callable[[BundleSource], Awaitable[Optional[str]]]
Verifier = Callable[[BinaryInfo, Path, float], Awaitable[Result[SignatureVerification]]]
BundleFileScope = Callable[[BundleSource, Callable[[Path, bool], Awaitable[Any]]], Awaitable[Any]]


class BundleStatusReconciler:
    def __init__(
        self,
        settings: InstallerSettings,
        *,
        bus: Any = None,
        parent: Optional[Actionable] = None,
        source: Optional[BundleSource] = None,
        find_binary: BinaryFinder = duffle_mod.find_duffle_binary,
        load_bundle: BundleLoader = embedded.load_bundle,
        has_full_bundle: FullBundleCheck = embedded.has_full_bundle,
        load_description: DescriptionLoader = embedded.load_description,
        verify: Verifier = duffle_mod.verify_file,
        with_bundle_file: BundleFileScope = embedded.with_bundle_file,
        bus_source: str = "bundle_status",
    ):
        self._settings = settings
        self._source = source or BundleSource(settings.bundle_dir)
        self._bus = bus
        self._parent = parent
        self._find_binary = find_binary
        self._load_bundle = load_bundle
        self._has_full_bundle = has_full_bundle
        self._load_description = load_description
        self._verify = verify
        self._with_bundle_file = with_bundle_file
        self._bus_source = bus_source
        self._state = INITIAL_STATE
        self._generation = 0
        self._active = False
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> BundleStatusState:
        return self._state

    @property
    def active(self) -> bool:
        return self._active

    @property
    def source(self) -> BundleSource:
        return self._source

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # activation -----------------------------------------------------------

    async def activate(self) -> BundleStatusState:
        self._generation += 1
        generation = self._generation
        self._active = True
        self._commit(generation, INITIAL_STATE)

        bundle_result, duffle_result, full_bundle, description_html = await asyncio.gather(
            self._guarded_load_bundle(),
            self._guarded_find_binary(),
            self._guarded_full_bundle(),
            self._guarded_description(),
        )
        manifest_result = map_result(bundle_result, lambda info: info.manifest)
        loaded = BundleStatusState(
            bundle_manifest=ready(manifest_result),
            duffle=ready(duffle_result),
            signing=PENDING_UI,
            has_full_bundle=full_bundle,
            description_html=description_html,
        )
        if not self._commit(generation, loaded):
            return self._state

        binary = duffle_result.value if isinstance(duffle_result, Succeeded) else None
        if binary is None or failed(manifest_result):
            signing = DUFFLE_NOT_FOUND_UI
        else:
            signing = await self._check_signature(binary)
        self._commit(generation, replace(loaded, signing=signing))
        return self._state

    def deactivate(self) -> None:
        if self._active:
            logger.info("bundle status deactivated generation=%s", self._generation)
        self._generation += 1
        self._active = False

    def _commit(self, generation: int, new_state: BundleStatusState) -> bool:
        if generation != self._generation:
            logger.info(
                "discarding stale bundle status generation=%s current=%s",
                generation,
                self._generation,
            )
            return False
        self._state = new_state
        logger.info("bundle status signing=%s", new_state.signing.display.value)
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as exc:  # pragma: no cover - defensive
                logger.error("bundle status listener error: %s", exc)
        self._publish(STATUS_CHANGED_TOPIC, new_state.to_dict(), sticky=True)
        if new_state.signing.display == SigningStatus.ERROR:
            self._publish(
                ERROR_RAISED_TOPIC,
                {"source": self._bus_source, "message": new_state.signing.text},
            )
        return True

    # fact loaders ---------------------------------------------------------

    async def _guarded_load_bundle(self) -> Result[BundleInfo]:
        try:
            return await self._load_bundle(self._source)
        except Exception as exc:
            logger.warning("bundle loader raised: %s", exc)
            return Failed(str(exc))

    async def _guarded_find_binary(self) -> Result[Optional[BinaryInfo]]:
        try:
            return await self._find_binary(self._settings)
        except Exception as exc:
            logger.warning("duffle lookup raised: %s", exc)
            return Failed(str(exc))

    async def _guarded_full_bundle(self) -> bool:
        try:
            return bool(await self._has_full_bundle(self._source))
        except Exception as exc:
            logger.warning("full bundle check raised: %s", exc)
            return False

    async def _guarded_description(self) -> Optional[str]:
        try:
            return await self._load_description(self._source)
        except Exception as exc:
            logger.warning("description loader raised: %s", exc)
            return None

    async def _check_signature(self, binary: BinaryInfo) -> VerificationUI:
        async def _verify_scratch_copy(path: Path, is_signed: bool) -> VerificationUI:
            if not is_signed:
                return UNSIGNED_UI
            result = await self._verify(binary, path, self._settings.verify_timeout_s)
            return signing_status(result)

        try:
            return await self._with_bundle_file(self._source, _verify_scratch_copy)
        except Exception as exc:
            logger.warning("signature check raised: %s", exc)
            return VerificationUI(SigningStatus.ERROR, CHECK_ERROR_PREFIX + str(exc))

    # install --------------------------------------------------------------

    def install_gate(self) -> InstallGate:
        return install_gate(self._state)

    def trigger_install(self, *, strict: bool = False) -> InstallGate:
        """Hand the loaded manifest to the parent when the gate is open."""
        gate = self.install_gate()
        if not gate.allowed:
            logger.warning("install refused: %s", gate.reason)
            if strict:
                raise InstallGateError(gate.reason)
            return gate
        manifest_fact = self._state.bundle_manifest
        if self._parent is not None:
            self._parent.request_action(ACTION_INSTALL, {"bundle_manifest": manifest_fact})
        manifest = manifest_fact.result.value
        self._publish(
            INSTALL_REQUESTED_TOPIC,
            {"action": ACTION_INSTALL, "bundle": manifest.to_dict()},
        )
        logger.info("install requested name=%s version=%s", manifest.name, manifest.version)
        return gate

    def _publish(self, topic: str, payload: Dict[str, Any], *, sticky: bool = False) -> None:
        if not self._bus:
            return
        try:
            self._bus.publish(topic, payload, source=self._bus_source, trace_id=None, sticky=sticky)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("bundle status publish failed on %s: %s", topic, exc)
