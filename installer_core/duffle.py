from __future__ import annotations

import asyncio
import platform
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from diagnostics.logging_setup import get_logger

from .config import InstallerSettings
from .eventually import Failed, Result, Succeeded

logger = get_logger("duffle")

DUFFLE_DIR_NAME = "duffle"
_SIGNED_BY_PATTERN = re.compile(r'Signed by "(?P<signer>[^"]+)"')
UNKNOWN_SIGNER = "Unknown signer"


@dataclass(frozen=True)
class BinaryInfo:
    path: Path
    version: str


@dataclass(frozen=True)
class Verified:
    signer: str


@dataclass(frozen=True)
class NotVerified:
    reason: str


SignatureVerification = Union[Verified, NotVerified]


@dataclass(frozen=True)
class ProcessResult:
    code: int
    stdout: str
    stderr: str


def _platform_binary_name() -> str:
    system = platform.system().lower()
    if system == "windows":
        return "duffle-windows-amd64.exe"
    if system == "darwin":
        return "duffle-darwin-amd64"
    return "duffle-linux-amd64"


def binary_candidates(settings: InstallerSettings) -> List[Path]:
    candidates: List[Path] = []
    if settings.duffle_path:
        candidates.append(settings.duffle_path)
    candidates.append(settings.bundle_dir / DUFFLE_DIR_NAME / _platform_binary_name())
    return candidates


def locate_duffle(settings: InstallerSettings) -> Optional[Path]:
    for candidate in binary_candidates(settings):
        if candidate.is_file():
            return candidate
    found = shutil.which("duffle")
    return Path(found) if found else None


async def run_process(args: Sequence[str], timeout_s: float) -> Result[ProcessResult]:
    """Run a command to completion; launch errors and timeouts become Failed."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        return Failed(f"{Path(args[0]).name}: {exc.strerror or exc}")
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
        return Failed(f"{Path(args[0]).name} timed out after {timeout_s:g}s")
    return Succeeded(
        ProcessResult(
            code=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
    )


async def find_duffle_binary(settings: InstallerSettings) -> Result[Optional[BinaryInfo]]:
    """Succeeded(None) means no binary on this host; Failed means the lookup broke."""
    try:
        path = locate_duffle(settings)
    except OSError as exc:
        return Failed(str(exc))
    if path is None:
        logger.info("duffle binary not found")
        return Succeeded(None)
    run = await run_process([str(path), "version"], settings.version_timeout_s)
    if isinstance(run, Failed):
        return run
    proc = run.value
    if proc.code != 0:
        return Failed(_first_line(proc.stderr) or f"duffle version exited with code {proc.code}")
    version = _first_line(proc.stdout) or "unknown"
    logger.info("duffle binary found path=%s version=%s", path, version)
    return Succeeded(BinaryInfo(path=path, version=version))


async def verify_file(
    binary: BinaryInfo, bundle_path: Path, timeout_s: float = 60.0
) -> Result[SignatureVerification]:
    run = await run_process(
        [str(binary.path), "bundle", "verify", "-f", str(bundle_path)],
        timeout_s,
    )
    if isinstance(run, Failed):
        return run
    return Succeeded(parse_verify_output(run.value))


def parse_verify_output(proc: ProcessResult) -> SignatureVerification:
    logger.debug("duffle verify exited code=%s", proc.code)
    if proc.code != 0:
        reason = proc.stderr.strip() or proc.stdout.strip() or f"duffle exited with code {proc.code}"
        return NotVerified(reason)
    match = _SIGNED_BY_PATTERN.search(proc.stdout)
    if match:
        return Verified(match.group("signer"))
    return Verified(proc.stdout.strip() or UNKNOWN_SIGNER)


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""
