"""Access to the bundle shipped alongside the installer.

The bundle lives in the configured bundle directory as one of:

* ``bundle.cnab``: a clear-signed bundle.json (signed);
* ``bundle.json``: a plain manifest (unsigned);
* ``full-bundle.tgz``: an exported full bundle whose archive carries one of
  the two files above together with the images it needs offline.

An optional ``description.html`` next to it replaces the manifest description.
"""

from __future__ import annotations

import asyncio
import json
import tarfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, Tuple, TypeVar

from diagnostics.fs_ops import make_scratch_dir, safe_rmtree
from diagnostics.logging_setup import get_logger

from .eventually import Failed, Result, Succeeded
from .objectmodel import BundleManifest, parse_manifest

logger = get_logger("embedded")

SIGNED_BUNDLE_NAME = "bundle.cnab"
UNSIGNED_BUNDLE_NAME = "bundle.json"
FULL_BUNDLE_NAME = "full-bundle.tgz"
DESCRIPTION_NAME = "description.html"

PGP_SIGNED_HEADER = "-----BEGIN PGP SIGNED MESSAGE-----"
PGP_SIGNATURE_HEADER = "-----BEGIN PGP SIGNATURE-----"

R = TypeVar("R")


class BundleNotFound(FileNotFoundError):
    pass


@dataclass(frozen=True)
class BundleSource:
    bundle_dir: Path

    @property
    def signed_path(self) -> Path:
        return self.bundle_dir / SIGNED_BUNDLE_NAME

    @property
    def unsigned_path(self) -> Path:
        return self.bundle_dir / UNSIGNED_BUNDLE_NAME

    @property
    def full_bundle_path(self) -> Path:
        return self.bundle_dir / FULL_BUNDLE_NAME

    @property
    def description_path(self) -> Path:
        return self.bundle_dir / DESCRIPTION_NAME


@dataclass(frozen=True)
class BundleInfo:
    manifest: BundleManifest
    is_signed: bool
    is_full_bundle: bool


def extract_signed_content(text: str) -> str:
    """Return the message body of a PGP clear-signed document."""
    lines = text.replace("\r\n", "\n").split("\n")
    try:
        start = next(i for i, line in enumerate(lines) if line.strip() == PGP_SIGNED_HEADER)
    except StopIteration:
        raise ValueError("bundle.cnab is not a clear-signed document") from None
    index = start + 1
    # armor headers (Hash: ...) end at the first blank line
    while index < len(lines) and lines[index].strip():
        index += 1
    body = []
    for line in lines[index + 1:]:
        if line.strip() == PGP_SIGNATURE_HEADER:
            break
        body.append(line[2:] if line.startswith("- ") else line)
    else:
        raise ValueError("bundle.cnab has no signature block")
    return "\n".join(body)


def _read_from_archive(archive_path: Path) -> Tuple[str, bool]:
    with tarfile.open(archive_path, "r:gz") as archive:
        members = {Path(member.name).name: member for member in archive.getmembers() if member.isfile()}
        for name, is_signed in ((SIGNED_BUNDLE_NAME, True), (UNSIGNED_BUNDLE_NAME, False)):
            member = members.get(name)
            if member is None:
                continue
            handle = archive.extractfile(member)
            if handle is None:
                continue
            with handle:
                return handle.read().decode("utf-8"), is_signed
    raise BundleNotFound(f"{archive_path.name} does not contain a bundle manifest")


def read_bundle_text(source: BundleSource) -> Tuple[str, bool]:
    """Return the raw bundle file text and whether it is signed."""
    if source.signed_path.is_file():
        return source.signed_path.read_text(encoding="utf-8"), True
    if source.unsigned_path.is_file():
        return source.unsigned_path.read_text(encoding="utf-8"), False
    if source.full_bundle_path.is_file():
        return _read_from_archive(source.full_bundle_path)
    raise BundleNotFound(f"no bundle found in {source.bundle_dir}")


def read_bundle(source: BundleSource) -> BundleInfo:
    text, is_signed = read_bundle_text(source)
    body = extract_signed_content(text) if is_signed else text
    manifest = parse_manifest(json.loads(body))
    return BundleInfo(
        manifest=manifest,
        is_signed=is_signed,
        is_full_bundle=source.full_bundle_path.is_file(),
    )


async def load_bundle(source: BundleSource) -> Result[BundleInfo]:
    try:
        info = await asyncio.to_thread(read_bundle, source)
    except (OSError, ValueError, UnicodeDecodeError, tarfile.TarError) as exc:
        logger.warning("bundle load failed dir=%s error=%s", source.bundle_dir, exc)
        return Failed(str(exc))
    logger.info(
        "bundle loaded name=%s version=%s signed=%s",
        info.manifest.name,
        info.manifest.version,
        info.is_signed,
    )
    return Succeeded(info)


async def has_full_bundle(source: BundleSource) -> bool:
    return await asyncio.to_thread(source.full_bundle_path.is_file)


def load_description_html(source: BundleSource) -> Optional[str]:
    try:
        text = source.description_path.read_text(encoding="utf-8")
    except OSError:
        return None
    return text or None


async def load_description(source: BundleSource) -> Optional[str]:
    return await asyncio.to_thread(load_description_html, source)


@asynccontextmanager
async def extracted_bundle_file(source: BundleSource) -> AsyncIterator[Tuple[Path, bool]]:
    """Write the bundle to a scratch file; the scratch directory is always removed."""
    text, is_signed = await asyncio.to_thread(read_bundle_text, source)
    scratch = make_scratch_dir("bundle_")
    try:
        name = SIGNED_BUNDLE_NAME if is_signed else UNSIGNED_BUNDLE_NAME
        path = scratch / name
        await asyncio.to_thread(path.write_text, text, encoding="utf-8")
        yield path, is_signed
    finally:
        safe_rmtree(scratch)


async def with_bundle_file(
    source: BundleSource, fn: Callable[[Path, bool], Awaitable[R]]
) -> R:
    async with extracted_bundle_file(source) as (path, is_signed):
        return await fn(path, is_signed)
