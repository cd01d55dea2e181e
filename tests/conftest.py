from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from installer_core.config import InstallerSettings  # noqa: E402

SAMPLE_MANIFEST = {
    "name": "helloworld",
    "version": "0.1.2",
    "description": "A short description of the hello world bundle",
    "schemaVersion": "v1.0.0-WD",
    "invocationImages": [{"imageType": "docker", "image": "example/helloworld-cnab:0.1.2"}],
}


@pytest.fixture()
def settings(tmp_path: Path) -> InstallerSettings:
    return InstallerSettings(
        bundle_dir=tmp_path,
        duffle_path=None,
        version_timeout_s=5.0,
        verify_timeout_s=5.0,
    )


@pytest.fixture()
def manifest_json() -> str:
    return json.dumps(SAMPLE_MANIFEST, indent=2)


def _clearsign(body: str) -> str:
    return (
        "-----BEGIN PGP SIGNED MESSAGE-----\n"
        "Hash: SHA256\n"
        "\n"
        f"{body}\n"
        "-----BEGIN PGP SIGNATURE-----\n"
        "\n"
        "wsBcBAEBCAAQBQJcFakeSignatureDataForTests\n"
        "-----END PGP SIGNATURE-----\n"
    )


@pytest.fixture()
def clearsign():
    return _clearsign


@pytest.fixture()
def write_bundle(tmp_path: Path, manifest_json: str):
    def _write(*, signed: bool = False) -> Path:
        if signed:
            path = tmp_path / "bundle.cnab"
            path.write_text(_clearsign(manifest_json), encoding="utf-8")
        else:
            path = tmp_path / "bundle.json"
            path.write_text(manifest_json, encoding="utf-8")
        return path

    return _write
