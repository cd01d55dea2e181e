from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class InvocationImage:
    image: str
    image_type: str = "docker"


@dataclass(frozen=True)
class BundleManifest:
    """Metadata read from a bundle's bundle.json."""

    name: str
    version: str
    description: str = ""
    schema_version: str = ""
    keywords: Tuple[str, ...] = ()
    invocation_images: Tuple[InvocationImage, ...] = ()
    images: Dict[str, Any] = field(default_factory=dict)
    parameters: Dict[str, Any] = field(default_factory=dict)
    credentials: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "schemaVersion": self.schema_version,
            "keywords": list(self.keywords),
            "invocationImages": [
                {"image": img.image, "imageType": img.image_type} for img in self.invocation_images
            ],
            "images": dict(self.images),
            "parameters": dict(self.parameters),
            "credentials": dict(self.credentials),
        }


def parse_manifest(data: Any) -> BundleManifest:
    if not isinstance(data, dict):
        raise ValueError("bundle manifest is not an object")
    name = data.get("name")
    version = data.get("version")
    if not isinstance(name, str) or not name:
        raise ValueError("bundle manifest has no name")
    if version is None:
        raise ValueError("bundle manifest has no version")
    images = []
    for entry in data.get("invocationImages") or []:
        if isinstance(entry, dict) and entry.get("image"):
            images.append(
                InvocationImage(
                    image=str(entry["image"]),
                    image_type=str(entry.get("imageType") or "docker"),
                )
            )
    return BundleManifest(
        name=name,
        version=str(version),
        description=str(data.get("description") or ""),
        schema_version=str(data.get("schemaVersion") or ""),
        keywords=tuple(str(k) for k in data.get("keywords") or []),
        invocation_images=tuple(images),
        images=dict(data.get("images") or {}),
        parameters=dict(data.get("parameters") or {}),
        credentials=dict(data.get("credentials") or {}),
    )
