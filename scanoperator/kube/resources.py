"""Container image mappings and stable hashing of Kubernetes objects."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from typing import Any

from scanoperator.constants import ANNOTATION_CONTAINER_IMAGES

_SAFE_ALPHANUMS = "bcdfghjklmnpqrstvwxz2456789"
_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


class ContainerImages(dict):
    """Mapping of container names to container image references."""

    def as_json(self) -> str:
        """Encode the mapping as compact JSON with sorted keys."""
        return json.dumps(dict(self), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_json(cls, value: str) -> ContainerImages:
        """Decode a mapping previously produced by :meth:`as_json`."""
        if not value.strip():
            raise ValueError("unexpected end of JSON input")
        try:
            data = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError(str(exc)) from exc
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("container images must be a JSON object")
        images = cls()
        for name, image in data.items():
            if image is None:
                image = ""
            if not isinstance(image, str):
                raise ValueError(f"image of container {name!r} must be a string")
            images[name] = image
        return images


def _encode_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return str(value)


def _canonical_bytes(obj: Any) -> bytes:
    text = json.dumps(
        obj, sort_keys=True, separators=(",", ":"), default=_encode_default
    )
    return text.encode("utf-8")


def _fnv1a_32(data: bytes) -> int:
    value = _FNV32_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV32_PRIME) & 0xFFFFFFFF
    return value


def safe_encode_string(value: str) -> str:
    """Map every character onto an alphabet without vowels to avoid bad words."""
    return "".join(_SAFE_ALPHANUMS[ord(char) % len(_SAFE_ALPHANUMS)] for char in value)


def compute_hash(obj: Any) -> str:
    """Return a stable, safely encoded hash of ``obj``'s value."""
    return safe_encode_string(str(_fnv1a_32(_canonical_bytes(obj))))


def get_container_images_from_pod_spec(spec: Mapping[str, Any]) -> ContainerImages:
    """Return container names mapped to images for a pod spec."""
    return ContainerImages(
        (container.get("name", ""), container.get("image", ""))
        for container in spec.get("containers") or []
    )


def get_container_images_from_job(job: Mapping[str, Any]) -> ContainerImages:
    """Return the container images recorded in a scan job's annotation."""
    annotations = (job.get("metadata") or {}).get("annotations") or {}
    if ANNOTATION_CONTAINER_IMAGES not in annotations:
        raise ValueError(f"required annotation not set: {ANNOTATION_CONTAINER_IMAGES}")
    try:
        return ContainerImages.from_json(annotations[ANNOTATION_CONTAINER_IMAGES])
    except ValueError as exc:
        raise ValueError(f"parsing annotation: {ANNOTATION_CONTAINER_IMAGES}: {exc}") from exc