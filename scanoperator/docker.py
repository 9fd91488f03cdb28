"""Docker registry credentials and configuration (``~/.docker/config.json``)."""

from __future__ import annotations

import base64
import binascii
import json
import string
from dataclasses import dataclass, field
from urllib.parse import urlsplit

DEFAULT_REGISTRY = "index.docker.io"
_DEFAULT_REGISTRY_ALIAS = "docker.io"
_DEFAULT_TAG = "latest"

_REPOSITORY_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789_-./")
_TAG_CHARS = frozenset(string.ascii_letters + string.digits + "_-.")
_DIGEST_CHARS = frozenset("sh:0123456789abcdef")
_REDACTED = "[REDACTED]"


@dataclass(frozen=True, repr=False)
class BasicAuth:
    """Base64 encoded ``username:password`` pair."""

    value: str = ""

    @classmethod
    def from_credentials(cls, username: str, password: str) -> BasicAuth:
        raw = f"{username}:{password}".encode()
        return cls(base64.b64encode(raw).decode("ascii"))

    def decode(self) -> tuple[str, str]:
        """Return ``(username, password)``; raise ValueError if malformed."""
        try:
            raw = base64.b64decode(self.value, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"illegal base64 data: {exc}") from exc
        text = raw.decode("utf-8", errors="replace")
        head, sep, tail = text.partition(":")
        if not sep:
            raise ValueError(
                "expected username and password concatenated with a colon (:)"
            )
        return head, tail

    def __str__(self) -> str:
        return _REDACTED

    def __repr__(self) -> str:
        return _REDACTED


@dataclass(frozen=True, repr=False)
class Auth:
    """Credentials used to log in to a Docker registry."""

    auth: BasicAuth = BasicAuth()
    username: str = ""
    password: str = ""

    def __str__(self) -> str:
        return _REDACTED

    def __repr__(self) -> str:
        return _REDACTED

    def _to_json(self) -> dict[str, str]:
        data = {}
        if self.auth.value:
            data["auth"] = self.auth.value
        if self.username:
            data["username"] = self.username
        if self.password:
            data["password"] = self.password
        return data


def _auth_from_json(server: str, entry: object) -> Auth:
    if entry is None:
        return Auth()
    if not isinstance(entry, dict):
        raise ValueError(f"auth entry for {server!r} must be an object")
    values = {}
    for key in ("auth", "username", "password"):
        item = entry.get(key)
        if item is None:
            item = ""
        if not isinstance(item, str):
            raise ValueError(f"field {key!r} of auth entry for {server!r} must be a string")
        values[key] = item
    encoded = values.pop("auth")
    return Auth(auth=BasicAuth(encoded), **values)


def _decode_auth(entry: Auth) -> Auth:
    if not entry.auth.value.strip():
        return Auth(username=entry.username, password=entry.password)
    username, password = entry.auth.decode()
    return Auth(auth=entry.auth, username=username, password=password)


@dataclass
class DockerConfig:
    """Docker configuration as saved in ``~/.docker/config.json``."""

    auths: dict[str, Auth] = field(default_factory=dict)

    @classmethod
    def read(cls, contents: bytes | str) -> DockerConfig:
        """Parse a config document, decoding the ``auth`` field of each entry."""
        data = json.loads(contents)
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("docker config must be a JSON object")
        raw_auths = data.get("auths")
        if raw_auths is None:
            raw_auths = {}
        if not isinstance(raw_auths, dict):
            raise ValueError("field 'auths' must be an object")
        auths = {}
        for server, raw_entry in raw_auths.items():
            entry = _auth_from_json(server, raw_entry)
            if entry == Auth():
                continue
            auths[server] = _decode_auth(entry)
        return cls(auths)

    def write(self) -> bytes:
        payload = {
            "auths": {
                server: self.auths[server]._to_json() for server in sorted(self.auths)
            }
        }
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        for char, escaped in (
            ("<", "\\u003c"),
            (">", "\\u003e"),
            ("&", "\\u0026"),
            ("\u2028", "\\u2028"),
            ("\u2029", "\\u2029"),
        ):
            text = text.replace(char, escaped)
        return text.encode("utf-8")


def _check_element(
    kind: str, value: str, allowed: frozenset[str], min_len: int, max_len: int
) -> None:
    if not min_len <= len(value) <= max_len:
        raise ValueError(
            f"{kind} must be between {min_len} and {max_len} characters in length: {value}"
        )
    bad = [char for char in value if char not in allowed]
    if bad:
        raise ValueError(
            f"{kind} can only contain the characters "
            f"`{''.join(sorted(allowed))}`: {value}"
        )


def _parse_registry(registry: str) -> str:
    if registry in ("", _DEFAULT_REGISTRY_ALIAS):
        return DEFAULT_REGISTRY
    try:
        host = urlsplit("//" + registry).netloc
    except ValueError as exc:
        raise ValueError(f"registries must be valid RFC 3986 URI authorities: {registry}") from exc
    if host != registry:
        raise ValueError(f"registries must be valid RFC 3986 URI authorities: {registry}")
    return registry


def _parse_repository(name: str) -> str:
    registry, repository = "", name
    first, sep, rest = name.partition("/")
    if sep and ("." in first or ":" in first or first == "localhost"):
        registry, repository = first, rest
    _check_element("repository", repository, _REPOSITORY_CHARS, 2, 255)
    return _parse_registry(registry)


def _registry_of_tag_reference(reference: str) -> str:
    base, tag = reference, ""
    parts = reference.split(":")
    if len(parts) > 1 and "/" not in parts[-1]:
        base = ":".join(parts[:-1])
        tag = parts[-1]
    _check_element("tag", tag or _DEFAULT_TAG, _TAG_CHARS, 1, 128)
    return _parse_repository(base)


def _registry_of_digest_reference(reference: str) -> str:
    parts = reference.split("@")
    if len(parts) != 2:
        raise ValueError(
            "a digest must contain exactly one '@' separator "
            f"(e.g. registry/repository@digest) saw: {reference}"
        )
    base, digest = parts
    _check_element("digest", digest, _DIGEST_CHARS, 71, 71)
    try:
        return _registry_of_tag_reference(base)
    except ValueError:
        return _parse_repository(base)


def get_server_from_image_ref(image_ref: str) -> str:
    """Return the registry server of an image reference."""
    try:
        return _registry_of_tag_reference(image_ref)
    except ValueError:
        pass
    try:
        return _registry_of_digest_reference(image_ref)
    except ValueError as exc:
        raise ValueError(f"could not parse reference: {image_ref}") from exc


def get_server_from_docker_auth_key(key: str) -> str:
    """Normalise a ``config.json`` auth key (URL or host name) to a host."""
    absolute_url = key
    if not (key.startswith("http://") or key.startswith("https://")):
        absolute_url = "https://" + absolute_url
    netloc = urlsplit(absolute_url).netloc
    return netloc.rpartition("@")[2]