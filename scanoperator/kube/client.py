"""In-memory store of Kubernetes objects with a client-like interface.

Objects are plain mappings shaped like Kubernetes manifests. They are
identified by their ``kind``, ``metadata.namespace`` and ``metadata.name``.
"""

from __future__ import annotations

import copy
import io
from collections.abc import Mapping
from typing import Any

_Key = tuple[str, str, str]


def match_labels(labels: Mapping[str, str] | None, selector: Mapping[str, str] | None) -> bool:
    """Return True if ``labels`` hold every key and value of ``selector``.

    An empty selector matches everything.
    """
    present = labels or {}
    return all(key in present and present[key] == value for key, value in (selector or {}).items())


class NotFoundError(LookupError):
    """The requested object does not exist."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = str(kind)
        self.name = name
        super().__init__(f'{self.kind} "{name}" not found')


class AlreadyExistsError(Exception):
    """An object with the same identity already exists."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = str(kind)
        self.name = name
        super().__init__(f'{self.kind} "{name}" already exists')


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def _key(obj: Mapping[str, Any]) -> _Key:
    kind = obj.get("kind")
    name = _metadata(obj).get("name")
    if not kind:
        raise ValueError("object has no kind")
    if not name:
        raise ValueError("object has no name")
    return str(kind), _metadata(obj).get("namespace") or "", name


class InMemoryClient:
    """Keeps objects and container logs in memory.

    Objects are copied on the way in and on the way out, so callers never
    share state with the store.
    """

    def __init__(self, *objects: Mapping[str, Any]) -> None:
        self._objects: dict[_Key, dict[str, Any]] = {}
        self._logs: dict[tuple[str, str, str], str] = {}
        for obj in objects:
            self.add(obj)

    def add(self, obj: Mapping[str, Any]) -> None:
        """Store ``obj``, replacing any object with the same identity."""
        self._objects[_key(obj)] = copy.deepcopy(dict(obj))

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Return a copy of the object; raise NotFoundError if it is missing."""
        try:
            stored = self._objects[(str(kind), namespace or "", name)]
        except KeyError:
            raise NotFoundError(kind, name) from None
        return copy.deepcopy(stored)

    def list(
        self,
        kind: str,
        namespace: str | None = None,
        labels: Mapping[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return copies of objects of ``kind`` ordered by namespace and name.

        An empty or missing namespace lists all namespaces.
        """
        wanted = str(kind)
        found = [
            copy.deepcopy(obj)
            for (obj_kind, obj_namespace, _), obj in sorted(self._objects.items())
            if obj_kind == wanted
            and (not namespace or obj_namespace == namespace)
            and match_labels(_metadata(obj).get("labels"), labels)
        ]
        return found

    def create(self, obj: Mapping[str, Any]) -> dict[str, Any]:
        """Store a new object; raise AlreadyExistsError if it exists."""
        key = _key(obj)
        if key in self._objects:
            raise AlreadyExistsError(key[0], key[2])
        self._objects[key] = copy.deepcopy(dict(obj))
        return copy.deepcopy(self._objects[key])

    def update(self, obj: Mapping[str, Any]) -> dict[str, Any]:
        """Replace an existing object; raise NotFoundError if it is missing."""
        key = _key(obj)
        if key not in self._objects:
            raise NotFoundError(key[0], key[2])
        self._objects[key] = copy.deepcopy(dict(obj))
        return copy.deepcopy(self._objects[key])

    def delete(self, obj: Mapping[str, Any]) -> None:
        """Remove an object; raise NotFoundError if it is missing."""
        key = _key(obj)
        if key not in self._objects:
            raise NotFoundError(key[0], key[2])
        del self._objects[key]

    def set_logs(self, namespace: str, pod: str, container: str, text: str) -> None:
        """Record the log output of a pod's container."""
        self._logs[(namespace, pod, container)] = text

    def read_logs(self, namespace: str, pod: str, container: str) -> io.StringIO:
        """Return a stream over a container's logs; raise NotFoundError if none."""
        try:
            text = self._logs[(namespace, pod, container)]
        except KeyError:
            raise NotFoundError("Pod", pod) from None
        return io.StringIO(text)