"""Server-sent event decoding and the local mirror of a streamed collection.

The Firebase REST streaming endpoint emits ``put`` and ``patch`` events whose data
is ``{"path": ..., "data": ...}`` relative to the subscribed location, plus
``keep-alive``, ``cancel`` and ``auth_revoked`` control events.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import cast

from .translator import iter_children

log = getLogger(__name__)

DATA_EVENTS = frozenset({"put", "patch"})
TERMINAL_EVENTS = frozenset({"cancel", "auth_revoked"})


class StreamProtocolError(ValueError):
    """Raised when a data event does not carry a ``{path, data}`` body."""


@dataclass(frozen=True, slots=True)
class StreamEvent:
    event: str
    path: str = "/"
    data: object = None

    @property
    def is_data(self) -> bool:
        return self.event in DATA_EVENTS

    @property
    def is_terminal(self) -> bool:
        return self.event in TERMINAL_EVENTS


@dataclass(slots=True)
class ServerSentEventDecoder:
    """Incremental decoder fed one text line at a time."""

    _event: str | None = None
    _data: list[str] = field(default_factory=list[str])

    def decode(self, line: str) -> StreamEvent | None:
        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None
        name, _, value = line.partition(":")
        value = value.removeprefix(" ")
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None

    def _dispatch(self) -> StreamEvent | None:
        event, self._event = self._event, None
        raw, self._data = "\n".join(self._data), []
        if event is None:
            return None
        if event not in DATA_EVENTS:
            return StreamEvent(event=event)
        try:
            body = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StreamProtocolError(f"Invalid {event} event body: {raw!r}") from exc
        if not isinstance(body, Mapping) or "path" not in body:
            raise StreamProtocolError(f"Missing path in {event} event: {raw!r}")
        mapping_body = cast(Mapping[str, object], body)
        return StreamEvent(
            event=event,
            path=str(mapping_body["path"]),
            data=mapping_body.get("data"),
        )


@dataclass(frozen=True, slots=True)
class TreeChange:
    """Record ids touched by one event."""

    changed: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    full: bool = False


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def _set_nested(node: dict[str, object], segments: list[str], value: object) -> None:
    head, *rest = segments
    if not rest:
        if value is None:
            node.pop(head, None)
        else:
            node[head] = value
        return
    child = node.get(head)
    if not isinstance(child, dict):
        if value is None:
            return
        child = {}
        node[head] = child
    _set_nested(cast(dict[str, object], child), rest, value)


class RemoteTree:
    """Mirror of one collection node, updated from ``put``/``patch`` events."""

    def __init__(self) -> None:
        self._children: dict[str, object] = {}

    def __len__(self) -> int:
        return len(self._children)

    def child(self, key: str) -> object:
        return self._children.get(key)

    def items(self) -> list[tuple[str, object]]:
        return list(self._children.items())

    def apply(self, event: StreamEvent) -> TreeChange:
        if event.event == "put":
            return self._put(_segments(event.path), event.data)
        if event.event == "patch":
            return self._patch(_segments(event.path), event.data)
        return TreeChange()

    def _put(self, segments: list[str], data: object) -> TreeChange:
        if not segments:
            previous = set(self._children)
            self._children = dict(iter_children(data))
            return TreeChange(
                changed=tuple(self._children),
                removed=tuple(sorted(previous - set(self._children))),
                full=True,
            )

        key = segments[0]
        if len(segments) == 1 and data is None:
            if self._children.pop(key, None) is None:
                return TreeChange()
            return TreeChange(removed=(key,))

        existed = key in self._children
        _set_nested(self._children, segments, data)
        if key not in self._children:
            return TreeChange(removed=(key,)) if existed else TreeChange()
        return TreeChange(changed=(key,))

    def _patch(self, segments: list[str], data: object) -> TreeChange:
        if not isinstance(data, Mapping):
            log.warning("Ignoring patch without object data at /%s", "/".join(segments))
            return TreeChange()
        changed: list[str] = []
        removed: list[str] = []
        for relative, value in cast(Mapping[str, object], data).items():
            change = self._put([*segments, *_segments(relative)], value)
            changed.extend(key for key in change.changed if key not in changed)
            removed.extend(key for key in change.removed if key not in removed)
        return TreeChange(
            changed=tuple(key for key in changed if key in self._children),
            removed=tuple(removed),
        )
