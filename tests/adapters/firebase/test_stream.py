from __future__ import annotations

import pytest

from arkive.adapters.firebase import (
    RemoteTree,
    ServerSentEventDecoder,
    StreamEvent,
    StreamProtocolError,
    TreeChange,
)


def _decode(lines: list[str]) -> list[StreamEvent]:
    decoder = ServerSentEventDecoder()
    return [event for line in lines if (event := decoder.decode(line)) is not None]


def test_decoder_emits_event_on_blank_line() -> None:
    events = _decode(
        [
            "event: put",
            'data: {"path": "/", "data": {"c1": {"name": "A"}}}',
            "",
            "event: patch",
            'data: {"path": "/c1", "data": {"name": "B"}}',
            "",
        ]
    )

    assert events == [
        StreamEvent(event="put", path="/", data={"c1": {"name": "A"}}),
        StreamEvent(event="patch", path="/c1", data={"name": "B"}),
    ]
    assert all(event.is_data for event in events)


def test_decoder_handles_control_events_and_comments() -> None:
    events = _decode(
        [
            ": connected",
            "event: keep-alive",
            "data: null",
            "",
            "event: cancel",
            "data: Permission denied",
            "",
        ]
    )

    assert [event.event for event in events] == ["keep-alive", "cancel"]
    assert not events[0].is_data
    assert not events[0].is_terminal
    assert events[1].is_terminal


def test_decoder_joins_multiline_data() -> None:
    events = _decode(
        ["event: put", 'data: {"path": "/",', 'data: "data": null}', ""]
    )

    assert events == [StreamEvent(event="put", path="/", data=None)]


def test_decoder_ignores_blank_lines_without_event() -> None:
    assert _decode(["", "data: orphan", ""]) == []


@pytest.mark.parametrize("body", ["not json", '{"data": 1}', "[1, 2]"])
def test_decoder_rejects_malformed_data_events(body: str) -> None:
    decoder = ServerSentEventDecoder()
    decoder.decode("event: put")
    decoder.decode(f"data: {body}")

    with pytest.raises(StreamProtocolError):
        decoder.decode("")


def test_root_put_replaces_collection() -> None:
    tree = RemoteTree()
    tree.apply(StreamEvent("put", "/", {"c1": {"name": "A"}, "c2": {"name": "B"}}))

    change = tree.apply(StreamEvent("put", "/", {"c2": {"name": "B2"}, "c3": None}))

    assert change == TreeChange(changed=("c2",), removed=("c1",), full=True)
    assert tree.items() == [("c2", {"name": "B2"})]


def test_root_put_of_null_empties_collection() -> None:
    tree = RemoteTree()
    tree.apply(StreamEvent("put", "/", {"c1": {"name": "A"}}))

    change = tree.apply(StreamEvent("put", "/", None))

    assert change == TreeChange(removed=("c1",), full=True)
    assert len(tree) == 0


def test_child_put_and_removal() -> None:
    tree = RemoteTree()

    assert tree.apply(StreamEvent("put", "/c1", {"name": "A"})) == TreeChange(changed=("c1",))
    assert tree.apply(StreamEvent("put", "/c1", None)) == TreeChange(removed=("c1",))
    assert tree.apply(StreamEvent("put", "/c1", None)) == TreeChange()


def test_nested_put_updates_field_of_record() -> None:
    tree = RemoteTree()
    tree.apply(StreamEvent("put", "/", {"c1": {"name": "A", "phone": "1"}}))

    change = tree.apply(StreamEvent("put", "/c1/phone", "2"))

    assert change == TreeChange(changed=("c1",))
    assert tree.child("c1") == {"name": "A", "phone": "2"}


def test_nested_put_of_null_removes_field() -> None:
    tree = RemoteTree()
    tree.apply(StreamEvent("put", "/", {"c1": {"name": "A", "phone": "1"}}))

    tree.apply(StreamEvent("put", "/c1/phone", None))

    assert tree.child("c1") == {"name": "A"}


def test_nested_put_of_null_for_unknown_child_changes_nothing() -> None:
    tree = RemoteTree()
    tree.apply(StreamEvent("put", "/", {"c1": {"name": "A"}}))

    assert tree.apply(StreamEvent("put", "/ghost/name", None)) == TreeChange()
    assert tree.apply(StreamEvent("patch", "/", {"ghost/name": None})) == TreeChange()
    assert len(tree) == 1


def test_root_patch_sets_several_children() -> None:
    tree = RemoteTree()
    tree.apply(StreamEvent("put", "/", {"c1": {"name": "A"}}))

    change = tree.apply(
        StreamEvent("patch", "/", {"c1": None, "c2": {"name": "B"}, "c3": {"name": "C"}})
    )

    assert change == TreeChange(changed=("c2", "c3"), removed=("c1",))


def test_record_patch_merges_fields() -> None:
    tree = RemoteTree()
    tree.apply(StreamEvent("put", "/", {"c1": {"name": "A", "phone": "1"}}))

    change = tree.apply(StreamEvent("patch", "/c1", {"phone": "2", "email": "a@example.com"}))

    assert change == TreeChange(changed=("c1",))
    assert tree.child("c1") == {"name": "A", "phone": "2", "email": "a@example.com"}


def test_patch_without_object_is_ignored() -> None:
    tree = RemoteTree()

    assert tree.apply(StreamEvent("patch", "/", ["not", "a", "mapping"])) == TreeChange()
    assert tree.apply(StreamEvent("keep-alive")) == TreeChange()
