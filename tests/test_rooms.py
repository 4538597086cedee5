import uuid

import pytest

from app.core.errors import Forbidden, NotFound
from app.domains.collaboration.rooms import (
    ACCESS_REVOKED, CURRENT_USERS, DOCUMENT_DELETED, DOCUMENT_UPDATE, USER_JOINED, USER_LEFT,
    Member, RoomManager
)

DOC = "doc123"


class FakeConnection:
    def __init__(self):
        self.id = uuid.uuid4().hex
        self.sent = []

    def send(self, event, data=None):
        self.sent.append((event, data))

    def events(self, name):
        return [data for event, data in self.sent if event == name]


def _member(user_id=None, can_write=True, name="User"):
    return Member(
        connection=FakeConnection(),
        user_id=user_id or uuid.uuid4(),
        name=name,
        avatar="",
        can_write=can_write,
    )


@pytest.fixture
def manager():
    return RoomManager()


def test_first_join_creates_one_room(manager):
    member = _member()

    room = manager.join(DOC, member)

    assert len(manager) == 1
    assert DOC in manager
    assert room.content == ""
    assert member.connection.sent == [(CURRENT_USERS, [member.presence()])]


def test_join_notifies_existing_members_only(manager):
    owner = _member(name="Owner")
    editor = _member(name="Editor")
    manager.join(DOC, owner)

    manager.join(DOC, editor)

    assert owner.connection.events(USER_JOINED) == [editor.presence()]
    assert editor.connection.events(USER_JOINED) == []
    assert editor.connection.events(CURRENT_USERS) == [[owner.presence(), editor.presence()]]


def test_change_is_broadcast_to_others_but_not_echoed(manager):
    owner = _member()
    editor = _member()
    third = _member()
    for member in (owner, editor, third):
        manager.join(DOC, member)

    assert manager.change(DOC, editor.connection_id, "Hello")

    assert owner.connection.events(DOCUMENT_UPDATE) == ["Hello"]
    assert third.connection.events(DOCUMENT_UPDATE) == ["Hello"]
    assert editor.connection.events(DOCUMENT_UPDATE) == []
    assert manager.get_room(DOC).content == "Hello"


def test_joiner_receives_cached_content(manager):
    editor = _member()
    manager.join(DOC, editor)
    manager.change(DOC, editor.connection_id, "Draft")

    late = _member()
    manager.join(DOC, late)

    assert late.connection.sent[-1] == (DOCUMENT_UPDATE, "Draft")


def test_change_from_viewer_is_rejected(manager):
    owner = _member()
    viewer = _member(can_write=False)
    manager.join(DOC, owner)
    manager.join(DOC, viewer)
    manager.change(DOC, owner.connection_id, "Original")

    with pytest.raises(Forbidden):
        manager.change(DOC, viewer.connection_id, "Vandalism")

    assert manager.get_room(DOC).content == "Original"
    assert owner.connection.events(DOCUMENT_UPDATE) == []


def test_change_on_absent_room_is_noop(manager):
    assert manager.change("missing", "nobody", "text") is False
    assert len(manager) == 0


def test_change_from_non_member_is_ignored(manager):
    owner = _member()
    manager.join(DOC, owner)

    assert manager.change(DOC, "stranger", "text") is False
    assert manager.get_room(DOC).content == ""


def test_last_leave_destroys_room_and_resets_content(manager):
    owner = _member()
    editor = _member()
    manager.join(DOC, owner)
    manager.join(DOC, editor)
    manager.change(DOC, editor.connection_id, "Hello")

    assert manager.leave(DOC, editor.connection_id)
    assert owner.connection.events(USER_LEFT) == [str(editor.user_id)]
    manager.disconnect(owner.connection_id)

    assert DOC not in manager

    newcomer = _member()
    room = manager.join(DOC, newcomer)
    assert room.content == ""
    assert newcomer.connection.events(DOCUMENT_UPDATE) == []


def test_disconnect_leaves_every_room(manager):
    member = _member()
    other = _member()
    manager.join("a", member)
    manager.join("b", member)
    manager.join("b", other)

    left = manager.disconnect(member.connection_id)

    assert sorted(left) == ["a", "b"]
    assert "a" not in manager
    assert manager.get_room("b").members.keys() == {other.connection_id}
    assert other.connection.events(USER_LEFT) == [str(member.user_id)]


def test_same_user_may_join_twice(manager):
    user_id = uuid.uuid4()
    first_tab = _member(user_id=user_id)
    second_tab = _member(user_id=user_id)
    manager.join(DOC, first_tab)
    manager.join(DOC, second_tab)

    room = manager.get_room(DOC)
    assert len(room.members) == 2
    assert [p["id"] for p in room.presence()] == [str(user_id), str(user_id)]

    manager.change(DOC, first_tab.connection_id, "tab one")
    assert second_tab.connection.events(DOCUMENT_UPDATE) == ["tab one"]

    manager.disconnect(first_tab.connection_id)
    assert DOC in manager
    assert list(room.members) == [second_tab.connection_id]


def test_rejoin_with_same_connection_does_not_duplicate(manager):
    owner = _member()
    editor = _member()
    manager.join(DOC, owner)
    manager.join(DOC, editor)
    manager.join(DOC, editor)

    assert len(manager.get_room(DOC).members) == 2
    assert owner.connection.events(USER_JOINED) == [editor.presence()]


def test_events_keep_processing_order(manager):
    owner = _member()
    editor = _member()
    manager.join(DOC, owner)
    manager.join(DOC, editor)
    for text in ("a", "ab", "abc"):
        manager.change(DOC, editor.connection_id, text)

    assert owner.connection.events(DOCUMENT_UPDATE) == ["a", "ab", "abc"]


def test_update_access_downgrades_live_connections(manager):
    user_id = uuid.uuid4()
    owner = _member()
    editor = _member(user_id=user_id)
    manager.join(DOC, owner)
    manager.join(DOC, editor)

    assert manager.update_access(DOC, user_id, can_write=False) == 1
    with pytest.raises(Forbidden):
        manager.change(DOC, editor.connection_id, "late edit")


def test_revoke_access_evicts_user(manager):
    owner = _member()
    editor = _member()
    manager.join(DOC, owner)
    manager.join(DOC, editor)

    assert manager.revoke_access(DOC, editor.user_id) == 1

    assert editor.connection.events(ACCESS_REVOKED) == [DOC]
    assert owner.connection.events(USER_LEFT) == [str(editor.user_id)]
    assert list(manager.get_room(DOC).members) == [owner.connection_id]


def test_close_room_notifies_members(manager):
    owner = _member()
    editor = _member()
    manager.join(DOC, owner)
    manager.join(DOC, editor)
    manager.change(DOC, editor.connection_id, "unsaved")

    assert manager.close_room(DOC) == 2

    assert DOC not in manager
    assert owner.connection.events(DOCUMENT_DELETED) == [DOC]
    assert editor.connection.events(DOCUMENT_DELETED) == [DOC]
    assert manager.collect_unsaved() == []


def test_join_after_close_room_is_refused(manager):
    owner = _member()
    manager.join(DOC, owner)
    manager.change(DOC, owner.connection_id, "unsaved")
    [pending] = manager.collect_unsaved()
    manager.close_room(DOC)

    late = _member()
    with pytest.raises(NotFound):
        manager.join(DOC, late)

    manager.requeue(pending)
    assert DOC not in manager
    assert late.connection.sent == []
    assert manager.collect_unsaved() == []


def test_collect_unsaved_returns_each_change_once(manager):
    editor = _member()
    manager.join(DOC, editor)
    manager.change(DOC, editor.connection_id, "v1")
    manager.change(DOC, editor.connection_id, "v2")

    pending = manager.collect_unsaved()

    assert [(p.document_id, p.content, p.user_id) for p in pending] == [(DOC, "v2", editor.user_id)]
    assert manager.collect_unsaved() == []


def test_unsaved_content_survives_room_teardown(manager):
    editor = _member()
    manager.join(DOC, editor)
    manager.change(DOC, editor.connection_id, "last words")
    manager.disconnect(editor.connection_id)

    assert DOC not in manager
    pending = manager.collect_unsaved()
    assert [p.content for p in pending] == ["last words"]


def test_requeue_marks_room_unsaved_again(manager):
    editor = _member()
    manager.join(DOC, editor)
    manager.change(DOC, editor.connection_id, "v1")
    [pending] = manager.collect_unsaved()

    manager.requeue(pending)

    assert [p.content for p in manager.collect_unsaved()] == ["v1"]


def test_requeue_after_rejoin_keeps_unsaved_content(manager):
    editor = _member()
    manager.join(DOC, editor)
    manager.change(DOC, editor.connection_id, "last words")
    manager.disconnect(editor.connection_id)
    [pending] = manager.collect_unsaved()

    reader = _member(can_write=False)
    manager.join(DOC, reader)
    manager.requeue(pending)

    retried = manager.collect_unsaved()
    assert [(p.content, p.user_id) for p in retried] == [("last words", editor.user_id)]
    assert manager.get_room(DOC).unsaved is False
    assert manager.collect_unsaved() == []


def test_requeue_does_not_override_newer_edits(manager):
    editor = _member()
    manager.join(DOC, editor)
    manager.change(DOC, editor.connection_id, "v1")
    [pending] = manager.collect_unsaved()
    manager.change(DOC, editor.connection_id, "v2")

    manager.requeue(pending)

    assert [p.content for p in manager.collect_unsaved()] == ["v2"]
