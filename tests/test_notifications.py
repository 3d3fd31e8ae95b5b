from code_tutor.notifications import (
    WELCOME_NOTIFICATIONS, count_unread, delete_notification, emit_notification,
    get_notifications, mark_all_as_read, mark_as_read, seed_welcome_notifications,
)

import pytest


def test_emit_and_list_newest_first(ready_db):
    emit_notification(ready_db, "ana", "system", "First", "one")
    emit_notification(ready_db, "ana", "achievement", "Second", "two")
    items = get_notifications(ready_db, "ana")
    assert [n.title for n in items] == ["Second", "First"]
    assert items[0].icon == "trophy"
    assert not items[0].read


def test_filters(ready_db):
    emit_notification(ready_db, "ana", "system", "Sys", "m")
    emit_notification(ready_db, "ana", "community", "Com", "m")
    emit_notification(ready_db, "ana", "achievement", "Ach", "m")
    assert {n.title for n in get_notifications(ready_db, "ana", "system")} == {"Sys"}
    assert {n.title for n in get_notifications(ready_db, "ana", "community")} == {"Com", "Ach"}
    with pytest.raises(ValueError):
        get_notifications(ready_db, "ana", "archived")


def test_unread_and_mark_read(ready_db):
    first = emit_notification(ready_db, "ana", "system", "A", "m")
    emit_notification(ready_db, "ana", "system", "B", "m")
    assert count_unread(ready_db, "ana") == 2
    assert mark_as_read(ready_db, "ana", first)
    assert count_unread(ready_db, "ana") == 1
    assert [n.title for n in get_notifications(ready_db, "ana", "unread")] == ["B"]
    assert mark_all_as_read(ready_db, "ana") == 1
    assert count_unread(ready_db, "ana") == 0


def test_users_cannot_touch_each_others_notifications(ready_db):
    note = emit_notification(ready_db, "ana", "system", "A", "m")
    assert not mark_as_read(ready_db, "bia", note)
    assert not delete_notification(ready_db, "bia", note)
    assert get_notifications(ready_db, "bia") == []
    assert delete_notification(ready_db, "ana", note)
    assert get_notifications(ready_db, "ana") == []


def test_welcome_notifications_only_once(ready_db):
    assert seed_welcome_notifications(ready_db, "ana") == len(WELCOME_NOTIFICATIONS)
    assert seed_welcome_notifications(ready_db, "ana") == 0
    assert count_unread(ready_db, "ana") == len(WELCOME_NOTIFICATIONS)
