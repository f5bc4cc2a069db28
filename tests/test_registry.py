from __future__ import annotations

from gabeln.core.models import ChatRef
from gabeln.core.registry import AdminState, ChatRegistry

PRIVATE = ChatRef(chat_id=7, private=True)
GROUP = ChatRef(chat_id=-55, private=False)


def test_private_chat_is_always_authorized() -> None:
    registry = ChatRegistry()
    assert registry.ensure_admins(PRIVATE) is AdminState.AUTHORIZED
    assert registry.is_authorized(PRIVATE, 1)
    assert registry.is_authorized(PRIVATE, 999)


def test_unresolved_group_fails_closed() -> None:
    registry = ChatRegistry()
    assert registry.ensure_admins(GROUP) is AdminState.PENDING
    registry.mark_pending(GROUP)
    assert registry.is_pending(GROUP)
    assert not registry.is_authorized(GROUP, 1)


def test_stored_admins_are_cached() -> None:
    registry = ChatRegistry()
    registry.mark_pending(GROUP)
    registry.store_admins(GROUP, [1, 2])

    assert registry.ensure_admins(GROUP) == frozenset({1, 2})
    assert not registry.is_pending(GROUP)
    assert registry.is_authorized(GROUP, 1)
    assert not registry.is_authorized(GROUP, 3)


def test_failed_lookup_leaves_chat_unresolved() -> None:
    registry = ChatRegistry()
    registry.mark_pending(GROUP)
    registry.fail_admins(GROUP)

    assert not registry.is_pending(GROUP)
    assert registry.ensure_admins(GROUP) is AdminState.PENDING


def test_chat_identity_ignores_privacy_flag() -> None:
    registry = ChatRegistry()
    registry.set_active(ChatRef(chat_id=-55, private=False), True)
    assert registry.is_active(ChatRef(chat_id=-55, private=True))


def test_set_active_is_idempotent() -> None:
    registry = ChatRegistry()
    assert registry.set_active(PRIVATE, True)
    assert not registry.set_active(PRIVATE, True)
    assert registry.active_chats() == [PRIVATE]

    assert registry.set_active(PRIVATE, False)
    assert not registry.set_active(PRIVATE, False)
    assert registry.active_chats() == []


def test_forget_clears_admins_and_membership() -> None:
    registry = ChatRegistry()
    registry.store_admins(GROUP, [1])
    registry.set_active(GROUP, True)

    registry.forget(GROUP)

    assert not registry.is_active(GROUP)
    assert registry.ensure_admins(GROUP) is AdminState.PENDING
    assert not registry.is_authorized(GROUP, 1)
