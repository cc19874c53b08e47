from __future__ import annotations

import pytest

from credchain.core.bounded import BoundedIndex
from credchain.core.errors import CapacityExceeded, InvalidState


def test_get_unknown_key_is_empty() -> None:
    assert BoundedIndex(3).get("nobody") == ()


def test_append_preserves_order() -> None:
    index = BoundedIndex(3)
    index.append("alice", 4)
    index.append("alice", 2)
    assert index.get("alice") == (4, 2)


def test_get_returns_copy() -> None:
    index = BoundedIndex(3)
    index.append("alice", 1)
    snapshot = index.get("alice")
    index.append("alice", 2)
    assert snapshot == (1,)


def test_append_past_limit_raises_and_keeps_list() -> None:
    index = BoundedIndex(2)
    index.append("alice", 1)
    index.append("alice", 2)
    assert index.has_room("alice") is False
    with pytest.raises(CapacityExceeded):
        index.append("alice", 3)
    assert index.get("alice") == (1, 2)


def test_limits_are_per_key() -> None:
    index = BoundedIndex(1)
    index.append("alice", 1)
    assert index.has_room("bob") is True
    assert len(index) == 1


def test_ensure_room_raises_supplied_error() -> None:
    index = BoundedIndex(1)
    index.append("alice", 1)
    error = InvalidState(999, "full")
    with pytest.raises(InvalidState) as exc_info:
        index.ensure_room("alice", error)
    assert exc_info.value is error


def test_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        BoundedIndex(0)
