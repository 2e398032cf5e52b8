import pytest

from cache_entry import EntryRegistry, Membership
from cache_errors import InvariantError
from intrusive_list import IntrusiveList


def test_insert_get_remove():
    registry = EntryRegistry()
    entry = registry.insert("a", 1)
    assert entry.access_count == 0
    assert entry.membership is Membership.NONE
    assert registry.get("a") is entry
    assert "a" in registry
    assert len(registry) == 1

    assert registry.remove("a") is entry
    assert registry.get("a") is None
    assert registry.remove("a") is None
    assert len(registry) == 0


def test_duplicate_insert_fails():
    registry = EntryRegistry()
    registry.insert("a", 1)
    with pytest.raises(InvariantError):
        registry.insert("a", 2)
    assert registry.get("a").value == 1


def test_entry_holds_single_membership():
    queue = IntrusiveList()
    entry = EntryRegistry().insert("a", 1)
    entry.attach(Membership.HISTORY, queue.push_front(entry))
    assert entry.in_history and not entry.in_cache

    with pytest.raises(InvariantError):
        entry.attach(Membership.CACHE, IntrusiveList().push_front(entry))

    node = entry.detach()
    assert queue.remove(node) is entry
    assert entry.membership is Membership.NONE
    assert entry.node is None


def test_eligibility_follows_current_k():
    entry = EntryRegistry().insert("a", 1)
    entry.current_k = 2
    entry.access_count = 1
    assert not entry.is_eligible_for_cache()
    entry.access_count = 2
    assert entry.is_eligible_for_cache()
