from typing import Generic, Iterator, Optional, TypeVar

from cache_errors import InvariantError

T = TypeVar("T")


class ListNode(Generic[T]):
    """
    A handle into an IntrusiveList.

    The payload may keep a reference to its own node so it can be unlinked
    in O(1) without searching the list.
    """

    __slots__ = ("value", "prev", "next", "owner")

    def __init__(self, value: Optional[T], owner=None):
        self.value = value
        self.prev: Optional["ListNode[T]"] = None
        self.next: Optional["ListNode[T]"] = None
        self.owner = owner

    def __repr__(self) -> str:
        return f"ListNode({self.value!r})"


class IntrusiveList(Generic[T]):
    """
    Doubly linked list ordered from most recently touched (front) to least
    recently touched (back).

    Sentinel head and tail nodes remove all empty-neighbour branches, so every
    operation is O(1). Handles are tagged with the list that owns them; passing
    a foreign or already removed handle raises InvariantError instead of
    silently corrupting the list.
    """

    def __init__(self):
        self._head: ListNode[T] = ListNode(None)
        self._tail: ListNode[T] = ListNode(None)
        self._head.next = self._tail
        self._tail.prev = self._head
        self._size = 0

    def push_front(self, value: T) -> ListNode[T]:
        """Insert `value` at the front and return its handle."""
        node = ListNode(value, owner=self)
        self._link_front(node)
        return node

    def move_to_front(self, node: ListNode[T]):
        """Mark an existing node as most recently used."""
        self._check_owned(node)
        self._unlink(node)
        self._link_front(node)

    def remove(self, node: ListNode[T]) -> T:
        """Unlink `node` and return its payload. The handle is dead afterwards."""
        self._check_owned(node)
        self._unlink(node)
        node.owner = None
        return node.value

    def pop_back(self) -> Optional[T]:
        """Remove and return the least recently used payload, or None if empty."""
        if self.is_empty():
            return None
        return self.remove(self._tail.prev)

    def peek_back(self) -> Optional[T]:
        if self.is_empty():
            return None
        return self._tail.prev.value

    def clear(self):
        """
        Drop every node. Outstanding handles are invalidated so a later
        `remove` on them fails fast.
        """
        node = self._head.next
        while node is not self._tail:
            nxt = node.next
            node.owner = None
            node.prev = node.next = None
            node = nxt
        self._head.next = self._tail
        self._tail.prev = self._head
        self._size = 0

    def is_empty(self) -> bool:
        return self._size == 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        # Front (MRU) to back (LRU)
        node = self._head.next
        while node is not self._tail:
            yield node.value
            node = node.next

    def __repr__(self) -> str:
        parts = ["head"] + [repr(v) for v in self] + ["tail"]
        return f"IntrusiveList(size={self._size}: {'<->'.join(parts)})"

    def _check_owned(self, node: ListNode[T]):
        if node is None or node.owner is not self:
            raise InvariantError(f"{node!r} does not belong to this list")

    def _link_front(self, node: ListNode[T]):
        node.prev = self._head
        node.next = self._head.next
        self._head.next.prev = node
        self._head.next = node
        self._size += 1

    def _unlink(self, node: ListNode[T]):
        node.prev.next = node.next
        node.next.prev = node.prev
        node.prev = node.next = None
        self._size -= 1
