from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class QueueError(Exception):
    pass


class QueueIndexError(QueueError, IndexError):
    pass


class QueueItemNotFoundError(QueueError, ValueError):
    pass


def _in_range(index, length: int) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < length


class VideoQueue(Generic[T]):
    """
    Ordered list of pending entries. Not synchronised; the relay serialises
    access per room.
    """

    def __init__(self, items=None):
        self._items: List[T] = list(items or [])

    def __len__(self) -> int:
        return len(self._items)

    def enqueue(self, item: T) -> None:
        self._items.append(item)

    def add_to_beginning(self, item: T) -> None:
        self._items.insert(0, item)

    def peek(self) -> Optional[T]:
        if not self._items:
            return None
        return self._items[0]

    def dequeue(self) -> Optional[T]:
        if not self._items:
            return None
        return self._items.pop(0)

    def item_at(self, index: int) -> T:
        self._check_index(index)
        return self._items[index]

    def move_item(self, item: T, new_position: int) -> None:
        """
        Remove `item` and reinsert it at `new_position`. The position is
        validated against the queue before removal.
        """
        try:
            index = self._items.index(item)
        except ValueError:
            raise QueueItemNotFoundError(f'Item "{item}" not found in the queue') from None

        if not _in_range(new_position, len(self._items)):
            raise QueueIndexError("New position is out of bounds")

        self.remove_item_at(index)
        self._items.insert(new_position, item)

    def remove_item_at(self, index: int) -> T:
        self._check_index(index)
        return self._items.pop(index)

    def to_list(self) -> List[T]:
        return list(self._items)

    def _check_index(self, index: int) -> None:
        if not _in_range(index, len(self._items)):
            raise QueueIndexError("Index is out of bounds")
