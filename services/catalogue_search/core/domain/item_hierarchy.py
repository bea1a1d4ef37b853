# core/domain/item_hierarchy.py
#
# Description:
# Static type hierarchy of catalogue items.
# Each item type's document carries the ids of the items it is contained in or
# served by (e.g. a resourceGroup document has a ``provider`` field). The graph
# formed by those fields is used to validate relationship requests and to find
# the chain of lookups that resolves one.

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .models import ItemType


class TraversalDirection(Enum):
    UP = "up"      # Follow fields carried by the anchor
    DOWN = "down"  # Find items that carry the anchor's id


@dataclass(frozen=True)
class TraversalPath:
    """
    Ordered types visited from the anchor to the target, both inclusive.

    For UP paths each step is a field carried by the previous type. For DOWN
    paths each step's documents carry the previous type's id.
    """
    direction: TraversalDirection
    types: Tuple[ItemType, ...]

    @property
    def hops(self) -> int:
        return len(self.types) - 1

    @property
    def intermediates(self) -> Tuple[ItemType, ...]:
        return self.types[1:-1]


# type -> types whose ids its documents carry
CARRIED_FIELDS: Dict[ItemType, Tuple[ItemType, ...]] = {
    ItemType.RESOURCE: (
        ItemType.RESOURCE_GROUP,
        ItemType.PROVIDER,
        ItemType.RESOURCE_SERVER,
        ItemType.COS,
    ),
    ItemType.RESOURCE_GROUP: (ItemType.PROVIDER,),
    ItemType.PROVIDER: (ItemType.RESOURCE_SERVER, ItemType.COS),
    ItemType.RESOURCE_SERVER: (ItemType.COS,),
    ItemType.COS: (ItemType.OWNER,),
    ItemType.OWNER: (),
}


def carriers_of(item_type: ItemType) -> List[ItemType]:
    """Types whose documents carry an id of ``item_type``."""
    return [source for source, targets in CARRIED_FIELDS.items() if item_type in targets]


def _shortest_path(start: ItemType, goal: ItemType) -> Optional[List[ItemType]]:
    # BFS over the carried-field edges; neighbours are visited in declaration order
    previous: Dict[ItemType, Optional[ItemType]] = {start: None}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if current == goal:
            path = []
            node: Optional[ItemType] = current
            while node is not None:
                path.append(node)
                node = previous[node]
            return list(reversed(path))
        for neighbour in CARRIED_FIELDS[current]:
            if neighbour not in previous:
                previous[neighbour] = current
                queue.append(neighbour)
    return None


def find_path(anchor: ItemType, target: ItemType) -> Optional[TraversalPath]:
    """
    Find the shortest traversal from ``anchor`` to ``target``.

    Upward paths are preferred; a downward path is the reversed upward path
    from the target to the anchor. Returns None when the types are identical or
    unrelated.
    """
    if anchor == target:
        return None
    upward = _shortest_path(anchor, target)
    if upward is not None:
        return TraversalPath(TraversalDirection.UP, tuple(upward))
    downward = _shortest_path(target, anchor)
    if downward is not None:
        return TraversalPath(TraversalDirection.DOWN, tuple(reversed(downward)))
    return None
