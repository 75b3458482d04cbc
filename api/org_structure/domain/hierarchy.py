"""
Pure hierarchy checks used by the org-unit store and the confirmation workflow.

Nothing here touches the database. Traversals run over an adjacency map built
once per check and use an explicit stack plus a visited set, so they terminate
on deep trees and on data that already contains a cycle.
"""
import re
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Set, Tuple

from api.org_structure.config import Constants, Messages
from api.org_structure.domain.exceptions import ValidationError

_NON_ALNUM_RUN = re.compile(r"[^A-Z0-9]+")

ParentMap = Mapping[Hashable, Optional[Hashable]]
ChildrenIndex = Dict[Optional[Hashable], List[Hashable]]


def derive_code(name: str) -> str:
    """ACME Corp. -> ACME_CORP_ (uppercased, non-alphanumeric runs to ``_``, max 20 chars)."""
    return _NON_ALNUM_RUN.sub("_", name.upper())[:Constants.DERIVED_CODE_MAX_LENGTH]


def resolve_code(name: str, code: Optional[str]) -> str:
    if code is None or code == "":
        return derive_code(name)
    if not Constants.EXPLICIT_CODE_PATTERN.match(code):
        raise ValidationError(Messages.INVALID_CODE)
    return code


def ensure_parent_above(parent_level: int, child_level: int) -> None:
    if parent_level >= child_level:
        raise ValidationError(Messages.PARENT_LEVEL)


def next_sort_order(current_max: Optional[int]) -> int:
    return (current_max or 0) + Constants.SORT_ORDER_STEP


def build_children_index(edges: Iterable[Tuple[Hashable, Optional[Hashable]]]) -> ChildrenIndex:
    """Turn ``(unit_id, parent_id)`` pairs into ``parent_id -> [child ids]``."""
    index: ChildrenIndex = {}
    for unit_id, parent_id in edges:
        index.setdefault(parent_id, []).append(unit_id)
    return index


def collect_descendants(root_id: Hashable, children_index: ChildrenIndex) -> Set[Hashable]:
    """All ids reachable below ``root_id``; ``root_id`` itself is not included."""
    descendants: Set[Hashable] = set()
    visited: Set[Hashable] = {root_id}
    stack = list(children_index.get(root_id, []))

    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)
        descendants.add(node)
        stack.extend(children_index.get(node, []))

    return descendants


def ensure_valid_reparent(
    unit_id: Hashable,
    new_parent_id: Hashable,
    children_index: ChildrenIndex
) -> None:
    if new_parent_id == unit_id:
        raise ValidationError(Messages.SELF_PARENT)
    if new_parent_id in collect_descendants(unit_id, children_index):
        raise ValidationError(Messages.CIRCULAR_PARENT)


def find_dangling_units(parent_map: ParentMap) -> List[Hashable]:
    """Units whose parent id is set but not present in ``parent_map``."""
    return [
        unit_id for unit_id, parent_id in parent_map.items()
        if parent_id is not None and parent_id not in parent_map
    ]


def find_cyclic_units(parent_map: ParentMap) -> List[Hashable]:
    """
    Units whose parent chain never reaches a root.

    Each chain walk is bounded by ``len(parent_map)`` steps. Results from
    earlier walks are reused so the whole check is linear.
    """
    # True = chain ends at a root (or a dangling reference), False = chain loops
    resolved: Dict[Hashable, bool] = {}
    limit = len(parent_map)

    for start in parent_map:
        if start in resolved:
            continue

        path: List[Hashable] = []
        on_path: Set[Hashable] = set()
        node = start
        terminates = True

        while True:
            if node in resolved:
                terminates = resolved[node]
                break
            if node in on_path or len(path) > limit:
                terminates = False
                break
            path.append(node)
            on_path.add(node)
            parent_id = parent_map.get(node)
            if parent_id is None or parent_id not in parent_map:
                break
            node = parent_id

        for visited in path:
            resolved[visited] = terminates

    return [unit_id for unit_id in parent_map if not resolved[unit_id]]


def chain_depth(unit_id: Hashable, parent_map: ParentMap) -> Optional[int]:
    """Number of parent hops to reach a root, or None when the chain loops."""
    seen: Set[Hashable] = set()
    depth = 0
    node = unit_id
    while True:
        seen.add(node)
        parent_id = parent_map.get(node)
        if parent_id is None or parent_id not in parent_map:
            return depth
        if parent_id in seen:
            return None
        depth += 1
        node = parent_id
