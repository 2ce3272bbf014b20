"""Generational layout — generation levels, row coordinates and edges to draw.

Generations are relative to a seed member (0). Parents sit at least one level up,
children at least one level down, siblings and spouses on the same level.
A breadth-first pass places every member, then levels are only ever raised
until parents sit above their children. A child is never lowered, so
cross-generation marriages still settle.

Pure functions on in-memory data, no DB access.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field

from legacylink.family.members import FamilyMember, index_roster

logger = logging.getLogger("legacylink.family.layout")


@dataclass(frozen=True)
class LayoutStyle:
    node_width: float
    horizontal_spacing: float
    row_height: float
    top_margin: float
    center_x: float
    include_siblings: bool = False


# Home screen tree: 120px cards, 160px tall with 80px between rows.
TREE_VIEW = LayoutStyle(
    node_width=120.0,
    horizontal_spacing=40.0,
    row_height=240.0,
    top_margin=50.0,
    center_x=0.0,
)

# Relationship mapper: 80px slots on a map 360px wide.
RELATIONSHIP_MAP = LayoutStyle(
    node_width=80.0,
    horizontal_spacing=0.0,
    row_height=120.0,
    top_margin=50.0,
    center_x=180.0,
    include_siblings=True,
)

STYLES = {"tree": TREE_VIEW, "map": RELATIONSHIP_MAP}


@dataclass
class TreeNode:
    id: str
    member: FamilyMember
    x: float
    y: float
    generation: int
    level: int  # row index, 0 = top row


@dataclass(frozen=True)
class TreeConnection:
    from_id: str
    to_id: str
    type: str  # parent, spouse, sibling


@dataclass
class TreeLayout:
    nodes: list[TreeNode] = field(default_factory=list)
    connections: list[TreeConnection] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0


# ---------------------------------------------------------------------------
# Edge index
# ---------------------------------------------------------------------------

class EdgeIndex:
    """Adjacency read from both endpoints of every edge.

    A parent edge counts if either the child lists the parent or the parent
    lists the child. Ids outside the roster are dropped.
    """

    def __init__(self, members: list[FamilyMember]):
        self._index = index_roster(members)
        self.parents: dict[str, list[str]] = defaultdict(list)
        self.children: dict[str, list[str]] = defaultdict(list)
        self.siblings: dict[str, list[str]] = defaultdict(list)
        self.spouses: dict[str, list[str]] = defaultdict(list)

        for m in self._index.values():
            rels = m.relationships
            for pid in rels.parents:
                self._pair(self.parents, self.children, m.id, pid)
            for cid in rels.children:
                self._pair(self.parents, self.children, cid, m.id)
            for sid in rels.siblings:
                self._pair(self.siblings, self.siblings, m.id, sid)
            for sid in rels.spouses:
                self._pair(self.spouses, self.spouses, m.id, sid)

    def _pair(self, up: dict, down: dict, child_id: str, parent_id: str) -> None:
        if child_id == parent_id or parent_id not in self._index or child_id not in self._index:
            return
        if parent_id not in up[child_id]:
            up[child_id].append(parent_id)
        if child_id not in down[parent_id]:
            down[parent_id].append(child_id)

    def neighbours(self, member_id: str) -> list[tuple[str, int]]:
        """(other id, generation offset) pairs in propagation order."""
        return (
            [(pid, 1) for pid in self.parents.get(member_id, [])]
            + [(cid, -1) for cid in self.children.get(member_id, [])]
            + [(sid, 0) for sid in self.siblings.get(member_id, [])]
            + [(sid, 0) for sid in self.spouses.get(member_id, [])]
        )

    def upward(self, member_id: str) -> list[tuple[str, int]]:
        """Neighbours whose level must not sit below ``member_id`` + offset."""
        return (
            [(pid, 1) for pid in self.parents.get(member_id, [])]
            + [(sid, 0) for sid in self.siblings.get(member_id, [])]
            + [(sid, 0) for sid in self.spouses.get(member_id, [])]
        )


# ---------------------------------------------------------------------------
# Generation assignment
# ---------------------------------------------------------------------------

def _pick_seed(members: list[FamilyMember], edges: EdgeIndex, focus_id: str | None) -> str:
    if focus_id is not None:
        if any(m.id == focus_id for m in members):
            return focus_id
        logger.debug("Focus member %s not in roster, falling back", focus_id)
    for m in members:
        if not edges.parents.get(m.id):
            return m.id
    return members[0].id


def _place(seed_id: str, edges: EdgeIndex, generations: dict[str, int]) -> None:
    """First placement: each member reached takes its first proposed value."""
    generations[seed_id] = 0
    queue = deque([seed_id])
    while queue:
        member_id = queue.popleft()
        for other_id, offset in edges.neighbours(member_id):
            if other_id not in generations:
                generations[other_id] = generations[member_id] + offset
                queue.append(other_id)


def _raise_to_fixed_point(
    order: list[str],
    edges: EdgeIndex,
    generations: dict[str, int],
    bound: int,
) -> None:
    """Lift parents above children and level spouses and siblings.

    Values only ever go up, so a child is never pulled along when its
    parent rises. Without an ancestry cycle every member is queued at most
    ``bound`` times; with one, the members on it stop being queued there.
    """
    queue = deque(order)
    queued = set(order)
    visits: dict[str, int] = defaultdict(int)
    while queue:
        member_id = queue.popleft()
        queued.discard(member_id)
        for other_id, offset in edges.upward(member_id):
            proposed = generations[member_id] + offset
            if generations[other_id] >= proposed:
                continue
            generations[other_id] = proposed
            if other_id in queued:
                continue
            visits[other_id] += 1
            if visits[other_id] > bound:
                logger.debug("Generation bound reached for %s", other_id)
                continue
            queued.add(other_id)
            queue.append(other_id)


def assign_generations(
    all_members: list[FamilyMember],
    focus_id: str | None = None,
) -> dict[str, int]:
    """Generation level per member id; higher is older.

    The focus member (or the first member without parents, or the first
    roster entry) is seeded at 0. Members not reachable from it are seeded
    at 0 in roster order, so every member gets a level. Placement is then
    raised until every parent sits at least one level above each child and
    spouses and siblings share a level.
    """
    if not all_members:
        return {}

    edges = EdgeIndex(all_members)
    generations: dict[str, int] = {}

    _place(_pick_seed(all_members, edges, focus_id), edges, generations)
    for m in all_members:
        if m.id not in generations:
            _place(m.id, edges, generations)

    order = list(index_roster(all_members))
    _raise_to_fixed_point(order, edges, generations, bound=len(order) + 1)
    return generations


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

def derive_connections(
    all_members: list[FamilyMember],
    include_siblings: bool = False,
    edges: EdgeIndex | None = None,
) -> list[TreeConnection]:
    """Edges to draw: parent to child, plus one per spouse (and sibling) pair."""
    edges = edges or EdgeIndex(all_members)
    connections: list[TreeConnection] = []
    seen_pairs: set[tuple[str, frozenset[str]]] = set()
    placed: set[str] = set()

    def undirected(member_id: str, others: list[str], kind: str) -> None:
        for other_id in others:
            key = (kind, frozenset((member_id, other_id)))
            if key in seen_pairs:
                continue
            seen_pairs.add(key)
            connections.append(TreeConnection(member_id, other_id, kind))

    for m in all_members:
        if m.id in placed:
            continue
        placed.add(m.id)
        for child_id in edges.children.get(m.id, []):
            connections.append(TreeConnection(m.id, child_id, "parent"))
        undirected(m.id, edges.spouses.get(m.id, []), "spouse")
        if include_siblings:
            undirected(m.id, edges.siblings.get(m.id, []), "sibling")
    return connections


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

def layout_tree(
    all_members: list[FamilyMember],
    focus_id: str | None = None,
    style: LayoutStyle = RELATIONSHIP_MAP,
) -> TreeLayout:
    """Place every member on a generation row, oldest row on top."""
    if not all_members:
        return TreeLayout()

    edges = EdgeIndex(all_members)
    generations = assign_generations(all_members, focus_id)

    rows: dict[int, list[FamilyMember]] = defaultdict(list)
    placed: set[str] = set()
    for m in all_members:
        if m.id in placed:
            continue
        placed.add(m.id)
        rows[generations[m.id]].append(m)

    slot = style.node_width + style.horizontal_spacing
    nodes: list[TreeNode] = []
    width = 0.0
    levels = sorted(rows, reverse=True)
    for level, generation in enumerate(levels):
        row = rows[generation]
        row_width = len(row) * style.node_width + (len(row) - 1) * style.horizontal_spacing
        width = max(width, row_width)
        start_x = style.center_x - row_width / 2
        y = style.top_margin + level * style.row_height
        for i, member in enumerate(row):
            nodes.append(TreeNode(
                id=member.id,
                member=member,
                x=start_x + i * slot + style.node_width / 2,
                y=y,
                generation=generation,
                level=level,
            ))

    return TreeLayout(
        nodes=nodes,
        connections=derive_connections(all_members, style.include_siblings, edges),
        width=width,
        height=len(levels) * style.row_height + 2 * style.top_margin,
    )
