"""Cost evaluation and break insertion for T-diagrams."""

from __future__ import annotations

import itertools
import logging
import math
from bisect import bisect_left, bisect_right, insort
from collections import defaultdict
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import networkx as nx

from .errors import DegenerateGeometry, DiagramError, TopologyError
from .helpers import binary_search
from .layout import TDiagram, segment_end_name
from .models import Cost, Direction, GeometryNode, NodeSpec, Orientation, Point

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

Segment = tuple[Point, Point]

# Sweep event kinds, in the order they are handled at equal x
_CLOSE = 0
_QUERY = 1
_OPEN = 2

# Decimals kept when comparing coordinates
PRECISION = 9


@dataclass
class CostWeights:
    """Weights of the cost function."""

    alpha: float = 5.0  # number of breaks
    beta: float = 1.0  # number of intersections
    gamma: float = 10.0  # distance from the preferred aspect ratio
    preferred_aspect_ratio: float = 1.414286

    def __post_init__(self) -> None:
        for name in ("alpha", "beta", "gamma", "preferred_aspect_ratio"):
            if not getattr(self, name) > 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")


def _exp(value: float) -> float:
    try:
        return math.exp(value)
    except OverflowError:
        return math.inf


def _snap(point: Point) -> Point:
    """Round a point so coordinates reached by different sums compare equal."""
    return Point(round(point.x, PRECISION), round(point.y, PRECISION))


def _collinear_overlaps(spans: Iterable[tuple[float, float, float]]) -> int:
    """Count overlapping pairs among collinear segments.

    Args:
        spans: (other, low, high) triples; segments sharing ``other`` lie on
            the same line and cover [low, high] on it

    Returns:
        Number of pairs sharing more than a single point
    """
    grouped: dict[float, list[tuple[float, float]]] = defaultdict(list)
    for other, low, high in spans:
        grouped[round(other, PRECISION)].append((low, high))

    count = 0
    for group in grouped.values():
        if len(group) < 2:
            continue
        group.sort()

        for index, (_, high) in enumerate(group):
            # Segments sorted after this one that start before it ends
            stop = binary_search(group, high, key=lambda span: span[0])
            if stop > index + 1:
                count += stop - index - 1

    return count


def _perpendicular_crossings(horizontal: list[Segment], vertical: list[Segment]) -> int:
    """Count horizontal/vertical pairs crossing at a point interior to both.

    Sweeps left to right: a horizontal segment is opened at its left end
    and closed at its right end, a vertical segment counts the open
    horizontal segments strictly between its two ends.
    """
    events = []
    for start, end in horizontal:
        low, high = sorted((start.x, end.x))
        events.append((low, _OPEN, start.y, start.y))
        events.append((high, _CLOSE, start.y, start.y))
    for start, end in vertical:
        low, high = sorted((start.y, end.y))
        events.append((start.x, _QUERY, low, high))
    events.sort()

    open_ys: list[float] = []
    count = 0
    for _, kind, low, high in events:
        if kind == _OPEN:
            insort(open_ys, low)
        elif kind == _CLOSE:
            del open_ys[bisect_left(open_ys, low)]
        else:
            count += bisect_left(open_ys, high) - bisect_right(open_ys, low)

    return count


def _relative_direction(
    parent: Orientation, child: Orientation, fallback: Direction
) -> Direction:
    """Turn leading from ``parent`` to ``child``, ``fallback`` if they are parallel."""
    turn = (child - parent) % 4
    if turn == 1:
        return Direction.RIGHT
    if turn == 3:
        return Direction.LEFT
    return fallback


class DiagramCost:
    """Manipulates a T-diagram and evaluates how good its layout is.

    Holds its own copy of the diagram's geometry. Inserting breaks
    rebuilds the diagram from that geometry.
    """

    def __init__(self, diagram: TDiagram):
        self.diagram = diagram
        self.geometry = diagram.geometry()
        self.num_branches = 0
        self._break_ids = itertools.count()

    def segments(self) -> list[Segment]:
        """One segment per branch, from the node to the end of its branch.

        Every other parent to child segment lies on one of these.
        """
        segments = []
        for node in self.geometry.values():
            if node.segment_end:
                continue
            start = _snap(node.coordinates)
            end = _snap(self.geometry[segment_end_name(node.name)].coordinates)
            if start != end:
                segments.append((start, end))
        return segments

    def intersections(self) -> int:
        """Count the intersections between the branches of the diagram.

        Collinear branches sharing more than a point count once per pair,
        as do perpendicular branches crossing. Branches that only touch,
        such as a child starting on its parent's branch, do not count.
        """
        segments = self.segments()
        horizontal = [s for s in segments if s[0].y == s[1].y]
        vertical = [s for s in segments if s[0].x == s[1].x]

        his = _collinear_overlaps(
            (start.y, *sorted((start.x, end.x))) for start, end in horizontal
        )
        vis = _collinear_overlaps(
            (start.x, *sorted((start.y, end.y))) for start, end in vertical
        )
        pis = _perpendicular_crossings(horizontal, vertical)

        logger.debug("Intersections: %d horizontal, %d vertical, %d crossing", his, vis, pis)
        return his + vis + pis

    def cost(
        self,
        alpha: float,
        beta: float,
        gamma: float,
        preferred_aspect_ratio: float,
    ) -> Cost:
        """Compute the cost of the diagram.

        The cost combines:
        1. the number of breaks, squared
        2. the number of intersections
        3. how far the aspect ratio is from the preferred one

        Args:
            alpha: Weight of (1)
            beta: Weight of (2)
            gamma: Exponent applied to (3)
            preferred_aspect_ratio: Target width / height

        Returns:
            Cost breakdown; total is 0 only with no breaks, no intersections
            and the exact aspect ratio

        Raises:
            DegenerateGeometry: if the canvas has no width or no height
        """
        branches_factor = self.num_branches**2
        intersections = self.intersections()

        width = self.diagram.canvas_width()
        height = self.diagram.canvas_height()
        if width == 0 or height == 0:
            raise DegenerateGeometry(
                f"Canvas is {width} x {height}, aspect ratio is undefined."
            )

        ar_diagram = width / height
        gap = max(ar_diagram, preferred_aspect_ratio) / min(ar_diagram, preferred_aspect_ratio) - 1
        ratio_gap = _exp(gap)

        return Cost(
            branches_factor=branches_factor,
            intersection_factor=intersections,
            ar_factor=ratio_gap - 1,
            total=alpha * branches_factor + beta * intersections + _exp(gamma * gap) - 1,
        )

    def introduce_breaks(self, breaks: Mapping[str, float]) -> None:
        """Add break points to branches and rebuild the diagram.

        A break splits a branch in two: the node keeps the first part and
        a hidden break node, turning to point up or right, carries the rest
        along with the children attached to it.

        Args:
            breaks: Node name -> fraction of its branch, in (0, 1), at which
                to break it

        Raises:
            DiagramError: on an unknown node or a fraction outside (0, 1)
        """
        for name, fraction in breaks.items():
            node = self.geometry.get(name)
            if node is None or node.segment_end:
                raise DiagramError(f"Cannot break unknown node '{name}'.")
            if not 0 < fraction < 1:
                raise DiagramError(
                    f"Break of '{name}' at {fraction}, must be strictly between 0 and 1."
                )

        self.num_branches = len(breaks)

        for name, fraction in breaks.items():
            self._break(self.geometry[name], fraction)

        self._update_from_geometry()

    def _fresh_name(self) -> str:
        while True:
            name = f"b{next(self._break_ids)}"
            if name not in self.geometry and segment_end_name(name) not in self.geometry:
                return name

    def _break(self, node: GeometryNode, fraction: float) -> None:
        """Split ``node``'s branch, in the geometry only."""
        distance = node.length * fraction
        break_name = self._fresh_name()

        # The end of the branch is always the last child and stays on the node
        *attached, end_name = node.children
        axis = node.orientation.axis
        sign = node.orientation.sign
        offsets = [
            (getattr(self.geometry[child].coordinates, axis) - getattr(node.coordinates, axis))
            * sign
            for child in attached
        ]
        split = binary_search(offsets, distance)
        kept, moved = attached[:split], attached[split:]

        self.geometry[break_name] = GeometryNode(
            name=break_name,
            coordinates=node.coordinates.moved(node.orientation, distance),
            orientation=Orientation.UP if node.orientation.is_horizontal else Orientation.RIGHT,
            length=node.length - distance,
            parent=node.name,
            children=moved,
            hidden=True,
            branch_at=distance,
            seq=len(kept),
        )

        node.children = [*kept, break_name, end_name]
        node.length = distance

        for child_name in moved:
            child = self.geometry[child_name]
            child.parent = break_name
            if child.branch_at is not None:
                child.branch_at -= distance

        logger.debug(
            "Break %s on %s at %.3f, moved %d children", break_name, node.name, distance, len(moved)
        )

    def _update_from_geometry(self) -> None:
        """Rebuild the diagram from the modified geometry.

        Derives a node record for every real node relative to its current
        parent, sorts them so parents come first and lays them out again.
        """
        graph = nx.DiGraph()
        specs: dict[str, NodeSpec] = {}

        for node in self.geometry.values():
            if not node.segment_end:
                graph.add_node(node.name)

        for node in self.geometry.values():
            if node.segment_end:
                continue

            direction, seq, branch_at = node.direction, node.seq, node.branch_at
            if node.parent is not None:
                parent = self.geometry[node.parent]
                siblings = [child for child in parent.children if child in graph]
                direction = _relative_direction(parent.orientation, node.orientation, node.direction)

                # new breaks are not in the previous diagram and keep the
                # position they were given
                previous = self.diagram.nodes.get(node.name)
                if previous is not None and previous.parent != node.parent:
                    # moved under a break, spread along it
                    seq = siblings.index(node.name)
                elif previous is not None and branch_at is None:
                    # the parent may have been shortened or gained a break,
                    # pin the node where it was if its seq no longer does
                    target = self.diagram.offset(node.name)
                    if TDiagram.attachment_offset(previous, len(siblings), parent.length) != target:
                        branch_at = target

            specs[node.name] = NodeSpec(
                name=node.name,
                length=node.length,
                parent=node.parent,
                direction=direction,
                seq=seq,
                branch_at=branch_at,
                properties=node.properties,
                hidden=node.hidden,
            )
            graph.add_edges_from(
                (node.name, child) for child in node.children if child in graph
            )

        if not nx.is_arborescence(graph):
            raise TopologyError("Modified geometry no longer forms a single rooted tree.")

        root = next(name for name, degree in graph.in_degree() if degree == 0)
        order = [root, *(child for _, child in nx.bfs_edges(graph, root))]

        self.diagram = TDiagram([specs[name] for name in order], replace(self.diagram.config))
        self.geometry = self.diagram.geometry()
        logger.debug("Rebuilt diagram with %d nodes", len(order))
