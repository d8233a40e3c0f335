"""Tree building and coordinate computation for T-diagrams."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from .errors import TopologyError
from .models import Bounds, GeometryNode, NodeSpec, Orientation, Point

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

END_SUFFIX = "_end"


def segment_end_name(name: str) -> str:
    """Name of the synthetic node marking the tip of ``name``'s branch."""
    return name + END_SUFFIX


@dataclass
class LayoutConfig:
    """Configuration for canvas calculations."""

    margin_left: float = 0
    margin_top: float = 0


class TDiagram:
    """A rooted tree laid out with axis-aligned branches.

    Every child turns left or right relative to the orientation of its
    parent's branch, and attaches at some distance along that branch.
    Coordinates are computed on first access and cached.

    Example:
        diagram = TDiagram([
            {"name": "0", "parent": "", "direction": "right", "length": 100, "seq": 0},
            {"name": "00", "parent": "0", "direction": "left", "length": 50, "seq": 0},
        ])
        diagram.geometry()["00"].coordinates  # Point(x=100.0, y=0.0)
    """

    def __init__(
        self,
        nodes: Iterable[NodeSpec | Mapping[str, Any]],
        config: LayoutConfig | None = None,
    ):
        """Build the tree.

        Args:
            nodes: Node records, every parent listed before its children
            config: Margins used for canvas size and viewbox

        Raises:
            TopologyError: if the records do not form a single rooted tree
        """
        self.config = config or LayoutConfig()
        self.nodes: dict[str, NodeSpec] = {}
        self.children: dict[str, list[str]] = {}
        self.root_name = self._build(nodes)
        self._sort_children()

        # None until the coordinates are computed
        self._geometry: dict[str, GeometryNode] | None = None

    def _build(self, nodes: Iterable[NodeSpec | Mapping[str, Any]]) -> str:
        roots = []

        for item in nodes:
            spec = item if isinstance(item, NodeSpec) else NodeSpec.from_dict(item)

            if spec.name in self.nodes:
                raise TopologyError(f"Duplicate node name '{spec.name}'.")

            if spec.is_root:
                roots.append(spec.name)
            elif spec.parent not in self.nodes:
                raise TopologyError(
                    f"Node '{spec.name}' refers to parent '{spec.parent}', "
                    "which does not appear before it."
                )

            self.nodes[spec.name] = spec
            self.children[spec.name] = []
            if spec.parent is not None:
                self.children[spec.parent].append(spec.name)

        if not roots:
            raise TopologyError("Diagram has no root node.")
        if len(roots) > 1:
            raise TopologyError(f"Diagram has several root nodes: {', '.join(roots)}.")

        for name in self.nodes:
            if segment_end_name(name) in self.nodes:
                raise TopologyError(
                    f"Node name '{segment_end_name(name)}' is reserved for the "
                    f"end of the branch of '{name}'."
                )

        return roots[0]

    def _sort_children(self) -> None:
        """Order every child list by distance along the parent's branch."""
        for name, children in self.children.items():
            length = self.nodes[name].length
            # the list reads as empty while it is being sorted
            count = len(children)
            children.sort(
                key=lambda child: self.attachment_offset(self.nodes[child], count, length)
            )

    @staticmethod
    def attachment_offset(node: NodeSpec, sibling_count: int, parent_length: float) -> float:
        """Distance from the parent's origin at which ``node`` branches off."""
        if node.branch_at is not None:
            return node.branch_at
        return (node.seq + 1) / sibling_count * parent_length

    def offset(self, name: str) -> float:
        """Distance along its parent's branch at which ``name`` branches off."""
        node = self.nodes[name]
        if node.parent is None:
            return self.attachment_offset(node, 1, 0.0)
        return self.attachment_offset(
            node, len(self.children[node.parent]), self.nodes[node.parent].length
        )

    @property
    def root(self) -> NodeSpec:
        return self.nodes[self.root_name]

    def specs(self) -> list[NodeSpec]:
        """Node records in parent-before-child order."""
        return list(self.nodes.values())

    def set_margins(self, left: float, top: float) -> None:
        self.config.margin_left = left
        self.config.margin_top = top

    def compute_coordinates(self) -> None:
        """Compute coordinates and orientation of every node.

        The root starts at (0, 0) pointing right, as a child of a virtual
        zero-length branch pointing up. Each node is followed by the
        synthetic end of its own branch.
        """
        geometry: dict[str, GeometryNode] = {}

        root_point = Point().moved(Orientation.UP, self.offset(self.root_name))
        stack = [(self.root_name, root_point, Orientation.RIGHT)]

        while stack:
            name, point, orientation = stack.pop()
            spec = self.nodes[name]
            children = self.children[name]
            end_name = segment_end_name(name)

            geometry[name] = GeometryNode(
                name=name,
                coordinates=point,
                orientation=orientation,
                length=spec.length,
                parent=spec.parent,
                children=[*children, end_name],
                hidden=spec.hidden,
                branch_at=spec.branch_at,
                direction=spec.direction,
                seq=spec.seq,
                properties=spec.properties,
            )
            geometry[end_name] = GeometryNode(
                name=end_name,
                coordinates=point.moved(orientation, spec.length),
                orientation=orientation,
                length=0,
                parent=name,
                hidden=True,
                branch_at=spec.length,
                segment_end=True,
            )

            # Reversed so the first child is expanded first
            for child_name in reversed(children):
                child = self.nodes[child_name]
                offset = self.attachment_offset(child, len(children), spec.length)
                stack.append((
                    child_name,
                    point.moved(orientation, offset),
                    child.direction.turn(orientation),
                ))

        self._geometry = geometry
        logger.debug("Computed coordinates for %d nodes", len(self.nodes))

    def _ensure_coordinates(self) -> dict[str, GeometryNode]:
        if self._geometry is None:
            self.compute_coordinates()
        return self._geometry

    def geometry(self) -> dict[str, GeometryNode]:
        """Map every node name, segment ends included, to its geometry.

        The returned map is a copy and may be modified freely.
        """
        return {
            name: replace(node, children=list(node.children))
            for name, node in self._ensure_coordinates().items()
        }

    def bounds(self) -> Bounds:
        """Box containing every node and branch end."""
        points = [node.coordinates for node in self._ensure_coordinates().values()]
        return Bounds(
            left=min(p.x for p in points),
            top=min(p.y for p in points),
            right=max(p.x for p in points),
            bottom=max(p.y for p in points),
        )

    def canvas_width(self) -> float:
        return self.bounds().width + 2 * self.config.margin_left

    def canvas_height(self) -> float:
        return self.bounds().height + 2 * self.config.margin_top

    def viewbox(self) -> str:
        """SVG viewBox value framing the whole diagram."""
        bounds = self.bounds()
        return (
            f"{bounds.left - self.config.margin_left} "
            f"{bounds.top - self.config.margin_top} "
            f"{self.canvas_width()} {self.canvas_height()}"
        )
