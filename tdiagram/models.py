"""Data models for T-diagrams."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any

from .errors import DiagramError
from .helpers import extend

if TYPE_CHECKING:
    from collections.abc import Mapping


class Orientation(IntEnum):
    """Direction a branch points towards.

    The values are chosen so that rotation is a single expression:
    clockwise is (d + 1) % 4 and counterclockwise is (d + 3) % 4.
    d % 2 separates vertical (0) from horizontal (1) branches.
    """

    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    def clockwise(self) -> Orientation:
        return Orientation((self + 1) % 4)

    def counterclockwise(self) -> Orientation:
        return Orientation((self + 3) % 4)

    @property
    def is_horizontal(self) -> bool:
        return self % 2 == 1

    @property
    def axis(self) -> str:
        """Coordinate updated when moving along this orientation."""
        return "x" if self.is_horizontal else "y"

    @property
    def sign(self) -> int:
        """+1 when moving along this orientation grows the coordinate."""
        return 1 if self in (Orientation.RIGHT, Orientation.DOWN) else -1


class Direction(Enum):
    """Turn taken by a child relative to its parent's orientation."""

    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise DiagramError(
                f"Invalid direction '{value}', must be 'left' or 'right'"
            ) from None

    def turn(self, orientation: Orientation) -> Orientation:
        """Orientation of a child branching this way off ``orientation``."""
        if self is Direction.RIGHT:
            return orientation.clockwise()
        return orientation.counterclockwise()


@dataclass(frozen=True)
class Point:
    """A 2D coordinate (SVG convention, y grows downward)."""

    x: float = 0.0
    y: float = 0.0

    def moved(self, orientation: Orientation, distance: float) -> Point:
        """Return the point ``distance`` away along ``orientation``."""
        delta = distance * orientation.sign
        if orientation.axis == "x":
            return Point(self.x + delta, self.y)
        return Point(self.x, self.y + delta)

    def manhattan(self, other: Point) -> float:
        return abs(self.x - other.x) + abs(self.y - other.y)


_NODE_DEFAULTS: dict[str, Any] = {
    "parent": None,
    "direction": Direction.RIGHT,
    "seq": 0,
    "branch_at": None,
    "properties": None,
    "hidden": False,
}


@dataclass
class NodeSpec:
    """A node of the input list.

    The list must be ordered so that every node comes after its parent.
    """

    name: str
    length: float
    parent: str | None = None  # empty or None refers to the root
    direction: Direction = Direction.RIGHT
    seq: int = 0
    branch_at: float | None = None  # explicit offset along the parent's branch
    properties: dict[str, Any] = field(default_factory=dict)
    hidden: bool = False

    def __post_init__(self) -> None:
        if self.parent == "":
            self.parent = None
        self.direction = Direction.parse(self.direction)
        if self.properties is None:
            self.properties = {}
        if not self.length > 0:
            raise DiagramError(
                f"Node '{self.name}' has length={self.length}, must be positive."
            )

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> NodeSpec:
        """Build a node from a plain mapping with the same keys."""
        values = extend(_NODE_DEFAULTS, record)
        try:
            return cls(
                name=values["name"],
                length=values["length"],
                parent=values["parent"],
                direction=values["direction"],
                seq=values["seq"],
                branch_at=values["branch_at"],
                properties=values["properties"],
                hidden=bool(values["hidden"]),
            )
        except KeyError as exc:
            raise DiagramError(f"Node record is missing {exc}") from None

    @property
    def is_root(self) -> bool:
        return self.parent is None


@dataclass
class GeometryNode:
    """Computed geometry of a single node."""

    name: str
    coordinates: Point
    orientation: Orientation
    length: float
    parent: str | None
    children: list[str] = field(default_factory=list)
    hidden: bool = False
    branch_at: float | None = None
    segment_end: bool = False  # synthetic tip of the parent's branch
    direction: Direction = Direction.RIGHT
    seq: int = 0
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def end_coordinates(self) -> Point:
        """Tip of this node's branch."""
        return self.coordinates.moved(self.orientation, self.length)


@dataclass(frozen=True)
class Bounds:
    """Box containing every node of a diagram."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class Cost:
    """Breakdown of a diagram's cost. Lower is better."""

    branches_factor: float
    intersection_factor: int
    ar_factor: float
    total: float
