import pytest

from tdiagram import LayoutConfig, Orientation, Point, TDiagram, TopologyError, segment_end_name


def _node(name, parent, length, direction="right", seq=0, branch_at=None, **properties):
    return {
        "name": name,
        "parent": parent,
        "direction": direction,
        "length": length,
        "seq": seq,
        "branch_at": branch_at,
        "properties": properties,
    }


def _two_level():
    return [_node("R", "", 100), _node("A", "R", 50)]


def _real_nodes(geometry):
    return [node for node in geometry.values() if not node.segment_end]


def test_two_level_tree_coordinates():
    geometry = TDiagram(_two_level()).geometry()

    assert set(geometry) == {"R", "R_end", "A", "A_end"}
    assert geometry["R"].coordinates == Point(0, 0)
    assert geometry["R"].orientation is Orientation.RIGHT
    assert geometry["R"].parent is None
    assert geometry["R"].children == ["A", "R_end"]
    assert geometry["R_end"].coordinates == Point(100, 0)

    assert geometry["A"].coordinates == Point(100, 0)
    assert geometry["A"].orientation is Orientation.DOWN
    assert geometry["A"].parent == "R"
    assert geometry["A_end"].coordinates == Point(100, 50)
    assert geometry["A_end"].hidden
    assert geometry["A_end"].segment_end
    assert geometry["A_end"].length == 0


def test_children_spread_uniformly_by_seq():
    diagram = TDiagram([
        _node("R", "", 90),
        _node("c0", "R", 10, seq=0),
        _node("c1", "R", 10, direction="left", seq=1),
        _node("c2", "R", 10, seq=2),
    ])
    geometry = diagram.geometry()

    assert geometry["c0"].coordinates == Point(30, 0)
    assert geometry["c1"].coordinates == Point(60, 0)
    assert geometry["c2"].coordinates == Point(90, 0)
    assert geometry["c1"].orientation is Orientation.UP
    assert geometry["c1_end"].coordinates == Point(60, -10)


def test_explicit_branch_at_overrides_seq():
    geometry = TDiagram([
        _node("R", "", 90),
        _node("c0", "R", 10, seq=0, branch_at=45),
        _node("c1", "R", 10, seq=1),
    ]).geometry()

    assert geometry["c0"].coordinates == Point(45, 0)
    assert geometry["c0"].branch_at == 45
    assert geometry["c1"].coordinates == Point(90, 0)


def test_root_branch_at_moves_root_up():
    geometry = TDiagram([_node("R", "", 10, branch_at=15)]).geometry()

    assert geometry["R"].coordinates == Point(0, -15)


def test_children_are_ordered_along_the_branch():
    diagram = TDiagram([
        _node("R", "", 90),
        _node("late", "R", 10, seq=1),
        _node("early", "R", 10, seq=0),
    ])

    assert diagram.geometry()["R"].children == ["early", "late", "R_end"]


def test_seq_placed_children_listed_out_of_order():
    geometry = TDiagram([
        _node("R", "", 60),
        _node("c2", "R", 10, seq=2),
        _node("c0", "R", 10, seq=0),
        _node("c1", "R", 10, seq=1),
    ]).geometry()

    assert geometry["R"].children == ["c0", "c1", "c2", "R_end"]
    assert [geometry[name].coordinates for name in ("c0", "c1", "c2")] == [
        Point(20, 0),
        Point(40, 0),
        Point(60, 0),
    ]


def test_nested_orientation_follows_turns():
    geometry = TDiagram([
        _node("R", "", 100),
        _node("A", "R", 40, direction="left"),
        _node("B", "A", 20, direction="left"),
        _node("C", "B", 10, direction="right"),
    ]).geometry()

    assert geometry["A"].orientation is Orientation.UP
    assert geometry["B"].orientation is Orientation.LEFT
    assert geometry["C"].orientation is Orientation.UP
    assert geometry["B"].coordinates == Point(100, -40)
    assert geometry["C"].coordinates == Point(80, -40)
    assert geometry["C_end"].coordinates == Point(80, -50)


def test_geometry_is_deterministic():
    nodes = [
        _node("R", "", 100),
        _node("A", "R", 40, direction="left", seq=0),
        _node("B", "R", 30, seq=1),
        _node("C", "A", 20, seq=0),
    ]

    assert TDiagram(nodes).geometry() == TDiagram(nodes).geometry()


def test_every_segment_end_sits_at_branch_length():
    diagram = TDiagram([
        _node("R", "", 100),
        _node("A", "R", 40, direction="left", seq=0),
        _node("B", "R", 30, seq=1),
        _node("C", "A", 20, seq=0),
        _node("D", "C", 5, direction="left", seq=0),
    ])
    geometry = diagram.geometry()

    for node in _real_nodes(geometry):
        end = geometry[segment_end_name(node.name)]
        assert node.children[-1] == end.name
        assert end.parent == node.name
        axis = node.orientation.axis
        travelled = (getattr(end.coordinates, axis) - getattr(node.coordinates, axis))
        assert travelled * node.orientation.sign == pytest.approx(node.length)
        assert end.coordinates.manhattan(node.coordinates) == pytest.approx(node.length)


def test_coordinates_are_computed_lazily_once():
    diagram = TDiagram(_two_level())
    assert diagram._geometry is None

    diagram.canvas_width()
    cached = diagram._geometry
    assert cached is not None

    diagram.canvas_height()
    assert diagram._geometry is cached


def test_geometry_returns_a_copy():
    diagram = TDiagram(_two_level())
    geometry = diagram.geometry()
    geometry["A"].length = 1
    geometry["A"].children.append("x")

    fresh = diagram.geometry()
    assert fresh["A"].length == 50
    assert fresh["A"].children == ["A_end"]


def test_properties_pass_through():
    diagram = TDiagram([_node("R", "", 100, type="STATION")])

    assert diagram.geometry()["R"].properties == {"type": "STATION"}


def test_canvas_size_and_viewbox_use_margins():
    diagram = TDiagram(_two_level())

    assert diagram.canvas_width() == 100
    assert diagram.canvas_height() == 50

    diagram.set_margins(10, 5)
    assert diagram.canvas_width() == 120
    assert diagram.canvas_height() == 60
    assert diagram.viewbox() == "-10.0 -5.0 120.0 60.0"

    bounds = TDiagram(_two_level(), LayoutConfig(margin_left=1)).bounds()
    assert (bounds.left, bounds.top, bounds.right, bounds.bottom) == (0, 0, 100, 50)


def test_deep_tree_does_not_recurse():
    nodes = [_node("n0", "", 10)]
    for i in range(1, 3000):
        nodes.append(_node(f"n{i}", f"n{i - 1}", 10, direction="right" if i % 2 else "left"))

    geometry = TDiagram(nodes).geometry()

    assert len(geometry) == 6000
    # the tree zig-zags right and down
    assert geometry["n2"].orientation is Orientation.RIGHT
    assert geometry["n2999"].coordinates == Point(15000, 14990)
    assert geometry["n2999_end"].coordinates == Point(15000, 15000)


@pytest.mark.parametrize(
    "nodes, message",
    [
        ([], "no root"),
        ([_node("A", "R", 10), _node("R", "", 10)], "does not appear before"),
        ([_node("R", "", 10), _node("R", "", 10)], "Duplicate"),
        ([_node("R", "", 10), _node("S", "", 10)], "several root"),
        ([_node("R", "", 10), _node("R_end", "R", 10)], "reserved"),
        ([_node("R", "", 10), _node("A", "A", 10)], "does not appear before"),
    ],
)
def test_invalid_topology_fails_fast(nodes, message):
    with pytest.raises(TopologyError, match=message):
        TDiagram(nodes)
