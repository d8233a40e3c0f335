"""tdiagram - Orthogonal tree layouts with optimized break points.

Example usage:
    from tdiagram import CostWeights, LayoutOptimizer, OptimizerConfig, TDiagram

    diagram = TDiagram([
        {"name": "0", "parent": "", "direction": "right", "length": 100, "seq": 0},
        {"name": "00", "parent": "0", "direction": "left", "length": 170, "seq": 0},
        {"name": "01", "parent": "0", "direction": "right", "length": 50, "seq": 1},
    ])
    optimizer = LayoutOptimizer(CostWeights(), OptimizerConfig(seed=0), diagram)
    optimizer.learn(10)
    best = optimizer.best()
"""

from .cost import (
    CostWeights,
    DiagramCost,
)
from .errors import (
    DegenerateGeometry,
    DiagramError,
    TopologyError,
)
from .helpers import (
    binary_search,
    extend,
)
from .layout import (
    LayoutConfig,
    TDiagram,
    segment_end_name,
)
from .models import (
    Bounds,
    Cost,
    Direction,
    GeometryNode,
    NodeSpec,
    Orientation,
    Point,
)
from .optimizer import (
    LayoutOptimizer,
    OptimizerConfig,
    Specimen,
    StepHooks,
)
from .renderer import (
    DEFAULT_THEME,
    DiagramRenderer,
    Theme,
    render_to_svg,
)

__version__ = "0.1.0"

__all__ = [
    # Layout
    "TDiagram",
    "LayoutConfig",
    "segment_end_name",
    # Cost
    "DiagramCost",
    "CostWeights",
    # Optimizer
    "LayoutOptimizer",
    "OptimizerConfig",
    "Specimen",
    "StepHooks",
    # Models
    "NodeSpec",
    "GeometryNode",
    "Orientation",
    "Direction",
    "Point",
    "Bounds",
    "Cost",
    # Errors
    "DiagramError",
    "TopologyError",
    "DegenerateGeometry",
    # Helpers
    "binary_search",
    "extend",
    # Rendering
    "render_to_svg",
    "DiagramRenderer",
    "Theme",
    "DEFAULT_THEME",
    # Version
    "__version__",
]
