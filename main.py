"""Example usage of tdiagram."""

import logging
import os

from tdiagram import CostWeights, LayoutOptimizer, OptimizerConfig, TDiagram, render_to_svg
from tdiagram.logging_config import setup_logging

logger = logging.getLogger("tdiagram.example")

# name, parent, direction, length, seq, type
EXAMPLE_NODES = [
    ("0", "", "left", 100, 0, ""),
    ("00", "0", "left", 170, 0, ""),
    ("01", "0", "left", 50, 1, ""),
    ("02", "0", "right", 20, 2, ""),
    ("000", "00", "right", 10, 0, ""),
    ("001", "00", "right", 15, 1, ""),
    ("002", "00", "right", 10, 2, ""),
    ("010", "01", "right", 10, 0, ""),
    ("0100", "010", "right", 7, 0, ""),
]


def example_diagram() -> TDiagram:
    """Build the example tree."""
    return TDiagram([
        {
            "name": name,
            "parent": parent,
            "direction": direction,
            "length": length,
            "seq": seq,
            "properties": {"type": kind.upper()},
        }
        for name, parent, direction, length, seq, kind in EXAMPLE_NODES
    ])


def main():
    """Optimize the example tree and save the ten best layouts."""
    setup_logging()

    weights = CostWeights(
        alpha=5,  # how important the number of breaks is
        beta=1,  # how important the number of intersections is
        gamma=10,  # how important the aspect ratio is
        preferred_aspect_ratio=1.414286,
    )
    config = OptimizerConfig(population_size=100, mutation_prob=0.3, seed=7)
    optimizer = LayoutOptimizer(weights, config, example_diagram())

    population = optimizer.learn(10)

    os.makedirs("output", exist_ok=True)
    best = sorted(population, key=lambda specimen: specimen.cost.total)[:10]
    for rank, specimen in enumerate(best, start=1):
        diagram = specimen.diagram
        ar = diagram.canvas_width() / diagram.canvas_height()
        render_to_svg(specimen.engine, f"output/specimen_{rank:02d}")
        logger.info(
            "#%d cost %.2f, aspect ratio %.2f, breaks %s",
            rank,
            specimen.cost.total,
            ar,
            specimen.breaks,
        )

    logger.info("Best layouts saved to output/")


if __name__ == "__main__":
    main()
