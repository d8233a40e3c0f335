"""Genetic search for the break points giving the cheapest T-diagram."""

from __future__ import annotations

import itertools
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from .cost import CostWeights, DiagramCost

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .layout import TDiagram
    from .models import Cost

logger = logging.getLogger(__name__)


def _noop(population: list[Specimen]) -> None:
    pass


@dataclass
class OptimizerConfig:
    """Configuration for the genetic search."""

    population_size: int = 100
    mutation_prob: float = 0.3
    # Probability of removing, and of adding, a break while breeding.
    # Defaults to mutation_prob.
    probability_of_adding_branch: float | None = None
    # Break fractions are drawn from, and clamped to, [fraction_low, fraction_high]
    fraction_low: float = 0.1
    fraction_high: float = 0.9
    perturbation: float = 0.05
    # Threads used to build and grade specimens
    workers: int = 1
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.population_size < 1:
            raise ValueError(f"population_size must be at least 1, got {self.population_size}")
        if not 0 <= self.mutation_prob <= 1:
            raise ValueError(f"mutation_prob must be within [0, 1], got {self.mutation_prob}")
        if self.probability_of_adding_branch is None:
            self.probability_of_adding_branch = self.mutation_prob
        elif not 0 <= self.probability_of_adding_branch <= 1:
            raise ValueError(
                "probability_of_adding_branch must be within [0, 1], "
                f"got {self.probability_of_adding_branch}"
            )
        if not 0 < self.fraction_low < self.fraction_high < 1:
            raise ValueError(
                f"Invalid fraction range ({self.fraction_low}, {self.fraction_high})"
            )
        if self.perturbation < 0:
            raise ValueError(f"perturbation must be non-negative, got {self.perturbation}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")


@dataclass
class StepHooks:
    """Observers called with the population during a step."""

    pre: Callable[[list[Specimen]], Any] = _noop  # after grading
    selection: Callable[[list[Specimen]], Any] = _noop  # after the selection
    breeding: Callable[[list[Specimen]], Any] = _noop  # after breeding and grading


@dataclass
class Specimen:
    """A candidate layout: a set of breaks and the diagram they produce."""

    engine: DiagramCost
    breaks: dict[str, float]
    id: int
    cost: Cost | None = field(default=None, repr=False)

    @property
    def diagram(self) -> TDiagram:
        return self.engine.diagram


class LayoutOptimizer:
    """Searches for the breaks minimizing the cost of a diagram.

    Every generation grades the population, culls it at random with
    expensive specimens more likely to go, then breeds the survivors
    back to full size through crossover and mutation of their breaks.
    All random draws come from ``rng``, so a seed replays a search.
    """

    def __init__(
        self,
        weights: CostWeights,
        config: OptimizerConfig,
        diagram: TDiagram,
        rng: np.random.Generator | None = None,
    ):
        """Initialize the optimizer and its first population.

        Args:
            weights: Weights of the cost function
            config: Population size, mutation probabilities, workers
            diagram: The diagram to optimize
            rng: Random source (defaults to one seeded with config.seed)
        """
        self.weights = weights
        self.config = config
        self.diagram = diagram
        self.geometry = diagram.geometry()
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        # Nodes that may receive a break
        self.eligible = [name for name, node in self.geometry.items() if not node.hidden]

        self._ids = itertools.count()
        plans = [
            (next(self._ids), self._random_breaks())
            for _ in range(config.population_size)
        ]
        self.population: list[Specimen] = self._map(self._build_specimen, plans)

    def _map(self, func: Callable[[Any], Any], items: Sequence[Any]) -> list[Any]:
        """Apply ``func`` to every item, keeping their order."""
        if self.config.workers == 1 or len(items) < 2:
            return [func(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            return list(executor.map(func, items))

    def _random_fraction(self) -> float:
        return float(self.rng.uniform(self.config.fraction_low, self.config.fraction_high))

    def _random_breaks(self) -> dict[str, float]:
        return {
            name: self._random_fraction()
            for name in self.eligible
            if self.rng.random() < self.config.mutation_prob
        }

    def _build_specimen(self, plan: tuple[int, dict[str, float]]) -> Specimen:
        specimen_id, breaks = plan
        engine = DiagramCost(self.diagram)
        engine.introduce_breaks(breaks)
        return Specimen(engine=engine, breaks=breaks, id=specimen_id)

    def create_specimen(self, breaks: dict[str, float] | None = None) -> Specimen:
        """Create a specimen from ``breaks``, or from random breaks if omitted."""
        if breaks is None:
            breaks = self._random_breaks()
        return self._build_specimen((next(self._ids), breaks))

    def cost(self, specimen: Specimen) -> Cost:
        return specimen.engine.cost(
            self.weights.alpha,
            self.weights.beta,
            self.weights.gamma,
            self.weights.preferred_aspect_ratio,
        )

    def grade_population(self) -> None:
        """Compute the cost of every specimen that has none yet."""
        pending = [specimen for specimen in self.population if specimen.cost is None]
        for specimen, cost in zip(pending, self._map(self.cost, pending)):
            specimen.cost = cost

    def perform_selection(self) -> None:
        """Cull the population.

        A specimen survives when its cost is below a random fraction of the
        highest cost. If nobody survives, the cheapest specimen is kept.
        """
        self.grade_population()

        max_cost = max([0.0, *(specimen.cost.total for specimen in self.population)])
        survivors = [
            specimen
            for specimen in self.population
            if specimen.cost.total < self.rng.random() * max_cost
        ]

        if not survivors:
            best = min(self.population, key=lambda specimen: specimen.cost.total)
            logger.warning(
                "Selection left no survivors, keeping specimen %d (cost %.4f)",
                best.id,
                best.cost.total,
            )
            survivors = [best]

        logger.debug("Selection kept %d of %d specimens", len(survivors), len(self.population))
        self.population = survivors

    def _pick_parents(self, parents: Sequence[Specimen]) -> tuple[Specimen, Specimen]:
        if len(parents) == 1:
            return parents[0], parents[0]
        first = int(self.rng.integers(len(parents)))
        second = int(self.rng.integers(len(parents) - 1))
        if second >= first:
            second += 1
        return parents[first], parents[second]

    def _offspring_breaks(self, parents: Sequence[Specimen]) -> dict[str, float]:
        """Crossover and mutation of the breaks of two random parents."""
        first, second = self._pick_parents(parents)
        config = self.config

        # crossover
        breaks = {}
        for name, fraction in first.breaks.items():
            if self.rng.random() < 0.5:
                breaks[name] = fraction
        for name, fraction in second.breaks.items():
            if self.rng.random() < 0.5:
                breaks[name] = fraction

        # mutation can be a change in the value at each break
        for name in list(breaks):
            if self.rng.random() < config.mutation_prob:
                delta = self.rng.uniform(-config.perturbation, config.perturbation)
                breaks[name] = float(
                    np.clip(breaks[name] + delta, config.fraction_low, config.fraction_high)
                )

        # or removing a break
        if self.rng.random() < config.probability_of_adding_branch and breaks:
            names = list(breaks)
            del breaks[names[int(self.rng.integers(len(names)))]]

        # or a new break
        if self.rng.random() < config.probability_of_adding_branch:
            candidates = [name for name in self.eligible if name not in breaks]
            if candidates:
                name = candidates[int(self.rng.integers(len(candidates)))]
                breaks[name] = self._random_fraction()

        return breaks

    def breed(self, parents: Sequence[Specimen]) -> list[Specimen]:
        """Build a full population of offspring from ``parents``."""
        plans = [
            (next(self._ids), self._offspring_breaks(parents))
            for _ in range(self.config.population_size)
        ]
        return self._map(self._build_specimen, plans)

    def step(self, hooks: StepHooks | None = None) -> None:
        """Perform one generation: grade, select, breed, grade."""
        hooks = hooks or StepHooks()

        self.grade_population()
        hooks.pre(self.population)

        self.perform_selection()
        hooks.selection(self.population)

        self.population = self.breed(self.population)
        self.grade_population()
        hooks.breeding(self.population)

    def learn(
        self,
        generation_limit: int,
        step_callback: Callable[[int, list[Cost]], Any] | None = None,
        hooks: StepHooks | None = None,
    ) -> list[Specimen]:
        """Run up to ``generation_limit`` generations.

        Args:
            generation_limit: Maximum number of steps
            step_callback: Called after every step with the generation index
                and the costs of the new population; returning False stops
                the search
            hooks: Observers called during every step

        Returns:
            The final population, graded
        """
        for generation in range(generation_limit):
            self.step(hooks)

            costs = [specimen.cost for specimen in self.population]
            logger.info(
                "Generation %d: min cost %.4f",
                generation + 1,
                min(cost.total for cost in costs),
            )

            if step_callback is not None and step_callback(generation, costs) is False:
                logger.info("Search stopped after generation %d", generation + 1)
                break

        return self.population

    def best(self) -> Specimen:
        """The cheapest specimen of the current population."""
        self.grade_population()
        return min(self.population, key=lambda specimen: specimen.cost.total)
