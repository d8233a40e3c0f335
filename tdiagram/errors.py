"""Exceptions raised by tdiagram."""

from __future__ import annotations


class DiagramError(ValueError):
    """Invalid input handed to a diagram, cost engine or optimizer."""


class TopologyError(DiagramError):
    """The node list does not describe a single rooted tree."""


class DegenerateGeometry(DiagramError):
    """The laid-out diagram has a zero canvas width or height."""
