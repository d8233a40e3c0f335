"""SVG renderer using drawsvg."""

from __future__ import annotations

from typing import TYPE_CHECKING

import drawsvg as draw

from .layout import TDiagram, segment_end_name

if TYPE_CHECKING:
    from .cost import DiagramCost
    from .models import GeometryNode


class Theme:
    """Colors and sizes used to draw a diagram."""

    def __init__(
        self,
        background: str = "#ffffff",
        line_color: str = "#000000",
        line_width: float = 1,
        dot_color: str = "#000000",
        dot_radius: float = 2,
        label_color: str = "#1e293b",
        label_font_size: float = 8,
        show_labels: bool = False,
        padding: float = 10,
    ):
        self.background = background
        self.line_color = line_color
        self.line_width = line_width
        self.dot_color = dot_color
        self.dot_radius = dot_radius
        self.label_color = label_color
        self.label_font_size = label_font_size
        self.show_labels = show_labels
        self.padding = padding


DEFAULT_THEME = Theme()


class DiagramRenderer:
    """Renders laid-out T-diagrams to SVG."""

    def __init__(self, theme: Theme | None = None):
        self.theme = theme or DEFAULT_THEME

    def render(self, diagram: TDiagram | DiagramCost) -> draw.Drawing:
        """Render a diagram to an SVG Drawing object.

        Every branch is drawn as a line, every visible node as a dot.
        """
        if not isinstance(diagram, TDiagram):
            diagram = diagram.diagram

        geometry = diagram.geometry()
        bounds = diagram.bounds()
        padding = self.theme.padding

        width = diagram.canvas_width() + 2 * padding
        height = diagram.canvas_height() + 2 * padding
        origin_x = bounds.left - diagram.config.margin_left - padding
        origin_y = bounds.top - diagram.config.margin_top - padding

        d = draw.Drawing(width, height, origin=(origin_x, origin_y))

        d.append(
            draw.Rectangle(
                origin_x, origin_y, width, height,
                fill=self.theme.background,
            )
        )

        # Branches first so the dots are drawn on top
        for node in geometry.values():
            if not node.segment_end:
                self._render_branch(d, node, geometry[segment_end_name(node.name)])

        for node in geometry.values():
            if not node.hidden:
                self._render_node(d, node)

        return d

    def _render_branch(self, d: draw.Drawing, node: GeometryNode, end: GeometryNode) -> None:
        start = node.coordinates
        stop = end.coordinates
        d.append(
            draw.Line(
                start.x, start.y, stop.x, stop.y,
                stroke=self.theme.line_color,
                stroke_width=self.theme.line_width,
            )
        )

    def _render_node(self, d: draw.Drawing, node: GeometryNode) -> None:
        x, y = node.coordinates.x, node.coordinates.y
        d.append(
            draw.Circle(
                x, y, self.theme.dot_radius,
                fill=self.theme.dot_color,
            )
        )

        if self.theme.show_labels:
            d.append(
                draw.Text(
                    node.name,
                    self.theme.label_font_size,
                    x + self.theme.dot_radius + 2,
                    y - self.theme.dot_radius - 2,
                    fill=self.theme.label_color,
                    font_family="system-ui, -apple-system, sans-serif",
                )
            )


def render_to_svg(
    diagram: TDiagram | DiagramCost,
    filename: str | None = None,
    theme: Theme | None = None,
) -> str:
    """Render a diagram to SVG.

    Args:
        diagram: The diagram, or a cost engine holding one
        filename: Optional filename to save to (without extension)
        theme: Optional theme

    Returns:
        SVG content as string
    """
    renderer = DiagramRenderer(theme)
    drawing = renderer.render(diagram)

    if filename:
        drawing.save_svg(f"{filename}.svg")

    return drawing.as_svg()
