"""
Deterministic top-to-bottom SVG layout for flow graphs.

Nodes are assigned to layers by longest path over forward edges (an edge is
forward when its target was declared after its source); edges that point
back up the chart are drawn as curves on the right-hand side. The same graph
always renders to the same bytes.
"""

import base64
import textwrap
from html import escape

from workflowsage.diagram.mermaid import FlowGraph, FlowNode

NODE_WIDTH = 220
NODE_HEIGHT = 64
H_GAP = 40
V_GAP = 56
MARGIN = 24
CHARS_PER_LINE = 28
MAX_LABEL_LINES = 3
LINE_HEIGHT = 15


def assign_layers(graph: FlowGraph) -> dict[str, int]:
    order = graph.order()
    position = {node_id: index for index, node_id in enumerate(order)}
    layers = {node_id: 0 for node_id in order}

    outgoing: dict[str, list[str]] = {node_id: [] for node_id in order}
    for edge in graph.edges:
        if position[edge.target] > position[edge.source]:
            outgoing[edge.source].append(edge.target)

    # Forward edges only point later in declaration order, so one pass suffices
    for node_id in order:
        for target in outgoing[node_id]:
            layers[target] = max(layers[target], layers[node_id] + 1)
    return layers


def _wrap(label: str) -> list[str]:
    lines = textwrap.wrap(label, CHARS_PER_LINE) or [""]
    if len(lines) > MAX_LABEL_LINES:
        lines = lines[:MAX_LABEL_LINES]
        lines[-1] = lines[-1][: CHARS_PER_LINE - 3].rstrip() + "..."
    return lines


def _node_shape(node: FlowNode, x: float, y: float) -> str:
    if node.shape == "decision":
        cx, cy = x + NODE_WIDTH / 2, y + NODE_HEIGHT / 2
        points = (
            f"{cx:g},{y:g} {x + NODE_WIDTH:g},{cy:g} "
            f"{cx:g},{y + NODE_HEIGHT:g} {x:g},{cy:g}"
        )
        return f'<polygon points="{points}" class="node decision"/>'
    radius = NODE_HEIGHT / 2 if node.shape == "round" else 6
    return (
        f'<rect x="{x:g}" y="{y:g}" width="{NODE_WIDTH}" height="{NODE_HEIGHT}" '
        f'rx="{radius:g}" class="node {node.shape}"/>'
    )


def _node_text(node: FlowNode, x: float, y: float) -> str:
    lines = _wrap(node.label)
    cx = x + NODE_WIDTH / 2
    first_y = y + NODE_HEIGHT / 2 - (len(lines) - 1) * LINE_HEIGHT / 2
    tspans = "".join(
        f'<tspan x="{cx:g}" y="{first_y + i * LINE_HEIGHT:g}">{escape(line)}</tspan>'
        for i, line in enumerate(lines)
    )
    return f'<text class="label" dominant-baseline="middle">{tspans}</text>'


def render_svg(graph: FlowGraph) -> str:
    """Lay out a flow graph and return it as a standalone SVG document."""
    layers = assign_layers(graph)
    rows: dict[int, list[str]] = {}
    for node_id in graph.order():
        rows.setdefault(layers[node_id], []).append(node_id)

    widest = max((len(row) for row in rows.values()), default=1)
    width = MARGIN * 2 + widest * NODE_WIDTH + (widest - 1) * H_GAP + H_GAP
    height = MARGIN * 2 + max(len(rows), 1) * (NODE_HEIGHT + V_GAP) - V_GAP

    coords: dict[str, tuple[float, float]] = {}
    for layer, row in rows.items():
        row_width = len(row) * NODE_WIDTH + (len(row) - 1) * H_GAP
        start_x = (width - H_GAP - row_width) / 2
        y = MARGIN + layer * (NODE_HEIGHT + V_GAP)
        for index, node_id in enumerate(row):
            coords[node_id] = (start_x + index * (NODE_WIDTH + H_GAP), y)

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width:g}" height="{height:g}" '
        f'viewBox="0 0 {width:g} {height:g}" font-family="sans-serif" font-size="12">',
        "<defs>"
        '<marker id="arrow" viewBox="0 0 10 10" refX="10" refY="5" '
        'markerWidth="8" markerHeight="8" orient="auto-start-reverse">'
        '<path d="M 0 0 L 10 5 L 0 10 z" fill="#555"/></marker>'
        "<style>"
        ".node{fill:#eef4ff;stroke:#3a63b8;stroke-width:1.5}"
        ".node.decision{fill:#fff6e0;stroke:#c08a00}"
        ".node.round{fill:#e9f7ef;stroke:#2e8b57}"
        ".edge{fill:none;stroke:#555;stroke-width:1.5}"
        ".label{text-anchor:middle;fill:#222}"
        ".edge-label{text-anchor:middle;fill:#555;font-size:11px}"
        "</style></defs>",
    ]

    for edge in graph.edges:
        sx, sy = coords[edge.source]
        tx, ty = coords[edge.target]
        if layers[edge.target] > layers[edge.source]:
            x1, y1 = sx + NODE_WIDTH / 2, sy + NODE_HEIGHT
            x2, y2 = tx + NODE_WIDTH / 2, ty
            path = f"M {x1:g} {y1:g} L {x2:g} {y2:g}"
            mid_x, mid_y = (x1 + x2) / 2, (y1 + y2) / 2
        else:
            x1, y1 = sx + NODE_WIDTH, sy + NODE_HEIGHT / 2
            x2, y2 = tx + NODE_WIDTH, ty + NODE_HEIGHT / 2
            bend = max(x1, x2) + H_GAP
            path = f"M {x1:g} {y1:g} C {bend:g} {y1:g} {bend:g} {y2:g} {x2:g} {y2:g}"
            mid_x, mid_y = bend, (y1 + y2) / 2
        parts.append(f'<path d="{path}" class="edge" marker-end="url(#arrow)"/>')
        if edge.label:
            parts.append(
                f'<text x="{mid_x:g}" y="{mid_y:g}" class="edge-label">'
                f"{escape(edge.label)}</text>"
            )

    for node_id in graph.order():
        node = graph.nodes[node_id]
        x, y = coords[node_id]
        parts.append(_node_shape(node, x, y))
        parts.append(_node_text(node, x, y))

    parts.append("</svg>")
    return "".join(parts)


def to_data_url(svg: str) -> str:
    """Encode an SVG document as a base64 ``data:`` URL."""
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"
