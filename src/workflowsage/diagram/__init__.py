"""Workflow diagram notation and rendering."""

from dataclasses import dataclass

from workflowsage.diagram.mermaid import (
    FlowEdge,
    FlowGraph,
    FlowNode,
    build_flowchart,
    clean_notation,
    parse_flowchart,
)
from workflowsage.diagram.svg import render_svg, to_data_url
from workflowsage.models.workflow import WorkflowDocument


@dataclass(frozen=True)
class DiagramResult:
    """Intermediate flowchart notation plus a reference to the rendered artifact."""

    notation: str
    artifact_ref: str

    def to_dict(self) -> dict[str, str]:
        return {"notation": self.notation, "artifact_ref": self.artifact_ref}


def render_artifact(notation: str, document: WorkflowDocument) -> str:
    """Render notation to an SVG data URL.

    Falls back to the flowchart built from the document when the notation
    contains no recognizable nodes.
    """
    graph = parse_flowchart(notation)
    if graph.is_empty:
        graph = parse_flowchart(build_flowchart(document))
    return to_data_url(render_svg(graph))


__all__ = [
    "DiagramResult",
    "FlowEdge",
    "FlowGraph",
    "FlowNode",
    "build_flowchart",
    "clean_notation",
    "parse_flowchart",
    "render_artifact",
    "render_svg",
    "to_data_url",
]
