"""
Mermaid flowchart notation for workflow documents.

Three jobs live here: stripping the code fences models like to wrap their
notation in, building a flowchart directly from a WorkflowDocument when the
model returns nothing usable, and reading a flowchart back into a small graph
so it can be laid out as an image.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from workflowsage.models.workflow import WorkflowDocument

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```[\w-]*[ \t]*\n?(.*?)```", re.DOTALL)
_FENCE_MARKER = re.compile(r"```[\w-]*")

# Edge operators: -->, ---, -.->, ==> with an optional |label|
_EDGE = re.compile(r"\s*(?:-->|---|-\.->|==>)(?:\|([^|]*)\|)?\s*")
_NODE = re.compile(r"^(?P<id>[A-Za-z0-9_]+)\s*(?P<shape>[\[\(\{>].*)?$")

_SKIPPED_PREFIXES = (
    "flowchart",
    "graph",
    "%%",
    "classDef",
    "class ",
    "style ",
    "linkStyle",
    "subgraph",
    "click ",
    "direction ",
)


def clean_notation(text: Optional[str]) -> str:
    """Strip code fences and whitespace from model-written notation.

    When the reply holds a complete fenced block, only the first block's body
    is kept, so prose before or after it is dropped. Otherwise every stray
    fence marker is removed wherever it appears.
    """
    if not text:
        return ""
    block = _FENCED_BLOCK.search(text)
    if block is not None:
        return block.group(1).strip()
    return _FENCE_MARKER.sub("", text).strip()


def _quote(label: str) -> str:
    return '"' + label.replace('"', "'").replace("\n", " ").strip() + '"'


def _describe(item: Any, *keys: str) -> str:
    """Best-effort display text for a document record (dict or scalar)."""
    if isinstance(item, dict):
        for key in keys:
            value = item.get(key)
            if value:
                return str(value)
        return str(item.get("id", ""))
    return str(item)


def _names_by_id(records: Any) -> dict[str, str]:
    names: dict[str, str] = {}
    if not isinstance(records, list):
        return names
    for record in records:
        if isinstance(record, dict) and record.get("id"):
            names[str(record["id"])] = _describe(record, "name")
    return names


def build_flowchart(document: WorkflowDocument) -> str:
    """Build a top-to-bottom Mermaid flowchart from a workflow document.

    Steps are chained in order between the start and end events. Actor and
    system references are shown when they resolve; dangling references are
    shown as the raw id.
    """
    people = _names_by_id(document.get("people"))
    systems = _names_by_id(document.get("systems"))
    steps = document.get("steps") if isinstance(document.get("steps"), list) else []

    lines = ["flowchart TD"]
    lines.append(f"    start([{_quote('Start: ' + str(document.get('start_event', '')))}])")

    previous = "start"
    for index, step in enumerate(steps, start=1):
        node_id = f"step{index}"
        label = _describe(step, "description", "name")
        involved = []
        if isinstance(step, dict):
            actor = step.get("actor")
            system = step.get("system")
            if actor:
                involved.append(people.get(str(actor), str(actor)))
            if system:
                involved.append(systems.get(str(system), str(system)))
        if involved:
            label = f"{label} ({' / '.join(involved)})"
        lines.append(f"    {node_id}[{_quote(label)}]")
        lines.append(f"    {previous} --> {node_id}")
        previous = node_id

    lines.append(f"    finish([{_quote('End: ' + str(document.get('end_event', '')))}])")
    lines.append(f"    {previous} --> finish")
    return "\n".join(lines)


@dataclass
class FlowNode:
    id: str
    label: str
    shape: str = "box"  # box, round or decision


@dataclass
class FlowEdge:
    source: str
    target: str
    label: str = ""


@dataclass
class FlowGraph:
    """Nodes in first-seen order plus the edges between them."""

    nodes: dict[str, FlowNode] = field(default_factory=dict)
    edges: list[FlowEdge] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def order(self) -> list[str]:
        return list(self.nodes)


def _shape_of(opening: str) -> str:
    if opening.startswith("{"):
        return "decision"
    if opening.startswith("("):
        return "round"
    return "box"


def _label_of(shape_text: str) -> str:
    label = shape_text.strip().strip("[](){}>/\\").strip()
    if len(label) >= 2 and label[0] == label[-1] == '"':
        label = label[1:-1]
    return re.sub(r"<br\s*/?>", " ", label).strip()


def _parse_node(token: str, graph: FlowGraph) -> Optional[str]:
    match = _NODE.match(token.strip())
    if match is None:
        return None
    node_id = match.group("id")
    shape_text = match.group("shape")
    node = graph.nodes.get(node_id)
    if node is None:
        node = FlowNode(id=node_id, label=node_id)
        graph.nodes[node_id] = node
    if shape_text:
        node.label = _label_of(shape_text) or node_id
        node.shape = _shape_of(shape_text)
    return node_id


def parse_flowchart(notation: str) -> FlowGraph:
    """Read node and edge statements from Mermaid flowchart notation.

    Only the subset needed for layout is understood: node declarations with
    a label, chained edges with optional labels, and ``&`` groups. Anything
    else is skipped.
    """
    graph = FlowGraph()
    for raw_line in clean_notation(notation).splitlines():
        line = raw_line.strip().rstrip(";").strip()
        if not line or line == "end" or line.startswith(_SKIPPED_PREFIXES):
            continue

        parts = _EDGE.split(line)
        # re.split with one group alternates: nodes, label, nodes, label, ...
        groups = parts[0::2]
        labels = parts[1::2]

        previous: list[str] = []
        for position, group in enumerate(groups):
            current = [
                node_id
                for node_id in (_parse_node(token, graph) for token in group.split("&"))
                if node_id is not None
            ]
            if position > 0:
                label = (labels[position - 1] or "").strip()
                for source in previous:
                    for target in current:
                        graph.edges.append(FlowEdge(source, target, label))
            previous = current

    logger.debug(f"Parsed flowchart with {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return graph
