from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import networkx as nx

from .report import build_report_markdown, source_title
from .sanitize import extract_source_content


logger = logging.getLogger(__name__)

LEVEL_1_Y = 0  # query
LEVEL_2_Y = 300  # sources
LEVEL_3_Y = 600  # final report
SOURCE_SPACING = 280

ROOT_ID = "root"

ROOT_STYLE = {
    "background": "rgba(255, 255, 255, 0.08)",
    "color": "#ffffff",
    "border": "1px solid rgba(255, 255, 255, 0.15)",
    "width": 280,
    "fontWeight": "500",
    "fontSize": "17px",
    "borderRadius": "16px",
    "padding": "28px 32px",
    "boxShadow": "0 4px 24px rgba(0, 0, 0, 0.3)",
    "letterSpacing": "-0.01em",
}

SOURCE_STYLE = {
    "background": "rgba(255, 255, 255, 0.06)",
    "color": "#ffffff",
    "border": "1px solid rgba(255, 255, 255, 0.12)",
    "width": 260,
    "fontSize": "15px",
    "borderRadius": "14px",
    "padding": "20px 24px",
    "boxShadow": "0 2px 16px rgba(0, 0, 0, 0.2)",
    "fontWeight": "400",
    "letterSpacing": "-0.01em",
}

REPORT_STYLE = {
    "background": "rgba(0, 122, 255, 0.12)",
    "color": "#ffffff",
    "border": "1px solid rgba(0, 122, 255, 0.3)",
    "width": 300,
    "borderRadius": "16px",
    "padding": "24px 28px",
    "fontWeight": "500",
    "fontSize": "17px",
    "boxShadow": "0 4px 24px rgba(0, 122, 255, 0.15)",
    "letterSpacing": "-0.01em",
}

QUERY_EDGE_STYLE = {
    "stroke": "rgba(255, 255, 255, 0.2)",
    "strokeWidth": 1.5,
    "strokeDasharray": "6 4",
}

SYNTHESIS_EDGE_STYLE = {
    "stroke": "rgba(0, 122, 255, 0.3)",
    "opacity": 0.4,
    "strokeWidth": 1.5,
    "strokeDasharray": "6 4",
}


@dataclass
class GraphNode:
    id: str
    x: float
    y: float
    data: Dict[str, Any]
    style: Dict[str, Any]
    class_name: str = "cursor-pointer"
    draggable: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        node = {
            "id": self.id,
            "position": {"x": self.x, "y": self.y},
            "data": self.data,
            "type": "default",
            "style": dict(self.style),
            "className": self.class_name,
        }
        if self.draggable is not None:
            node["draggable"] = self.draggable
        return node


@dataclass
class GraphEdge:
    source: str
    target: str
    style: Dict[str, Any]
    animated: bool = True

    @property
    def id(self) -> str:
        return f"e-{self.source}-{self.target}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "animated": self.animated,
            "style": dict(self.style),
        }


@dataclass
class ResearchGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    @property
    def report_node(self) -> Optional[GraphNode]:
        return next((node for node in self.nodes if node.data.get("type") == "report"), None)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    def to_networkx(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        for node in self.nodes:
            attrs = {key: value for key, value in node.data.items() if value is not None}
            graph.add_node(node.id, x=float(node.x), y=float(node.y), **attrs)
        for edge in self.edges:
            graph.add_edge(edge.source, edge.target, id=edge.id)
        return graph


def extract_sources(data: Any) -> List[Mapping[str, Any]]:
    """Return the result list from a v2 (``data.web``) or v1 (``data``) envelope."""

    if not isinstance(data, Mapping):
        return []
    payload = data.get("data")
    if isinstance(payload, Mapping):
        payload = payload.get("web")
    if not isinstance(payload, list):
        return []
    return [source for source in payload if isinstance(source, Mapping)]


def new_report_id() -> str:
    return f"report-{int(time.time() * 1000)}"


def transform_data_to_graph(query: str, data: Any, report_id: str | None = None) -> ResearchGraph:
    """Lay out query -> sources -> report as three fixed horizontal levels."""

    graph = ResearchGraph()
    graph.nodes.append(
        GraphNode(
            id=ROOT_ID,
            x=0,
            y=LEVEL_1_Y,
            data={"label": query, "type": "root", "details": f"Research query: {query}"},
            style=ROOT_STYLE,
        )
    )

    sources = extract_sources(data)
    count = len(sources)
    for index, source in enumerate(sources):
        source_id = f"source-{index}"
        content = extract_source_content(source)
        graph.nodes.append(
            GraphNode(
                id=source_id,
                x=(index - (count - 1) / 2) * SOURCE_SPACING,
                y=LEVEL_2_Y,
                data={
                    "label": source_title(source, index),
                    "type": "source",
                    "details": content or source.get("url") or "No content available",
                    "url": source.get("url"),
                    "category": source.get("category"),
                    "position": source.get("position"),
                },
                style=SOURCE_STYLE,
                class_name="cursor-pointer hover:bg-white/10 transition-colors duration-200",
            )
        )
        graph.edges.append(GraphEdge(source=ROOT_ID, target=source_id, style=QUERY_EDGE_STYLE))

    if not sources:
        return graph

    # fresh id per query so the frontend never reuses a stale report node
    report_id = report_id or new_report_id()
    graph.nodes.append(
        GraphNode(
            id=report_id,
            x=0,
            y=LEVEL_3_Y,
            data={"label": "Final Report", "type": "report", "details": build_report_markdown(sources)},
            style=REPORT_STYLE,
            draggable=True,
        )
    )
    logger.debug(
        "Report node %s at y=%s after %d nodes (levels %s/%s/%s)",
        report_id,
        LEVEL_3_Y,
        len(graph.nodes) - 1,
        LEVEL_1_Y,
        LEVEL_2_Y,
        LEVEL_3_Y,
    )
    for index in range(count):
        graph.edges.append(GraphEdge(source=f"source-{index}", target=report_id, style=SYNTHESIS_EDGE_STYLE))
    return graph
