#!/usr/bin/env python3
"""
Run a research query and save everything the explorer would show.

Either asks a running RabbitHole server (``python -m rabbithole``) for the
Firecrawl results or loads a previously saved response, then writes:

    <output-dir>/response.json   raw search envelope
    <output-dir>/graph.json      node/edge layout
    <output-dir>/graph.graphml   same graph for Gephi & co (with --graphml)
    <output-dir>/<report>.pdf    downloadable research report

Usage (run from repo root with venv activated):

    python scripts/export_research.py "history of the printing press"
    python scripts/export_research.py "printing press" --input data/response.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import networkx as nx
import requests

from rabbithole.graph import extract_sources, transform_data_to_graph
from rabbithole.report import build_pdf_export

REPO_ROOT = Path(__file__).resolve().parents[1]


class ResearchFetchError(RuntimeError):
    pass


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a research query as JSON, GraphML and PDF.")
    parser.add_argument("query", help="Free-text research query")
    parser.add_argument("--server", default="http://localhost:3000", help="Base URL of the RabbitHole server")
    parser.add_argument("--input", type=Path, help="Load a saved search response instead of querying the server")
    parser.add_argument(
        "--output-dir",
        default=REPO_ROOT / "data/exports",
        type=Path,
        help="Directory for response.json, graph.json and the PDF report",
    )
    parser.add_argument("--graphml", action="store_true", help="Also write graph.graphml via networkx")
    parser.add_argument("--timeout", type=float, default=120.0, help="Request timeout in seconds")
    return parser.parse_args(argv)


def fetch_research(server: str, query: str, timeout: float) -> Dict[str, Any]:
    url = f"{server.rstrip('/')}/api/research"
    try:
        response = requests.post(url, json={"query": query}, timeout=timeout)
    except requests.RequestException as exc:
        raise ResearchFetchError(f"Failed to reach {url}: {exc}") from exc
    if not response.ok:
        try:
            message = response.json().get("error")
        except ValueError:
            message = None
        raise ResearchFetchError(message or f"HTTP error! status: {response.status_code}")
    return response.json()


def load_response(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def export(query: str, data: Dict[str, Any], output_dir: Path, graphml: bool = False) -> Dict[str, Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}

    response_path = output_dir / "response.json"
    with response_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    written["response"] = response_path

    graph = transform_data_to_graph(query, data)
    graph_path = output_dir / "graph.json"
    with graph_path.open("w", encoding="utf-8") as f:
        json.dump(graph.to_dict(), f, indent=2)
    written["graph"] = graph_path

    if graphml:
        graphml_path = output_dir / "graph.graphml"
        nx.write_graphml(graph.to_networkx(), graphml_path)
        written["graphml"] = graphml_path

    sources = extract_sources(data)
    if sources:
        pdf = build_pdf_export(query, sources)
        pdf_path = output_dir / pdf["filename"]
        pdf_path.write_bytes(pdf["content"])
        written["pdf"] = pdf_path
    else:
        logging.warning("No sources returned for %r; skipping PDF report", query)
    return written


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    args = parse_args(argv)
    query = args.query.strip()
    if not query:
        logging.error("Query must not be empty")
        return 1

    try:
        if args.input:
            data = load_response(args.input)
            logging.info("Loaded saved response from %s", args.input)
        else:
            logging.info("Sending query to %s: %s", args.server, query)
            data = fetch_research(args.server, query, args.timeout)
    except (ResearchFetchError, OSError, json.JSONDecodeError) as exc:
        logging.error("Error fetching research: %s", exc)
        return 1

    written = export(query, data, args.output_dir, graphml=args.graphml)
    for kind, path in written.items():
        logging.info("Wrote %s -> %s", kind, path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
