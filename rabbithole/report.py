from __future__ import annotations

import logging
import re
import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import fitz  # PyMuPDF

from .sanitize import (
    extract_source_content,
    hostname,
    markdown_to_plain_text,
    strip_emphasis,
    strip_links,
    truncate,
)


logger = logging.getLogger(__name__)

# A4 in points, 20mm margins
PAGE_WIDTH = 595.0
PAGE_HEIGHT = 842.0
MARGIN = 56.7

REPORT_PREVIEW_CHARS = 500
PDF_PREVIEW_CHARS = 400


def source_title(source: Mapping[str, Any], index: int) -> str:
    if source.get("title"):
        return source["title"]
    url = source.get("url")
    if url:
        return hostname(url) or f"Source {index + 1}"
    return f"Source {index + 1}"


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


def build_report_markdown(sources: Sequence[Mapping[str, Any]]) -> str:
    """Synthesize the markdown body of the report node from all sources."""

    count = len(sources)
    parts = [
        "# Research Report\n\n",
        "## Summary\n\n",
        f"This report synthesizes information from {count} source{_plural(count)}.\n\n",
        "---\n\n",
    ]
    for index, source in enumerate(sources):
        parts.append(f"## {index + 1}. {source_title(source, index)}\n\n")
        content = extract_source_content(source)
        if content.strip():
            text = strip_emphasis(strip_links(content))
            parts.append(f"{truncate(text, REPORT_PREVIEW_CHARS)}\n\n")
        if source.get("url"):
            parts.append(f"*Source: {source['url']}*\n\n")
        parts.append("---\n\n")

    parts.extend(
        [
            "## Key Findings\n\n",
            f"- Information gathered from {count} authoritative source{_plural(count)}\n",
            "- All sources have been analyzed and synthesized\n",
            "- Click on individual source nodes for detailed information\n\n",
        ]
    )
    return "".join(parts)


def report_filename(query: str, timestamp_ms: int | None = None) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", query, flags=re.IGNORECASE).lower()
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"rabbithole-research-{slug}-{stamp}.pdf"


def wrap_text(text: str, fontname: str, fontsize: float, max_width: float) -> List[str]:
    """Split text into lines that fit ``max_width`` points, keeping hard breaks."""

    lines: List[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if fitz.get_text_length(candidate, fontname=fontname, fontsize=fontsize) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            # hard-split words wider than a full line (long URLs)
            while fitz.get_text_length(word, fontname=fontname, fontsize=fontsize) > max_width and len(word) > 1:
                cut = len(word)
                while cut > 1 and fitz.get_text_length(word[:cut], fontname=fontname, fontsize=fontsize) > max_width:
                    cut -= 1
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines


class PdfWriter:
    """Flowing text layout over PyMuPDF pages."""

    def __init__(self) -> None:
        self.doc = fitz.open()
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        self.y = MARGIN
        self.max_width = PAGE_WIDTH - 2 * MARGIN

    def ensure_space(self, height: float) -> None:
        if self.y + height > PAGE_HEIGHT - MARGIN:
            self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
            self.y = MARGIN

    def write(
        self,
        text: str,
        fontsize: float,
        fontname: str = "helv",
        color: Tuple[float, float, float] = (0, 0, 0),
        line_height: float | None = None,
    ) -> None:
        step = line_height or fontsize * 1.4
        for line in wrap_text(text, fontname, fontsize, self.max_width):
            self.ensure_space(step)
            self.y += step
            if line:
                self.page.insert_text((MARGIN, self.y), line, fontsize=fontsize, fontname=fontname, color=color)

    def skip(self, height: float) -> None:
        self.y += height

    def tobytes(self) -> bytes:
        try:
            return self.doc.tobytes()
        finally:
            self.doc.close()


def render_report_pdf(
    query: str,
    sources: Sequence[Mapping[str, Any]],
    report_markdown: str | None = None,
    generated_at: datetime | None = None,
) -> bytes:
    """Render the downloadable research report and return the PDF bytes."""

    generated_at = generated_at or datetime.now()
    writer = PdfWriter()
    writer.write("RabbitHole Research Report", 20, fontname="hebo")
    writer.skip(8)
    writer.write(f"Research Query: {query}", 14)
    writer.write(f"Generated: {generated_at:%Y-%m-%d %H:%M:%S}", 10)
    writer.skip(12)

    if sources:
        writer.write("Sources", 16, fontname="hebo")
        writer.skip(4)
        for index, source in enumerate(sources):
            writer.ensure_space(85)
            writer.write(source_title(source, index), 12, fontname="hebo")
            if source.get("url"):
                writer.write(source["url"], 9, fontname="heit", color=(0.4, 0.4, 0.4))

            content = ""
            if source.get("markdown"):
                content = markdown_to_plain_text(source["markdown"])
            elif source.get("description"):
                content = source["description"]
            elif (source.get("metadata") or {}).get("description"):
                content = source["metadata"]["description"]
            if content:
                preview = truncate(markdown_to_plain_text(content), PDF_PREVIEW_CHARS)
                writer.write(preview, 10)
            writer.skip(14)

    if report_markdown:
        writer.ensure_space(57)
        writer.skip(18)
        writer.write("Final Report", 16, fontname="hebo")
        writer.skip(6)
        writer.write(markdown_to_plain_text(report_markdown), 11, line_height=17)

    data = writer.tobytes()
    logger.info("Rendered PDF report for %r (%d sources, %d bytes)", query, len(sources), len(data))
    return data


def build_pdf_export(query: str, sources: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Report markdown, PDF bytes and download filename for a result set."""

    report_markdown = build_report_markdown(sources) if sources else None
    return {
        "filename": report_filename(query),
        "content": render_report_pdf(query, sources, report_markdown),
    }
