from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import get_settings
from .firecrawl import FirecrawlClient, FirecrawlError, MissingCredentialsError
from .graph import extract_sources, transform_data_to_graph
from .report import build_pdf_export


logger = logging.getLogger(__name__)

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
)

firecrawl = FirecrawlClient(settings)

app = FastAPI(title="RabbitHole Research API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


class ResearchRequest(BaseModel):
    query: str = ""


class ResearchDataRequest(BaseModel):
    query: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(f"Invalid request body: {exc.errors()[0].get('msg', 'invalid')}", 400)


@app.get("/healthz")
async def healthcheck():
    return {
        "status": "ok",
        "firecrawl": bool(settings.firecrawl_api_key),
        "search_limit": settings.search_limit,
    }


@app.post("/api/research")
async def research(payload: ResearchRequest):
    query = payload.query.strip()
    if not query:
        return error_response("Query must not be empty", 400)
    logger.info("Received query: %s", query)
    try:
        return await firecrawl.search(query)
    except MissingCredentialsError as exc:
        return error_response(str(exc), 500)
    except FirecrawlError as exc:
        return error_response(exc.detail, exc.status_code)
    except Exception as exc:
        logger.exception("Research request failed: %s", exc)
        return error_response("Internal Server Error", 500)


@app.post("/api/graph")
async def graph(payload: ResearchDataRequest):
    query = payload.query.strip()
    if not query:
        return error_response("Query must not be empty", 400)
    return transform_data_to_graph(query, payload.data).to_dict()


@app.post("/api/report/pdf")
async def report_pdf(payload: ResearchDataRequest):
    query = payload.query.strip()
    sources = extract_sources(payload.data)
    if not query or not sources:
        return error_response("No research data available to download", 400)
    try:
        export = build_pdf_export(query, sources)
    except Exception as exc:
        logger.exception("Error generating PDF: %s", exc)
        return error_response("Failed to generate PDF", 500)
    return Response(
        content=export["content"],
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{export["filename"]}"'},
    )
