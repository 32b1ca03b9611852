"""Tests for the research proxy and export endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import fitz
import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from rabbithole import app as app_module
from rabbithole.app import app


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _mock_firecrawl(status_code: int = 200, json_body=None, text: str = ""):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.is_error = status_code >= 400
    mock_response.json.return_value = json_body
    mock_response.text = text

    mock_client_instance = AsyncMock()
    mock_client_instance.post.return_value = mock_response
    mock_client_instance.__aenter__ = AsyncMock(return_value=mock_client_instance)
    mock_client_instance.__aexit__ = AsyncMock(return_value=False)
    return mock_client_instance


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/healthz")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["firecrawl"] is True
    assert data["search_limit"] == 10


@pytest.mark.anyio
async def test_research_relays_upstream_json(client: AsyncClient, firecrawl_response):
    mock_client = _mock_firecrawl(json_body=firecrawl_response)
    with patch("rabbithole.firecrawl.httpx.AsyncClient", return_value=mock_client):
        resp = await client.post("/api/research", json={"query": "printing press"})

    assert resp.status_code == 200
    assert resp.json() == firecrawl_response

    call = mock_client.post.call_args
    assert call.args[0] == "https://api.firecrawl.dev/v2/search"
    assert call.kwargs["json"] == {
        "query": "printing press",
        "limit": 10,
        "scrapeOptions": {"formats": ["markdown"]},
    }
    assert call.kwargs["headers"]["Authorization"] == "Bearer fc-test-key"


@pytest.mark.anyio
async def test_research_upstream_error_keeps_status(client: AsyncClient):
    mock_client = _mock_firecrawl(status_code=402, text='{"error":"Insufficient credits"}')
    with patch("rabbithole.firecrawl.httpx.AsyncClient", return_value=mock_client):
        resp = await client.post("/api/research", json={"query": "printing press"})

    assert resp.status_code == 402
    assert resp.json() == {"error": '{"error":"Insufficient credits"}'}


@pytest.mark.anyio
async def test_research_without_api_key(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(app_module.settings, "firecrawl_api_key", None)
    with patch("rabbithole.firecrawl.httpx.AsyncClient") as mock_cls:
        resp = await client.post("/api/research", json={"query": "printing press"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "No API Key found"}
    mock_cls.assert_not_called()


@pytest.mark.anyio
async def test_research_network_failure_is_generic(client: AsyncClient):
    mock_client = _mock_firecrawl()
    mock_client.post.side_effect = httpx.ConnectError("connection refused")
    with patch("rabbithole.firecrawl.httpx.AsyncClient", return_value=mock_client):
        resp = await client.post("/api/research", json={"query": "printing press"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}


@pytest.mark.anyio
async def test_research_blank_query(client: AsyncClient):
    resp = await client.post("/api/research", json={"query": "   "})
    assert resp.status_code == 400
    assert "error" in resp.json()


@pytest.mark.anyio
async def test_research_malformed_body(client: AsyncClient):
    resp = await client.post(
        "/api/research",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert "error" in resp.json()


@pytest.mark.anyio
async def test_cors_preflight(client: AsyncClient):
    resp = await client.options(
        "/api/research",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "POST" in resp.headers["access-control-allow-methods"]


@pytest.mark.anyio
async def test_cors_header_on_error_response(client: AsyncClient):
    resp = await client.post(
        "/api/research",
        json={"query": ""},
        headers={"Origin": "http://localhost:5173"},
    )
    assert resp.status_code == 400
    assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.anyio
async def test_unknown_route(client: AsyncClient):
    resp = await client.get("/api/unknown")
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_graph_endpoint(client: AsyncClient, firecrawl_response):
    resp = await client.post("/api/graph", json={"query": "printing press", "data": firecrawl_response})
    assert resp.status_code == 200
    data = resp.json()
    types = [node["data"]["type"] for node in data["nodes"]]
    assert types == ["root", "source", "source", "source", "report"]
    assert len(data["edges"]) == 6


@pytest.mark.anyio
async def test_report_pdf_endpoint(client: AsyncClient, firecrawl_response):
    resp = await client.post("/api/report/pdf", json={"query": "printing press", "data": firecrawl_response})
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert "rabbithole-research-printing-press-" in resp.headers["content-disposition"]
    assert resp.content.startswith(b"%PDF")

    with fitz.open(stream=resp.content, filetype="pdf") as doc:
        text = "".join(page.get_text() for page in doc)
    assert "RabbitHole Research Report" in text
    assert "Research Query: printing press" in text


@pytest.mark.anyio
async def test_report_pdf_without_sources(client: AsyncClient):
    resp = await client.post(
        "/api/report/pdf",
        json={"query": "printing press", "data": {"success": True, "data": {"web": []}}},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "No research data available to download"}


@pytest.mark.anyio
async def test_report_pdf_generation_failure(client: AsyncClient, firecrawl_response):
    with patch("rabbithole.app.build_pdf_export", side_effect=RuntimeError("font missing")):
        resp = await client.post("/api/report/pdf", json={"query": "printing press", "data": firecrawl_response})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate PDF"}
