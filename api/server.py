"""
Thin FastAPI REST layer wrapping the offline parsing API.

Nothing here touches the network: detail pages are extracted without
resolving indirect links.

Run with::

    uvicorn api.server:app --reload --port 8100
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from api.models import DetailPage
from api.parsers import classify_link, default_label, detect_layout, parse_listing_page
from api.pipeline import DetailPipeline

logger = logging.getLogger(__name__)

app = FastAPI(
    title='Catalog AutoSpider API',
    version='0.1.0',
    description='Structured parsing API for catalog detail and listing pages.',
)


# ---------------------------------------------------------------------------
# Request / response schemas (Pydantic models for FastAPI validation)
# ---------------------------------------------------------------------------

class HtmlPayload(BaseModel):
    """POST body for all parse endpoints."""
    html: str
    url: str = ''
    title: str = ''
    page_num: int = 1
    base_url: str = ''


class LabelPayload(BaseModel):
    label: str


class HealthResponse(BaseModel):
    status: str = 'ok'


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get('/api/health', response_model=HealthResponse)
async def health_check():
    """Simple liveness probe."""
    return HealthResponse()


@app.post('/api/parse/detail')
async def api_parse_detail(payload: HtmlPayload):
    """Extract metadata and download sections from a detail page (links are
    returned unresolved)."""
    try:
        page = DetailPage(url=payload.url, html=payload.html, title=payload.title)
        result = DetailPipeline().process(page)
        return result.to_dict()
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post('/api/parse/listing')
async def api_parse_listing(payload: HtmlPayload):
    """Parse a catalog listing page and return all title entries."""
    try:
        result = parse_listing_page(payload.html, payload.page_num, payload.base_url)
        return result.to_dict()
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post('/api/detect-layout')
async def api_detect_layout(payload: HtmlPayload):
    """Detect whether a detail page is episode- or quality-based."""
    try:
        soup = BeautifulSoup(payload.html, 'html.parser')
        layout = detect_layout(soup.find('main') or soup)
        return {'layout': layout.value}
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post('/api/classify')
async def api_classify(payload: LabelPayload):
    """Classify a download button label."""
    link_type = classify_link(payload.label)
    return {
        'label': payload.label,
        'type': link_type.value,
        'default_label': default_label(link_type),
    }
