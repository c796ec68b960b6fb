"""POST /scrape, POST /scrape/batch, POST /preview endpoint handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse, Response

from src.api import service
from src.api.schemas import BatchFormat, BatchScrapeRequest, ScrapeFormat, ScrapeRequest
from src.scraper import Scraper

router = APIRouter()


def _get_scraper(request: Request) -> Scraper:
    return request.app.state.scraper


def _pdf_response(pdf: bytes, filename: str) -> Response:
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/scrape")
async def scrape(
    body: ScrapeRequest,
    format: ScrapeFormat = Query("json"),
    scraper: Scraper = Depends(_get_scraper),
):
    result = await service.scrape_single(scraper, body.url)
    if not result.success:
        raise HTTPException(status_code=422, detail=service.failure_detail(result))

    if format == "pdf":
        return _pdf_response(*service.result_pdf(result))
    if format == "text":
        return PlainTextResponse(service.plain_text(result))
    return service.scrape_payload(result)


@router.post("/scrape/batch")
async def scrape_batch(
    body: BatchScrapeRequest,
    format: BatchFormat = Query("json"),
    scraper: Scraper = Depends(_get_scraper),
):
    batch = await service.scrape_batch(scraper, body.urls, body.concurrent)
    if format == "pdf":
        return _pdf_response(*service.batch_pdf(batch))
    return service.batch_payload(batch)


@router.post("/preview")
async def preview(
    body: ScrapeRequest,
    scraper: Scraper = Depends(_get_scraper),
):
    result = await service.scrape_single(scraper, body.url)
    if not result.success:
        raise HTTPException(status_code=422, detail=service.failure_detail(result, "Preview failed"))
    return service.preview_payload(result)
