"""Routes that attribute alt text to the images on uploaded PDF pages."""

import asyncio
import io
import logging
from typing import Any, Dict, List, Optional

import pikepdf
from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from alt_locator.pikepdf_page import PikepdfDocument
from alt_locator.result_cache import ResultCache
from alt_locator.results import FallbackMode
from alt_locator.settings import get_settings

logger = logging.getLogger("alt-locator-api")

router = APIRouter(prefix="/api", tags=["images"])


class ImageAltPayload(BaseModel):
    id: str
    rect: List[float] = Field(..., min_length=4, max_length=4)
    alt: str


class PageImagesResponse(BaseModel):
    page: int
    fallbackMode: str
    images: List[ImageAltPayload]


class DocumentPageImages(BaseModel):
    page: int
    images: List[ImageAltPayload]


class DocumentImagesResponse(BaseModel):
    pageCount: int
    fallbackMode: str
    pages: List[DocumentPageImages]


def _parse_mode(value: Optional[str]) -> FallbackMode:
    if not value:
        return get_settings().fallback_mode
    try:
        return FallbackMode.parse(value)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


async def _open_upload(file: UploadFile) -> PikepdfDocument:
    """Read the upload into memory and open it with pikepdf."""
    limit = get_settings().max_upload_bytes
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    try:
        pdf = await asyncio.to_thread(pikepdf.open, io.BytesIO(data))
    except pikepdf.PdfError as exc:
        logger.info("[PageImages] Rejecting unreadable upload %s: %s", file.filename, exc)
        raise HTTPException(status_code=400, detail="Uploaded file is not a readable PDF") from exc

    return PikepdfDocument(pdf, owns_pdf=True, cache=ResultCache())


def _serialize(results: List[Any]) -> List[Dict[str, Any]]:
    return [result.to_dict() for result in results]


@router.post("/page-images", response_model=PageImagesResponse)
async def page_images(
    file: UploadFile = File(...),
    page: int = Form(1),
    fallback_mode: Optional[str] = Form(None),
):
    """Return alt text attributions for the images on one (1-based) page."""
    mode = _parse_mode(fallback_mode)
    document = await _open_upload(file)
    try:
        if page < 1 or page > document.page_count:
            raise HTTPException(
                status_code=404,
                detail=f"Page {page} not found (document has {document.page_count} pages)",
            )
        results = await document.get_page_images(page - 1, mode)
    finally:
        document.close()

    return {"page": page, "fallbackMode": mode.value, "images": _serialize(results)}


@router.post("/document-images", response_model=DocumentImagesResponse)
async def document_images(
    file: UploadFile = File(...),
    fallback_mode: Optional[str] = Form(None),
):
    """Return alt text attributions for every page of the document."""
    mode = _parse_mode(fallback_mode)
    document = await _open_upload(file)
    try:
        pages = []
        for index in range(document.page_count):
            results = await document.get_page_images(index, mode)
            pages.append({"page": index + 1, "images": _serialize(results)})
        page_count = document.page_count
    finally:
        document.close()

    return {"pageCount": page_count, "fallbackMode": mode.value, "pages": pages}
