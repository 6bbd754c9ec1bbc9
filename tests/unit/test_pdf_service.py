"""
Unit tests for receipt document preparation
"""

import fitz
import pytest
from app.exceptions import DocumentConversionError
from app.utils.pdf_service import prepare_document_images

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def make_pdf(pages: int) -> bytes:
    document = fitz.open()
    for number in range(pages):
        page = document.new_page()
        page.insert_text((72, 72), f"Memorial Regional - page {number + 1}")
    data = document.tobytes()
    document.close()
    return data


@pytest.mark.asyncio
async def test_pdf_rendered_one_png_per_page():
    parts = await prepare_document_images(make_pdf(2), "application/pdf")

    assert len(parts) == 2
    for image_bytes, mime_type in parts:
        assert mime_type == "image/png"
        assert image_bytes.startswith(PNG_SIGNATURE)


@pytest.mark.asyncio
async def test_image_passed_through():
    parts = await prepare_document_images(b"jpeg-bytes", "image/JPEG")
    assert parts == [(b"jpeg-bytes", "image/jpeg")]


@pytest.mark.asyncio
async def test_missing_mime_type_defaults_to_jpeg():
    parts = await prepare_document_images(b"jpeg-bytes", None)
    assert parts == [(b"jpeg-bytes", "image/jpeg")]


@pytest.mark.asyncio
async def test_corrupt_pdf():
    with pytest.raises(DocumentConversionError):
        await prepare_document_images(b"definitely not a pdf", "application/pdf")
