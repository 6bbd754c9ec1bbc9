"""Document preparation: turn a downloaded receipt into images for the vision model."""

import logging
from typing import List, Optional, Tuple
import fitz
from app.config.settings import get_settings
from app.exceptions import DocumentConversionError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DEFAULT_MIME_TYPE = "image/jpeg"


async def convert_pdf_bytes_to_images(pdf_bytes: bytes, zoom: Optional[float] = None) -> List[bytes]:
    """
    Convert PDF bytes to a list of images (one per page) using PyMuPDF.

    Args:
        pdf_bytes: PDF file content as bytes
        zoom: Render zoom (2.0 = 144 DPI, 2.5 = 180 DPI); defaults to PDF_RENDER_ZOOM

    Returns:
        List[bytes]: List of image bytes in PNG format (one per page)
    """
    if zoom is None:
        zoom = get_settings().pdf_render_zoom

    try:
        logger.info("Opening PDF with PyMuPDF")
        pdf_document = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        logger.error(f"Error opening PDF: {str(e)}", exc_info=True)
        raise DocumentConversionError() from e

    try:
        image_bytes_list = []
        logger.info(f"Processing {len(pdf_document)} page(s)")
        for page_num in range(len(pdf_document)):
            logger.debug(f"Processing page {page_num + 1}/{len(pdf_document)}")
            page = pdf_document[page_num]
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
            image_bytes_list.append(pix.tobytes("png"))
    except Exception as e:
        logger.error(f"Error converting PDF bytes to images: {str(e)}", exc_info=True)
        raise DocumentConversionError() from e
    finally:
        pdf_document.close()

    if not image_bytes_list:
        logger.warning("PDF has no pages")
        raise DocumentConversionError("Receipt PDF has no pages")

    logger.info(f"Successfully converted PDF to {len(image_bytes_list)} image(s)")
    return image_bytes_list


async def prepare_document_images(file_bytes: bytes, mime_type: Optional[str]) -> List[Tuple[bytes, str]]:
    """
    Return ``(bytes, mime_type)`` parts to send to the vision model.

    PDFs are rasterized page by page; anything else is passed through as a
    single image. A missing mime type is treated as JPEG.
    """
    mime_type = (mime_type or DEFAULT_MIME_TYPE).lower()

    if mime_type == PDF_MIME_TYPE:
        pages = await convert_pdf_bytes_to_images(file_bytes)
        return [(page, "image/png") for page in pages]

    return [(file_bytes, mime_type)]
