"""
OCR functionality for turning receipt photos and PDFs into text lines.
"""

import io
from pathlib import Path
from typing import List

from .utils import IMAGE_EXTS, PDF_EXTS


def _lazy_import_ocr_deps():
    """Lazy import heavy OCR dependencies."""
    global pytesseract, PIL_Image, fitz
    import importlib
    pytesseract = importlib.import_module("pytesseract")
    PIL_Image = importlib.import_module("PIL.Image")
    fitz = importlib.import_module("fitz")  # pymupdf


# Initialize on first use
pytesseract = None
PIL_Image = None
fitz = None

DEFAULT_OCR_LANG = "chi_sim+eng"


def split_lines(text: str) -> List[str]:
    """Split recognized text into trimmed, non-empty lines, top to bottom."""
    return [ln.strip() for ln in (text or "").splitlines() if ln.strip()]


def ocr_image_to_text(img, lang: str = DEFAULT_OCR_LANG) -> str:
    """OCR a PIL image to text."""
    if pytesseract is None:
        _lazy_import_ocr_deps()

    # Improve OCR: grayscale
    if img.mode != "L":
        img = img.convert("L")
    return pytesseract.image_to_string(img, lang=lang)


def pdf_to_text(pdf_path: Path, lang: str = DEFAULT_OCR_LANG) -> str:
    """
    Extract text from a PDF receipt using PyMuPDF.
    Pages without a text layer are rasterized and sent through Tesseract.
    """
    if fitz is None:
        _lazy_import_ocr_deps()

    doc = fitz.open(pdf_path.as_posix())
    chunks = []
    try:
        for page in doc:
            text = page.get_text()
            if not text.strip():
                pix = page.get_pixmap(matrix=fitz.Matrix(2, 2), alpha=False)
                img = PIL_Image.open(io.BytesIO(pix.tobytes("png")))
                text = ocr_image_to_text(img, lang=lang)
            chunks.append(text)
    finally:
        doc.close()
    return "\n".join(chunks)


def recognize_lines(path: Path, lang: str = DEFAULT_OCR_LANG) -> List[str]:
    """
    Recognize a receipt file (image or PDF) into text lines.

    Returns:
        Lines in top-to-bottom order, blank lines removed
    """
    ext = path.suffix.lower()
    if ext in IMAGE_EXTS:
        if PIL_Image is None:
            _lazy_import_ocr_deps()
        with PIL_Image.open(path) as img:
            text = ocr_image_to_text(img, lang=lang)
    elif ext in PDF_EXTS:
        text = pdf_to_text(path, lang=lang)
    else:
        raise ValueError(f"Unsupported file type: {path}")

    return split_lines(text)
