import logging
import os
from dataclasses import dataclass
from typing import Optional

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)


@dataclass
class PdfInfo:
    path: str
    name: str
    pages: Optional[int] = None
    title: Optional[str] = None

    @property
    def display_name(self) -> str:
        label = self.title or self.name
        if self.pages:
            return f"{label} ({self.pages} pages)"
        return label


def read_pdf_info(pdf_path: str) -> PdfInfo:
    """File name plus page count and title when PyMuPDF can open the document."""
    info = PdfInfo(path=pdf_path, name=os.path.basename(pdf_path))
    try:
        with fitz.open(pdf_path) as doc:
            info.pages = doc.page_count
            title = (doc.metadata or {}).get("title")
            if isinstance(title, str) and title.strip():
                info.title = title.strip()
    except Exception as e:
        # unreadable documents still get a name; validation happens at generation time
        logger.warning("Could not read PDF metadata for %s: %s", info.name, e)
    return info
