"""
PDF text extraction for carrier scope documents.
"""

from pathlib import Path
from typing import BinaryIO

import pdfplumber

from ..exceptions import ScopeExtractionError
from .logging import get_logger

LOGGER = get_logger(__name__)


def _format_table(table: list[list[str | None]]) -> str:
    rows = []
    for row in table:
        cells = [cell.strip() if cell else "" for cell in row]
        if any(cells):
            rows.append(" | ".join(cells))
    return "\n".join(rows)


def read_pdf_text(source: str | Path | BinaryIO, include_tables: bool = True) -> str:
    """
    Extract text and tables from a carrier scope PDF.

    Args:
        source: File path or binary file object
        include_tables: Append tables as pipe-separated rows after each page

    Returns:
        Text of all pages separated by blank lines

    Raises:
        ScopeExtractionError: If the file cannot be opened as a PDF
    """
    pages: list[str] = []

    try:
        with pdfplumber.open(source) as pdf:
            for page_num, page in enumerate(pdf.pages, 1):
                page_text = page.extract_text() or ""
                if page_text.strip():
                    pages.append(f"--- Page {page_num} ---\n{page_text}")

                if not include_tables:
                    continue
                for table_num, table in enumerate(page.extract_tables(), 1):
                    table_text = _format_table(table)
                    if table_text:
                        pages.append(f"--- Table {table_num} (Page {page_num}) ---\n{table_text}")
    except Exception as exc:
        raise ScopeExtractionError(f"Could not read PDF: {exc}") from exc

    LOGGER.debug("Read %d text blocks from PDF", len(pages))
    return "\n\n".join(pages)
