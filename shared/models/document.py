"""Pydantic models for stored documents.

Hierarchy:
  DocumentState   — explicit lifecycle of a stored document.
  DocumentRecord  — one source document and its derived PDF, keyed by identifier.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel


class DocumentState(str, Enum):
    """Lifecycle of a stored document: uploaded → converted → signed."""

    UPLOADED = "uploaded"
    CONVERTED = "converted"
    SIGNED = "signed"


class DocumentRecord(BaseModel):
    """A document in the store.

    The source file and the derived PDF share the identifier stem, so at most
    one of each exists per file_id.
    """

    file_id: str
    extension: str
    source_path: Path
    pdf_path: Path
    state: DocumentState = DocumentState.UPLOADED
