"""Document models, their build from detail responses, and downloading."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import requests

from trportfolio.response import NormalizedResponse

__all__ = [
    "Document",
    "DocumentExistsError",
    "resolve_document_date",
    "build_documents",
    "Downloader",
]

logger = logging.getLogger(__name__)

_DOCUMENT_DATE_PATTERN = re.compile(r"\d{2}\.\d{2}\.\d{4}", re.ASCII)
_DOCUMENT_DATE_FORMAT = "%d.%m.%Y"
_DIRECTORY_TIME_FORMAT = "%Y-%m"
_DIRECTORY_MODE = 0o700
_CHUNK_SIZE = 64 * 1024


@dataclass
class Document:
    transaction_uuid: str
    id: str
    url: str
    detail: str
    title: str
    filepath: str


class DocumentExistsError(FileExistsError):
    """Raised when a document is already present at its destination."""


def resolve_document_date(parent_timestamp: datetime, document_date: str) -> datetime:
    """Parse a ``DD.MM.YYYY`` document date, falling back to the parent timestamp."""
    if not _DOCUMENT_DATE_PATTERN.fullmatch(document_date):
        return parent_timestamp
    try:
        return datetime.strptime(document_date, _DOCUMENT_DATE_FORMAT)
    except ValueError:
        return parent_timestamp


def build_documents(
    transaction_uuid: str,
    parent_timestamp: datetime,
    response: NormalizedResponse,
) -> list[Document]:
    """Build the documents of a response that carry a download URL."""
    documents = []
    for entry in response.documents:
        url = entry.action.payload
        if not isinstance(url, str):
            continue
        date = resolve_document_date(parent_timestamp, entry.detail)
        filepath = f"{date.strftime(_DIRECTORY_TIME_FORMAT)}/{transaction_uuid}/{entry.title}.pdf"
        documents.append(
            Document(
                transaction_uuid=transaction_uuid,
                id=entry.id,
                url=url,
                detail=entry.detail,
                title=entry.title,
                filepath=filepath,
            )
        )
    return documents


class Downloader:
    """Downloads documents below a base directory."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()

    def download(self, base_dir: str | Path, document: Document) -> Path:
        """Fetch ``document`` into ``base_dir`` and return the written path."""
        dest = Path(base_dir) / document.filepath
        extra = {"id": document.transaction_uuid}

        if dest.exists():
            logger.warning("Document already exists", extra=extra)
            raise DocumentExistsError(str(dest))

        dest.parent.mkdir(mode=_DIRECTORY_MODE, parents=True, exist_ok=True)

        with self._session.get(document.url, stream=True) as response:
            with dest.open("wb") as out:
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    out.write(chunk)

        logger.info("Document downloaded", extra=extra)
        return dest