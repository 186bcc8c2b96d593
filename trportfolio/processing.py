"""Fetching, processing and storing of timeline transactions and activity log entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol

import requests

from trportfolio.csv_entry import CsvEntry, make_csv_entry
from trportfolio.document import Document, DocumentExistsError, Downloader, build_documents
from trportfolio.response import RESPONSE_TIME_FORMAT, NormalizedResponse
from trportfolio.transaction import (
    InsufficientDataError,
    ModelBuilderFactory,
    ResponseType,
    Transaction,
    UnsupportedResponseError,
)

__all__ = [
    "RemoteErrorState",
    "UnsupportedEventError",
    "TimelineItem",
    "OperationCounter",
    "NullWriter",
    "TransactionProcessor",
    "TransactionHandler",
    "ActivityProcessor",
    "ActivityHandler",
]

logger = logging.getLogger(__name__)

CSV_FILENAME = "./transactions.csv"
TRANSACTION_DOCUMENTS_DIR = "./documents/transactions"
ACTIVITY_DOCUMENTS_DIR = "./documents/activity"

_DETAIL_ACTION_TYPES = frozenset({"timelineDetail"})

ListClient = Callable[[], Iterable["TimelineItem"]]
DetailsClient = Callable[[str], Any]
Normalizer = Callable[[Any], NormalizedResponse]
EventTypeResolver = Callable[["TimelineItem"], "ResponseType | str"]
DocumentsBuilder = Callable[[str, datetime, NormalizedResponse], "list[Document]"]


class RemoteErrorState(RuntimeError):
    """Raised when the remote side answers a request with an error state."""


class UnsupportedEventError(ValueError):
    """Raised when a timeline event type is not supported."""


class DocumentDownloader(Protocol):
    def download(self, base_dir: str | Path, document: Document) -> Path: ...


class TransactionProcessing(Protocol):
    def process(self, response_type: ResponseType | str, response: NormalizedResponse) -> None: ...


class ActivityProcessing(Protocol):
    def process(self, response: NormalizedResponse) -> None: ...


@dataclass
class TimelineItem:
    """One entry of a timeline list: a transaction or an activity log entry."""

    id: str
    action_type: str = ""
    payload: Any = None
    event_type: str = ""
    title: str = ""
    subtitle: str = ""
    status: str = ""
    timestamp: str = ""
    icon: str = ""

    def has_details(self) -> bool:
        return self.action_type in _DETAIL_ACTION_TYPES and bool(self.payload)

    @property
    def payload_str(self) -> str:
        return "" if self.payload is None else str(self.payload)


@dataclass
class OperationCounter:
    processed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.processed + self.skipped


class NullWriter:
    """A response writer that discards everything."""

    def write_bytes(self, directory: str | Path, data: bytes) -> None:
        return None


def _download_all(
    downloader: DocumentDownloader,
    base_dir: str | Path,
    documents: Iterable[Document],
    response_id: str,
) -> None:
    for document in documents:
        try:
            downloader.download(base_dir, document)
        except DocumentExistsError:
            continue
        except (requests.RequestException, OSError) as exc:
            logger.warning("Document downloader error: %s", exc, extra={"id": response_id})


class TransactionProcessor:
    """Turns a normalized transaction response into a stored CSV entry and documents."""

    def __init__(
        self,
        builder_factory: ModelBuilderFactory,
        csv_reader: Callable[[str], Iterable[CsvEntry]],
        csv_writer: Callable[[str, CsvEntry], None],
        repository: Callable[[Transaction], None] | None = None,
        downloader: DocumentDownloader | None = None,
        csv_filename: str = CSV_FILENAME,
        document_base_dir: str | Path = TRANSACTION_DOCUMENTS_DIR,
    ) -> None:
        self._builder_factory = builder_factory
        self._csv_reader = csv_reader
        self._csv_writer = csv_writer
        self._repository = repository
        self._downloader = downloader or Downloader()
        self._csv_filename = csv_filename
        self._document_base_dir = document_base_dir

    def process(self, response_type: ResponseType | str, response: NormalizedResponse) -> None:
        """Store the transaction unless the CSV file already holds it."""
        if any(entry.id == response.id for entry in self._csv_reader(self._csv_filename)):
            return

        try:
            builder = self._builder_factory.create(response_type, response)
        except UnsupportedResponseError as exc:
            logger.debug("builder factory error: %s", exc, extra={"id": response.id})
            raise

        transaction = builder.build()
        if self._repository is not None:
            self._repository(transaction)

        self._csv_writer(self._csv_filename, make_csv_entry(transaction))
        _download_all(self._downloader, self._document_base_dir, transaction.documents, response.id)


class TransactionHandler:
    """Downloads the transaction timeline and processes every item with details."""

    _SKIPPABLE = (RemoteErrorState, UnsupportedEventError, UnsupportedResponseError, InsufficientDataError)

    def __init__(
        self,
        list_client: ListClient,
        details_client: DetailsClient,
        normalizer: Normalizer,
        event_type_resolver: EventTypeResolver,
        processor: TransactionProcessing,
    ) -> None:
        self._list_client = list_client
        self._details_client = details_client
        self._normalizer = normalizer
        self._event_type_resolver = event_type_resolver
        self._processor = processor

    def handle(self) -> OperationCounter:
        """Process all items, oldest first, and return the counts."""
        counter = OperationCounter()

        for item in self.fetch_items():
            if not item.has_details():
                continue

            extra = {"id": item.id}
            try:
                self.process_item(item)
            except RemoteErrorState as exc:
                logger.error("%s", exc, extra=extra)
                counter.skipped += 1
            except (UnsupportedEventError, UnsupportedResponseError) as exc:
                logger.debug("%s", exc)
                logger.warning("Unsupported transaction skipped", extra=extra)
                counter.skipped += 1
            except InsufficientDataError as exc:
                logger.warning("Transaction skipped due to missing details: %s", exc, extra=extra)
                counter.skipped += 1
            else:
                counter.processed += 1

        logger.info(
            "Transactions total: %d; completed: %d; skipped: %d",
            counter.total,
            counter.processed,
            counter.skipped,
        )
        return counter

    def fetch_items(self) -> list[TimelineItem]:
        """Return the timeline items in chronological order."""
        logger.info("Downloading items")
        items = list(self._list_client())
        items.reverse()
        logger.info("%d items downloaded", len(items))
        return items

    def process_item(self, item: TimelineItem) -> None:
        extra = {"id": item.id}
        logger.info("Fetching transaction details", extra=extra)
        details = self._details_client(item.payload_str)
        response_type = self._event_type_resolver(item)

        logger.info("Processing transaction details", extra=extra)
        normalized = self._normalizer(details)
        self._processor.process(response_type, normalized)
        logger.info("Transaction processed", extra=extra)


class ActivityProcessor:
    """Downloads the documents attached to an activity log entry."""

    def __init__(
        self,
        downloader: DocumentDownloader | None = None,
        documents_builder: DocumentsBuilder = build_documents,
        base_dir: str | Path = ACTIVITY_DOCUMENTS_DIR,
    ) -> None:
        self._downloader = downloader or Downloader()
        self._documents_builder = documents_builder
        self._base_dir = base_dir

    def process(self, response: NormalizedResponse) -> None:
        raw = response.header.data.timestamp
        try:
            timestamp = datetime.strptime(raw, RESPONSE_TIME_FORMAT)
        except ValueError as exc:
            raise ValueError(f"could not parse header section timestamp: {raw!r}") from exc

        documents = self._documents_builder(response.id, timestamp, response)
        _download_all(self._downloader, self._base_dir, documents, response.id)


class ActivityHandler:
    """Downloads the activity log and processes every entry with details."""

    def __init__(
        self,
        list_client: ListClient,
        details_client: DetailsClient,
        normalizer: Normalizer,
        processor: ActivityProcessing,
    ) -> None:
        self._list_client = list_client
        self._details_client = details_client
        self._normalizer = normalizer
        self._processor = processor

    def handle(self) -> OperationCounter:
        """Process all entries, oldest first, and return the counts."""
        counter = OperationCounter()

        for entry in self.fetch_entries():
            if not entry.has_details():
                counter.skipped += 1
                continue

            logger.info("Fetching activity log entry details", extra={"id": entry.id})
            details = self._details_client(entry.payload_str)

            try:
                normalized = self._normalizer(details)
            except Exception:  # any response the normalizer rejects is skipped
                counter.skipped += 1
                continue

            self._processor.process(normalized)
            counter.processed += 1

        logger.info(
            "Activity log entries total: %d; completed %d; skipped: %d",
            counter.total,
            counter.processed,
            counter.skipped,
        )
        return counter

    def fetch_entries(self) -> list[TimelineItem]:
        """Return the activity log entries in chronological order."""
        logger.info("Downloading activity log entries")
        entries = list(self._list_client())
        entries.reverse()
        logger.info("%d activity log entries downloaded", len(entries))
        return entries