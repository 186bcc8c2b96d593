"""Normalized timeline detail response structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "SectionTitleNotFoundError",
    "SectionAction",
    "TableDetail",
    "TableRow",
    "TableSection",
    "HeaderData",
    "HeaderSection",
    "DocumentEntry",
    "NormalizedResponse",
    "TREND_NEGATIVE",
    "RESPONSE_TIME_FORMAT",
    "OVERVIEW_TITLE_ASSET",
    "OVERVIEW_TITLE_UNDERLYING_ASSET",
    "OVERVIEW_TITLE_SECURITY",
]

TREND_NEGATIVE = "negative"
RESPONSE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"

OVERVIEW_TITLE_ASSET = "Asset"
OVERVIEW_TITLE_UNDERLYING_ASSET = "Basiswert"
OVERVIEW_TITLE_SECURITY = "Wertpapier"


class SectionTitleNotFoundError(LookupError):
    """Raised when no row of a table section carries any of the wanted titles."""

    def __init__(self, titles: tuple[str, ...]) -> None:
        super().__init__(f"section data title not found: {', '.join(titles)}")
        self.titles = titles


@dataclass
class SectionAction:
    payload: Any = None
    type: str = ""


@dataclass
class TableDetail:
    text: str = ""
    type: str = ""
    trend: str | None = None
    functional_style: str = ""
    icon: str = ""
    action: SectionAction | None = None


@dataclass
class TableRow:
    title: str = ""
    detail: TableDetail = field(default_factory=TableDetail)
    style: str = ""


@dataclass
class TableSection:
    rows: list[TableRow] = field(default_factory=list)
    title: str = ""
    type: str = ""

    def get_by_titles(self, *titles: str) -> TableRow:
        """Return the row for the first of ``titles`` that is present."""
        for title in titles:
            for row in self.rows:
                if row.title == title:
                    return row
        raise SectionTitleNotFoundError(titles)


@dataclass
class HeaderData:
    icon: str = ""
    status: str = ""
    timestamp: str = ""


@dataclass
class HeaderSection:
    action: SectionAction = field(default_factory=SectionAction)
    data: HeaderData = field(default_factory=HeaderData)
    title: str = ""
    type: str = ""


@dataclass
class DocumentEntry:
    id: str = ""
    title: str = ""
    action: SectionAction = field(default_factory=SectionAction)
    detail: str = ""
    postbox_type: str = ""


@dataclass
class NormalizedResponse:
    id: str = ""
    header: HeaderSection = field(default_factory=HeaderSection)
    overview: TableSection = field(default_factory=TableSection)
    transaction: TableSection = field(default_factory=TableSection)
    performance: TableSection = field(default_factory=TableSection)
    documents: list[DocumentEntry] = field(default_factory=list)