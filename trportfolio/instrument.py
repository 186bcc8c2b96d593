"""Instrument model, type resolution and building from detail responses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from trportfolio.numbers import NoMatchError
from trportfolio.response import (
    OVERVIEW_TITLE_ASSET,
    OVERVIEW_TITLE_SECURITY,
    OVERVIEW_TITLE_UNDERLYING_ASSET,
    NormalizedResponse,
    SectionTitleNotFoundError,
)

__all__ = [
    "InstrumentType",
    "Instrument",
    "resolve_instrument_type",
    "extract_isin_from_icon",
    "InstrumentBuilder",
]

_ISIN_PREFIX_LENDING = "XS"
_ISIN_PREFIX_CRYPTO = "XF000"
_ISIN_PREFIX_CASH = "Cash"
_SUFFIX_DIST = "(Dist)"
_SUFFIX_ACC = "(Acc)"

_ICON_ISIN_PATTERN = re.compile(r".*[^/]/([A-Z]{2}.*)/.*")


class InstrumentType(str, Enum):
    STOCKS = "Stocks"
    ETF = "ETF"
    CRYPTOCURRENCY = "Cryptocurrency"
    LENDING = "Lending"
    CASH = "Cash"
    OTHER = "Other"


@dataclass
class Instrument:
    isin: str = ""
    name: str = ""
    icon: str = ""
    type: InstrumentType | None = None

    def icon_url(self) -> str:
        return f"https://assets.traderepublic.com/img/{self.icon}/light.min.svg"


def resolve_instrument_type(instrument: Instrument) -> InstrumentType:
    """Guess the instrument type from its name and ISIN."""
    name, isin = instrument.name, instrument.isin
    if name == "" or name.startswith(_ISIN_PREFIX_CASH):
        return InstrumentType.CASH
    if name.endswith(_SUFFIX_DIST) or name.endswith(_SUFFIX_ACC):
        return InstrumentType.ETF
    if isin.startswith(_ISIN_PREFIX_CRYPTO):
        return InstrumentType.CRYPTOCURRENCY
    if isin.startswith(_ISIN_PREFIX_LENDING):
        return InstrumentType.LENDING
    return InstrumentType.OTHER


def extract_isin_from_icon(src: str) -> str:
    """Extract an ISIN from an icon path such as ``logos/<ISIN>/v2``."""
    match = _ICON_ISIN_PATTERN.search(src)
    if match is None:
        raise NoMatchError(src)
    return match[1]


class InstrumentBuilder:
    """Builds an :class:`Instrument` from a normalized detail response."""

    def __init__(
        self,
        type_resolver: Callable[[Instrument], InstrumentType] = resolve_instrument_type,
    ) -> None:
        self._type_resolver = type_resolver

    def build(self, response: NormalizedResponse) -> Instrument:
        try:
            name = self.extract_name(response)
        except SectionTitleNotFoundError:
            name = ""
        instrument = Instrument(
            isin=self.extract_isin(response),
            name=name,
            icon=self.extract_icon(response),
        )
        instrument.type = self._type_resolver(instrument)
        return instrument

    def extract_isin(self, response: NormalizedResponse) -> str:
        payload = response.header.action.payload
        if isinstance(payload, str) and payload:
            return payload
        try:
            return extract_isin_from_icon(response.header.data.icon)
        except NoMatchError:
            return ""

    def extract_name(self, response: NormalizedResponse) -> str:
        row = response.overview.get_by_titles(
            OVERVIEW_TITLE_ASSET,
            OVERVIEW_TITLE_UNDERLYING_ASSET,
            OVERVIEW_TITLE_SECURITY,
        )
        return row.detail.text

    def extract_icon(self, response: NormalizedResponse) -> str:
        return response.header.data.icon