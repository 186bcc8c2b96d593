"""Transaction model and the builders that produce it from detail responses."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, ClassVar

from trportfolio.document import Document, build_documents
from trportfolio.instrument import Instrument, InstrumentBuilder
from trportfolio.numbers import (
    NoMatchError,
    parse_float_with_comma,
    parse_float_with_period,
    parse_numeric_value_from_string,
)
from trportfolio.response import (
    RESPONSE_TIME_FORMAT,
    TREND_NEGATIVE,
    NormalizedResponse,
    SectionTitleNotFoundError,
    TableRow,
)

__all__ = [
    "TransactionType",
    "ResponseType",
    "Transaction",
    "UnsupportedResponseError",
    "InsufficientDataError",
    "UnknownResponseError",
    "BaseBuilder",
    "PurchaseBuilder",
    "SaleBuilder",
    "RoundUpBuilder",
    "SavebackBuilder",
    "DividendPayoutBuilder",
    "DepositBuilder",
    "WithdrawalBuilder",
    "InterestPayoutBuilder",
    "ModelBuilderFactory",
]

logger = logging.getLogger(__name__)

DocumentsBuilder = Callable[[str, datetime, NormalizedResponse], "list[Document]"]

_TITLES_SHARES = ("Aktien", "Anteile")
_TITLES_RATE = ("Aktienkurs", "Anteilspreis", "Dividende je Aktie", "Dividende pro Aktie")
_TITLE_COMMISSION = "Gebühr"
_TITLE_TOTAL = "Gesamt"
_TITLE_TAX = "Steuern"
_TITLE_YIELD = "Rendite"
_TITLES_PROFIT_LOSS = ("Gewinn", "Verlust")


class TransactionType(str, Enum):
    PURCHASE = "Purchase"
    SALE = "Sale"
    DIVIDEND_PAYOUT = "Dividends"
    ROUND_UP = "Round up"
    SAVEBACK = "Saveback"
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    INTEREST_PAYOUT = "Interest payout"


class ResponseType(str, Enum):
    """Kind of detail response, as resolved from the timeline event."""

    PURCHASE = "purchase"
    SALE = "sale"
    DIVIDEND_PAYOUT = "dividend_payout"
    ROUND_UP = "round_up"
    SAVEBACK = "saveback"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INTEREST_PAYOUT = "interest_payout"
    CARD_PAYMENT = "card_payment"
    UNSUPPORTED = "unsupported"


@dataclass
class Transaction:
    uuid: str
    type: TransactionType
    timestamp: datetime | None = None
    status: str = ""
    yield_: float = 0.0
    profit: float = 0.0
    shares: float = 0.0
    rate: float = 0.0
    commission: float = 0.0
    total: float = 0.0
    tax_amount: float = 0.0
    instrument: Instrument = field(default_factory=Instrument)
    documents: list[Document] = field(default_factory=list)


class UnsupportedResponseError(ValueError):
    """Raised for responses that are known but not turned into transactions."""


class InsufficientDataError(ValueError):
    """Raised when a response lacks data a transaction needs."""


class UnknownResponseError(ValueError):
    """Raised for response types the factory does not know."""


def _parse_row(row: TableRow) -> float:
    return parse_float_with_comma(row.detail.text, row.detail.trend == TREND_NEGATIVE)


def _parse_timestamp(value: str) -> datetime:
    try:
        return datetime.strptime(value, RESPONSE_TIME_FORMAT)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"could not parse header section timestamp: {value!r}") from exc


class BaseBuilder(ABC):
    """Builds one transaction from a normalized response."""

    transaction_type: ClassVar[TransactionType]

    def __init__(
        self,
        response: NormalizedResponse,
        instrument_builder: InstrumentBuilder | None = None,
        documents_builder: DocumentsBuilder = build_documents,
    ) -> None:
        self.response = response
        self._instrument_builder = instrument_builder or InstrumentBuilder()
        self._documents_builder = documents_builder

    def build(self) -> Transaction:
        """Return the transaction; missing table rows raise InsufficientDataError."""
        model = Transaction(
            uuid=self.response.id,
            type=self.transaction_type,
            status=self.response.header.data.status,
        )
        try:
            model.timestamp = _parse_timestamp(self.response.header.data.timestamp)
            self._populate(model)
        except SectionTitleNotFoundError as exc:
            raise InsufficientDataError(f"insufficient data resolved: {exc}") from exc
        return model

    @abstractmethod
    def _populate(self, model: Transaction) -> None:
        """Fill the type specific fields of ``model``."""

    def _extract_shares(self) -> float:
        row = self.response.transaction.get_by_titles(*_TITLES_SHARES)
        try:
            return parse_float_with_period(row.detail.text)
        except NoMatchError:
            return _parse_row(row)

    def _extract_rate(self) -> float:
        return _parse_row(self.response.transaction.get_by_titles(*_TITLES_RATE))

    def _extract_commission(self) -> float:
        try:
            row = self.response.transaction.get_by_titles(_TITLE_COMMISSION)
        except SectionTitleNotFoundError:
            return 0.0
        return _parse_row(row)

    def _extract_total(self) -> float:
        return _parse_row(self.response.transaction.get_by_titles(_TITLE_TOTAL))

    def _extract_tax(self) -> float:
        text = self.response.transaction.get_by_titles(_TITLE_TAX).detail.text
        try:
            return parse_float_with_comma(text, False)
        except ValueError:
            return parse_float_with_period(text)

    def _try_extract_tax(self, model: Transaction) -> float:
        try:
            return self._extract_tax()
        except (SectionTitleNotFoundError, ValueError) as exc:
            logger.debug("could not extract tax amount: %s", exc, extra={"id": model.uuid})
            return 0.0

    def _attach_instrument_and_documents(self, model: Transaction) -> None:
        model.instrument = self._instrument_builder.build(self.response)
        model.documents = self._documents_builder(model.uuid, model.timestamp, self.response)


class PurchaseBuilder(BaseBuilder):
    transaction_type = TransactionType.PURCHASE

    def _populate(self, model: Transaction) -> None:
        model.shares = self._extract_shares()
        model.rate = self._extract_rate()
        model.commission = self._extract_commission()
        model.total = self._extract_total()
        self._attach_instrument_and_documents(model)


class SaleBuilder(PurchaseBuilder):
    transaction_type = TransactionType.SALE

    def _populate(self, model: Transaction) -> None:
        super()._populate(model)
        model.tax_amount = self._try_extract_tax(model)
        model.yield_ = _parse_row(self.response.performance.get_by_titles(_TITLE_YIELD))
        model.profit = _parse_row(self.response.performance.get_by_titles(*_TITLES_PROFIT_LOSS))


class RoundUpBuilder(PurchaseBuilder):
    transaction_type = TransactionType.ROUND_UP


class SavebackBuilder(PurchaseBuilder):
    transaction_type = TransactionType.SAVEBACK


class DividendPayoutBuilder(PurchaseBuilder):
    transaction_type = TransactionType.DIVIDEND_PAYOUT


class DepositBuilder(BaseBuilder):
    transaction_type = TransactionType.DEPOSIT

    def _extract_total(self) -> float:
        amount = parse_numeric_value_from_string(self.response.header.title)
        return parse_float_with_comma(amount, False)

    def _populate(self, model: Transaction) -> None:
        model.total = self._extract_total()
        self._attach_instrument_and_documents(model)


class WithdrawalBuilder(DepositBuilder):
    transaction_type = TransactionType.WITHDRAWAL


class InterestPayoutBuilder(BaseBuilder):
    transaction_type = TransactionType.INTEREST_PAYOUT

    def _populate(self, model: Transaction) -> None:
        model.tax_amount = self._try_extract_tax(model)
        try:
            model.total = self._extract_total()
        except (SectionTitleNotFoundError, ValueError):
            amount = parse_numeric_value_from_string(self.response.header.title)
            try:
                model.total = parse_float_with_comma(amount, False)
            except ValueError:
                model.total = parse_float_with_period(amount)
        self._attach_instrument_and_documents(model)


_BUILDERS: dict[ResponseType, type[BaseBuilder]] = {
    ResponseType.PURCHASE: PurchaseBuilder,
    ResponseType.SALE: SaleBuilder,
    ResponseType.DIVIDEND_PAYOUT: DividendPayoutBuilder,
    ResponseType.ROUND_UP: RoundUpBuilder,
    ResponseType.SAVEBACK: SavebackBuilder,
    ResponseType.DEPOSIT: DepositBuilder,
    ResponseType.WITHDRAWAL: WithdrawalBuilder,
    ResponseType.INTEREST_PAYOUT: InterestPayoutBuilder,
}


class ModelBuilderFactory:
    """Chooses the builder that fits a response type."""

    def __init__(
        self,
        instrument_builder: InstrumentBuilder | None = None,
        documents_builder: DocumentsBuilder = build_documents,
    ) -> None:
        self._instrument_builder = instrument_builder or InstrumentBuilder()
        self._documents_builder = documents_builder

    def create(self, response_type: ResponseType | str, response: NormalizedResponse) -> BaseBuilder:
        try:
            kind = ResponseType(response_type)
        except ValueError:
            raise UnknownResponseError(f"unknown response: {response_type!r}") from None
        builder_class = _BUILDERS.get(kind)
        if builder_class is None:
            raise UnsupportedResponseError(f"unsupported response: {kind.value}")
        return builder_class(response, self._instrument_builder, self._documents_builder)