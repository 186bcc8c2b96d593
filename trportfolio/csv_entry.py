"""Conversion of transactions into rows of the transactions CSV file."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from trportfolio.transaction import Transaction, TransactionType

__all__ = ["CsvEntry", "UnsupportedTransactionError", "make_csv_entry"]


@dataclass
class CsvEntry:
    id: str
    status: str
    type: str
    asset_type: str
    name: str
    instrument: str
    shares: float = 0.0
    rate: float = 0.0
    yield_: float = 0.0
    profit: float = 0.0
    commission: float = 0.0
    debit: float = 0.0
    credit: float = 0.0
    tax_amount: float = 0.0
    invested_amount: float = 0.0
    timestamp: datetime | None = None
    documents: list[str] = field(default_factory=list)


class UnsupportedTransactionError(ValueError):
    """Raised for transactions whose type has no CSV representation."""

    def __init__(self, transaction_type: object) -> None:
        super().__init__(
            f"unsupported type '{transaction_type}' received: unsupported value object received"
        )
        self.transaction_type = transaction_type


def make_csv_entry(transaction: Transaction) -> CsvEntry:
    """Turn ``transaction`` into a CSV entry with debit and credit split out."""
    try:
        kind = TransactionType(transaction.type)
    except ValueError:
        raise UnsupportedTransactionError(transaction.type) from None

    debit = credit = tax_amount = invested_amount = 0.0
    shares = transaction.shares
    profit = transaction.profit

    if kind is TransactionType.PURCHASE:
        debit = transaction.total
        invested_amount = transaction.total - transaction.commission
    elif kind is TransactionType.SALE:
        shares = -shares
        credit = transaction.total
        tax_amount = transaction.tax_amount
        invested_amount = -(transaction.total - transaction.profit + transaction.commission)
    elif kind in (TransactionType.SAVEBACK, TransactionType.DEPOSIT, TransactionType.INTEREST_PAYOUT):
        credit = transaction.total
        tax_amount = transaction.tax_amount
    elif kind in (TransactionType.ROUND_UP, TransactionType.WITHDRAWAL):
        debit = transaction.total
    elif kind is TransactionType.DIVIDEND_PAYOUT:
        profit = transaction.total
        credit = transaction.total

    instrument = transaction.instrument
    return CsvEntry(
        id=transaction.uuid,
        status=transaction.status,
        type=kind.value,
        asset_type=instrument.type.value if instrument.type is not None else "",
        name=instrument.name,
        instrument=instrument.isin,
        shares=shares,
        rate=transaction.rate,
        yield_=transaction.yield_,
        profit=profit,
        commission=transaction.commission,
        debit=debit,
        credit=credit,
        tax_amount=tax_amount,
        invested_amount=invested_amount,
        timestamp=transaction.timestamp,
        documents=[document.filepath for document in transaction.documents],
    )