"""Build transactions, CSV entries and document downloads from normalized broker timeline details."""

__version__ = "0.1.0"

__all__ = [
    "numbers",
    "response",
    "instrument",
    "document",
    "transaction",
    "csv_entry",
    "processing",
]