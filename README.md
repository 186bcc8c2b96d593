# trportfolio

A library that turns normalized timeline detail responses from a broker into
transaction records and CSV rows, and downloads the documents attached to them.

## Modules

- `trportfolio.numbers`: number parsing.
  - `parse_float_with_comma(src, is_negative)` reads amounts written with a
    decimal comma and period thousand separators (`"1.921,89 €"` gives `1921.89`).
    It drops currency symbols, `+`, `%` and letters first.
  - `parse_float_with_period(src)` reads amounts such as `"0.006882"`.
  - `parse_numeric_value_from_string(src)` picks the first amount out of a
    sentence such as `"Du hast 500,00 € erhalten"`.
  - `NoMatchError` is raised when no number is found.
- `trportfolio.response`: dataclasses for a normalized detail response.
  - `NormalizedResponse` holds a `HeaderSection`, the `overview`, `transaction`
    and `performance` table sections, and a list of `DocumentEntry`.
  - `TableSection.get_by_titles(*titles)` returns the row for the first title
    that is present. It raises `SectionTitleNotFoundError` when none is.
- `trportfolio.instrument`: instruments.
  - `Instrument` carries ISIN, name, icon and type. `icon_url()` gives the
    icon's address.
  - `resolve_instrument_type` sorts an instrument into an `InstrumentType`:
    cash, ETF, cryptocurrency, lending or other.
  - `extract_isin_from_icon` reads the ISIN from an icon path such as
    `logos/IE00BK1PV551/v2`.
  - `InstrumentBuilder` builds an `Instrument` from a response.
- `trportfolio.document`: documents.
  - `build_documents` builds `Document` records with paths of the form
    `YYYY-MM/<transaction id>/<title>.pdf`.
  - `resolve_document_date` reads the date of a document and falls back to the
    parent timestamp.
  - `Downloader.download(base_dir, document)` fetches a document over HTTP into
    `base_dir`. It raises `DocumentExistsError` if the file is already there.
- `trportfolio.transaction`: transactions.
  - `ModelBuilderFactory.create(response_type, response)` picks a builder for a
    `ResponseType`: purchase, sale, dividend payout, round up, saveback,
    deposit, withdrawal or interest payout.
  - `build()` on that builder returns a `Transaction`.
  - Card payments and unsupported responses raise `UnsupportedResponseError`.
  - Unknown response types raise `UnknownResponseError`.
  - Missing table rows raise `InsufficientDataError`.
- `trportfolio.csv_entry`: CSV rows.
  - `make_csv_entry(transaction)` turns a `Transaction` into a `CsvEntry`. It
    sets debit, credit, tax and invested amounts according to the transaction
    type; shares of a sale are negative.
- `trportfolio.processing`: handlers and processors.
  - `TransactionHandler` and `ActivityHandler` take the timeline items in
    chronological order. For each item that has details they fetch the details,
    normalize them and pass them to a processor.
  - `handle()` returns an `OperationCounter` with the number of processed and
    skipped items.
  - `TransactionProcessor` skips transactions whose id is already in the CSV
    file. Otherwise it builds the transaction, writes its CSV entry and
    downloads its documents.
  - `ActivityProcessor` downloads the documents of an activity log entry.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from trportfolio.numbers import parse_float_with_comma, parse_numeric_value_from_string
from trportfolio.instrument import extract_isin_from_icon

parse_numeric_value_from_string("Du hast 1.000,00 € erhalten")  # "1.000,00"
parse_float_with_comma("1.921,89 €", False)                    # 1921.89
extract_isin_from_icon("logos/IE00BK1PV551/v2")                # "IE00BK1PV551"
```

This builds a deposit from a normalized response and turns it into a CSV row:

```python
from trportfolio.response import HeaderData, HeaderSection, NormalizedResponse
from trportfolio.transaction import ModelBuilderFactory, ResponseType
from trportfolio.csv_entry import make_csv_entry

response = NormalizedResponse(
    id="1ae661c0-b3f1-4a81-a909-79567161b014",
    header=HeaderSection(
        title="Du hast 200,00 € erhalten",
        data=HeaderData(status="executed", timestamp="2023-05-21T08:25:53.360+0000"),
    ),
)

transaction = ModelBuilderFactory().create(ResponseType.DEPOSIT, response).build()
entry = make_csv_entry(transaction)
entry.credit      # 200.0
entry.asset_type  # "Cash"
```

## Wiring the handlers

The handlers and processors take plain callables, so that any transport and
storage can be plugged in:

- `list_client()`: returns `TimelineItem` objects.
- `details_client(payload)`: returns the raw details of one item.
- `normalizer(raw)`: returns a `NormalizedResponse`.
- `event_type_resolver(item)`: returns a `ResponseType`. This one is passed to
  `TransactionHandler` only.
- `csv_reader(filename)` and `csv_writer(filename, entry)`: read and append
  `CsvEntry` rows. These are passed to `TransactionProcessor`.
- `repository(transaction)`: an optional callable that stores each built
  transaction.

The default paths are:

- `./transactions.csv` for the CSV file.
- `./documents/transactions` for transaction documents.
- `./documents/activity` for activity documents.

## What this package does not do

The package has no client for the broker's API and no login. It has no
normalizer that turns raw JSON detail responses into `NormalizedResponse`
objects. It has no resolver from timeline event types to `ResponseType`. These
have to be supplied by the caller.

The package does not read or write CSV files itself, and it has no database
storage. It has no command-line program.