from datetime import datetime, timezone

import pytest

from trportfolio.document import Document
from trportfolio.instrument import Instrument, InstrumentType
from trportfolio.response import (
    DocumentEntry,
    HeaderData,
    HeaderSection,
    NormalizedResponse,
    SectionAction,
    SectionTitleNotFoundError,
    TableDetail,
    TableRow,
    TableSection,
)
from trportfolio.transaction import (
    DepositBuilder,
    InsufficientDataError,
    ModelBuilderFactory,
    ResponseType,
    SaleBuilder,
    Transaction,
    TransactionType,
    UnknownResponseError,
    UnsupportedResponseError,
)

URL = "https://example.com/timeline/postbox"
UTC = timezone.utc


def _row(title, text, trend=None):
    return TableRow(title=title, detail=TableDetail(text=text, type="text", trend=trend))


def _header(icon, timestamp, title, isin=None):
    action = SectionAction(payload=isin, type="instrumentDetail") if isin else SectionAction()
    return HeaderSection(
        action=action,
        data=HeaderData(icon=icon, status="executed", timestamp=timestamp),
        title=title,
        type="header",
    )


def _doc(doc_id, title, detail=""):
    return DocumentEntry(
        id=doc_id,
        title=title,
        action=SectionAction(payload=URL, type="browserModal"),
        detail=detail,
    )


def _response(resp_id, header, overview=(), transaction=(), performance=(), documents=()):
    return NormalizedResponse(
        id=resp_id,
        header=header,
        overview=TableSection(rows=list(overview), title="Übersicht", type="table"),
        transaction=TableSection(rows=list(transaction), title="Transaktion", type="table"),
        performance=TableSection(rows=list(performance), title="Performance", type="horizontalTable"),
        documents=list(documents),
    )


def _expected_doc(uuid, doc_id, title, filepath, detail=""):
    return Document(transaction_uuid=uuid, id=doc_id, url=URL, detail=detail, title=title, filepath=filepath)


SPARE_ID = "265cb9c0-664a-45d4-b179-3061f196dd2a"
SPARE_CHANGE = (
    ResponseType.ROUND_UP,
    _response(
        SPARE_ID,
        _header("logos/DE000A0F5UF5/v2", "2024-01-04T12:26:52.110+0000", "Du hast 1,09 € investiert", "DE000A0F5UF5"),
        overview=[_row("Status", "Ausgeführt"), _row("Ordertyp", "Round up"), _row("Asset", "NASDAQ100 USD (Dist)")],
        transaction=[
            _row("Aktien", "0.006882"),
            _row("Aktienkurs", "158,38 €"),
            _row("Gebühr", "Kostenlos"),
            _row("Gesamt", "1,09 €"),
        ],
        documents=[
            _doc("9df4c2e1-0de2-4900-aa8c-af5371ed58f6", "Deaktivierung"),
            _doc("3a8ebf86-a2bb-463e-8bfd-28fd705359ff", "Abrechnung Ausführung"),
            _doc("e2dfa755-e039-45c7-b7bb-1ac024844f75", "Kosteninformation"),
        ],
    ),
    Transaction(
        uuid=SPARE_ID,
        type=TransactionType.ROUND_UP,
        timestamp=datetime(2024, 1, 4, 12, 26, 52, 110000, tzinfo=UTC),
        status="executed",
        shares=0.006882,
        rate=158.38,
        total=1.09,
        instrument=Instrument("DE000A0F5UF5", "NASDAQ100 USD (Dist)", "logos/DE000A0F5UF5/v2", InstrumentType.ETF),
        documents=[
            _expected_doc(SPARE_ID, "9df4c2e1-0de2-4900-aa8c-af5371ed58f6", "Deaktivierung",
                          f"2024-01/{SPARE_ID}/Deaktivierung.pdf"),
            _expected_doc(SPARE_ID, "3a8ebf86-a2bb-463e-8bfd-28fd705359ff", "Abrechnung Ausführung",
                          f"2024-01/{SPARE_ID}/Abrechnung Ausführung.pdf"),
            _expected_doc(SPARE_ID, "e2dfa755-e039-45c7-b7bb-1ac024844f75", "Kosteninformation",
                          f"2024-01/{SPARE_ID}/Kosteninformation.pdf"),
        ],
    ),
)

CREDIT_ID = "23cf72a9-3888-4918-898c-c3bc38346ba1"
CREDIT = (
    ResponseType.DIVIDEND_PAYOUT,
    _response(
        CREDIT_ID,
        _header("logos/IE00BK1PV551/v2", "2023-12-13T12:44:28.857+0000", "Du hast 2,94 € erhalten"),
        overview=[_row("Ereignis", "Ausschüttung"), _row("Asset", "MSCI World USD (Dist)")],
        transaction=[
            _row("Anteile", "10,344033"),
            _row("Dividende je Aktie", "0,28 €"),
            _row("Gesamt", "+ 2,94 €"),
        ],
        documents=[_doc("df244c67-8907-4365-bb89-ce26e1fadea5", "Abrechnung", "13.12.2023")],
    ),
    Transaction(
        uuid=CREDIT_ID,
        type=TransactionType.DIVIDEND_PAYOUT,
        timestamp=datetime(2023, 12, 13, 12, 44, 28, 857000, tzinfo=UTC),
        status="executed",
        shares=10.344033,
        rate=0.28,
        total=2.94,
        instrument=Instrument("IE00BK1PV551", "MSCI World USD (Dist)", "logos/IE00BK1PV551/v2", InstrumentType.ETF),
        documents=[
            _expected_doc(CREDIT_ID, "df244c67-8907-4365-bb89-ce26e1fadea5", "Abrechnung",
                          f"2023-12/{CREDIT_ID}/Abrechnung.pdf", "13.12.2023"),
        ],
    ),
)

INTEREST_ID = "c30c2952-ff0e-4fdb-bb8c-dfe1a8c35ce6"
INTEREST = (
    ResponseType.INTEREST_PAYOUT,
    _response(
        INTEREST_ID,
        _header("logos/timeline_interest_new/v2", "2023-11-06T11:22:52.544+0000", "Du hast 0,07 EUR erhalten"),
        overview=[
            _row("Status", "Abgeschlossen"),
            _row("Durchschnittssaldo", "283,33 €"),
            _row("Jahressatz", "2 %"),
            _row("Vermögenswert", "Guthaben"),
        ],
        transaction=[_row("Angefallen", "+ 0,09 €"), _row("Steuern", "0,02 €"), _row("Gesamt", "+ 0,07 €")],
        documents=[_doc("f1b33e1e-0e44-4508-b2cd-d508715d9740", "Abrechnung", "06.11.2023")],
    ),
    Transaction(
        uuid=INTEREST_ID,
        type=TransactionType.INTEREST_PAYOUT,
        timestamp=datetime(2023, 11, 6, 11, 22, 52, 544000, tzinfo=UTC),
        status="executed",
        total=0.07,
        tax_amount=0.02,
        instrument=Instrument(icon="logos/timeline_interest_new/v2", type=InstrumentType.CASH),
        documents=[
            _expected_doc(INTEREST_ID, "f1b33e1e-0e44-4508-b2cd-d508715d9740", "Abrechnung",
                          f"2023-11/{INTEREST_ID}/Abrechnung.pdf", "06.11.2023"),
        ],
    ),
)

INBOUND_ID = "1ae661c0-b3f1-4a81-a909-79567161b014"
PAYMENT_INBOUND = (
    ResponseType.DEPOSIT,
    _response(
        INBOUND_ID,
        _header("logos/timeline_plus_circle/v2", "2023-05-21T08:25:53.360+0000", "Du hast 200,00 € erhalten"),
        overview=[
            _row("Status", "Abgeschlossen"),
            _row("Von", "Jane Doe"),
            _row("IBAN", "XX00 0000 0000 0000 0000 00"),
        ],
    ),
    Transaction(
        uuid=INBOUND_ID,
        type=TransactionType.DEPOSIT,
        timestamp=datetime(2023, 5, 21, 8, 25, 53, 360000, tzinfo=UTC),
        status="executed",
        total=200,
        instrument=Instrument(icon="logos/timeline_plus_circle/v2", type=InstrumentType.CASH),
    ),
)

SEPA_ID = "ddc4ed4f-0314-42cf-8a65-930da1354348"
SEPA = (
    ResponseType.DEPOSIT,
    _response(
        SEPA_ID,
        _header("logos/timeline_plus_circle/v2", "2023-07-23T21:05:22.543+0000",
                "Du hast 500,00 € per Lastschrift hinzugefügt"),
        overview=[_row("Status", "Ausgeführt"), _row("Zahlung", "Lastschrift")],
        transaction=[_row("Gebühr", "Gratis"), _row("Betrag", "500,00 €")],
        documents=[_doc("cfc08704-eb56-44f1-83a0-c39aba9055ca", "Abrechnung Einzahlung", "23.07.2023")],
    ),
    Transaction(
        uuid=SEPA_ID,
        type=TransactionType.DEPOSIT,
        timestamp=datetime(2023, 7, 23, 21, 5, 22, 543000, tzinfo=UTC),
        status="executed",
        total=500,
        instrument=Instrument(icon="logos/timeline_plus_circle/v2", type=InstrumentType.CASH),
        documents=[
            _expected_doc(SEPA_ID, "cfc08704-eb56-44f1-83a0-c39aba9055ca", "Abrechnung Einzahlung",
                          f"2023-07/{SEPA_ID}/Abrechnung Einzahlung.pdf", "23.07.2023"),
        ],
    ),
)

SAVINGS_ID = "7c9be07c-7b88-4a49-a4be-425094388b8e"
SAVINGS_PLAN = (
    ResponseType.PURCHASE,
    _response(
        SAVINGS_ID,
        _header("logos/IE00BK1PV551/v2", "2023-11-11T13:40:59.926+0000", "Du hast 500,00 € investiert", "IE00BK1PV551"),
        overview=[
            _row("Status", "Ausgeführt"),
            _row("Orderart", "Sparplan"),
            _row("Asset", "MSCI World USD (Dist)"),
            _row("Zahlung", "·· 0000"),
        ],
        transaction=[
            _row("Anteile", "6,887811"),
            _row("Anteilspreis", "72,592 €"),
            _row("Gebühr", "Gratis"),
            _row("Gesamt", "500,00 €"),
        ],
        documents=[_doc("0ac3aea7-6d68-4815-8f25-9c8997ef790d", "Abrechnung Ausführung", "11.11.2023")],
    ),
    Transaction(
        uuid=SAVINGS_ID,
        type=TransactionType.PURCHASE,
        timestamp=datetime(2023, 11, 11, 13, 40, 59, 926000, tzinfo=UTC),
        status="executed",
        shares=6.887811,
        rate=72.592,
        total=500,
        instrument=Instrument("IE00BK1PV551", "MSCI World USD (Dist)", "logos/IE00BK1PV551/v2", InstrumentType.ETF),
        documents=[
            _expected_doc(SAVINGS_ID, "0ac3aea7-6d68-4815-8f25-9c8997ef790d", "Abrechnung Ausführung",
                          f"2023-11/{SAVINGS_ID}/Abrechnung Ausführung.pdf", "11.11.2023"),
        ],
    ),
)

SALE_ID = "a3b8e625-a6e9-4269-9529-01ebb86d69bb"
SALE = (
    ResponseType.SALE,
    _response(
        SALE_ID,
        _header("logos/US6701002056/v2", "2024-03-11T11:23:59.448+0000", "Du hast 482,99 €  erhalten", "US6701002056"),
        overview=[_row("Status", "Ausgeführt"), _row("Orderart", "Limit Verkauf"), _row("Asset", "Novo Nordisk (ADR)")],
        performance=[_row("Rendite", "0,21 %", "positive"), _row("Gewinn", "1,04 €", "positive")],
        transaction=[
            _row("Anteile", "5"),
            _row("Aktienkurs", "96,80 €"),
            _row("Steuern", "0,01 €"),
            _row("Gebühr", "1,00 €"),
            _row("Gesamt", "+ 482,99 €"),
        ],
        documents=[
            _doc("f17b2237-0e32-410e-b38b-8638600ffbb0", "Abrechnung", "11.03.2024"),
            _doc("3c214355-dc5a-488a-b780-b28fb66b66c8", "Auftragsbestätigung", "27.02.2024"),
            _doc("21a13acc-7f3c-4156-8365-be8089006ac4", "Kosteninformation", "12.02.2024"),
        ],
    ),
    Transaction(
        uuid=SALE_ID,
        type=TransactionType.SALE,
        timestamp=datetime(2024, 3, 11, 11, 23, 59, 448000, tzinfo=UTC),
        status="executed",
        shares=5,
        rate=96.80,
        yield_=0.21,
        profit=1.04,
        commission=1,
        total=482.99,
        tax_amount=0.01,
        instrument=Instrument("US6701002056", "Novo Nordisk (ADR)", "logos/US6701002056/v2", InstrumentType.OTHER),
        documents=[
            _expected_doc(SALE_ID, "f17b2237-0e32-410e-b38b-8638600ffbb0", "Abrechnung",
                          f"2024-03/{SALE_ID}/Abrechnung.pdf", "11.03.2024"),
            _expected_doc(SALE_ID, "3c214355-dc5a-488a-b780-b28fb66b66c8", "Auftragsbestätigung",
                          f"2024-02/{SALE_ID}/Auftragsbestätigung.pdf", "27.02.2024"),
            _expected_doc(SALE_ID, "21a13acc-7f3c-4156-8365-be8089006ac4", "Kosteninformation",
                          f"2024-02/{SALE_ID}/Kosteninformation.pdf", "12.02.2024"),
        ],
    ),
)

SUPPORTED = {
    "BenefitsSpareChangeExecution01": SPARE_CHANGE,
    "Credit01": CREDIT,
    "InterestPayoutCreated01": INTEREST,
    "PaymentInbound01": PAYMENT_INBOUND,
    "PaymentInboundSepaDirectDebit01": SEPA,
    "SavingsPlanExecuted01": SAVINGS_PLAN,
    "OrderExecuted03": SALE,
}


@pytest.mark.parametrize("name", sorted(SUPPORTED))
def test_build_supported(name):
    response_type, response, expected = SUPPORTED[name]
    builder = ModelBuilderFactory().create(response_type, response)
    assert builder.build() == expected


@pytest.mark.parametrize("response_type", [ResponseType.CARD_PAYMENT, ResponseType.UNSUPPORTED, "card_payment"])
def test_create_unsupported_raises(response_type):
    with pytest.raises(UnsupportedResponseError):
        ModelBuilderFactory().create(response_type, SAVINGS_PLAN[1])


def test_create_unknown_raises():
    with pytest.raises(UnknownResponseError):
        ModelBuilderFactory().create("bogus", SAVINGS_PLAN[1])


def test_create_picks_builder_for_type():
    factory = ModelBuilderFactory()

    sale_builder = factory.create(ResponseType.SALE, SALE[1])
    assert isinstance(sale_builder, SaleBuilder)
    assert sale_builder.build().type is TransactionType.SALE

    deposit_builder = factory.create(ResponseType.DEPOSIT, SEPA[1])
    assert isinstance(deposit_builder, DepositBuilder)
    assert deposit_builder.build().type is TransactionType.DEPOSIT

    withdrawal = factory.create(ResponseType.WITHDRAWAL, SEPA[1]).build()
    assert withdrawal.type is TransactionType.WITHDRAWAL
    assert withdrawal.total == 500.0


def test_build_missing_shares_is_insufficient_data():
    response = _response(
        "id-1",
        _header("logos/IE00BK1PV551/v2", "2023-11-11T13:40:59.926+0000", "Du hast 5,00 € investiert"),
        transaction=[_row("Aktienkurs", "1,00 €"), _row("Gesamt", "5,00 €")],
    )
    with pytest.raises(InsufficientDataError) as info:
        ModelBuilderFactory().create(ResponseType.PURCHASE, response).build()
    assert isinstance(info.value.__cause__, SectionTitleNotFoundError)


def test_sale_missing_performance_is_insufficient_data():
    base = SALE[1]
    response = _response(base.id, base.header, transaction=base.transaction.rows)
    with pytest.raises(InsufficientDataError):
        ModelBuilderFactory().create(ResponseType.SALE, response).build()


def test_sale_with_loss_is_negative():
    base = SALE[1]
    response = _response(
        base.id,
        base.header,
        overview=base.overview.rows,
        transaction=base.transaction.rows,
        performance=[_row("Rendite", "2,50 %", "negative"), _row("Verlust", "5,00 €", "negative")],
    )
    model = ModelBuilderFactory().create(ResponseType.SALE, response).build()
    assert model.profit == -5.0
    assert model.yield_ == -2.5


def test_withdrawal_takes_total_from_header():
    response = _response(
        "withdrawal-1",
        _header("logos/timeline_minus_circle/v2", "2023-05-21T08:25:53.360+0000", "Du hast 1.000,00 € gesendet"),
    )
    model = ModelBuilderFactory().create(ResponseType.WITHDRAWAL, response).build()
    assert model.type is TransactionType.WITHDRAWAL
    assert model.total == 1000.0
    assert model.instrument.type is InstrumentType.CASH


def test_interest_payout_falls_back_to_header_total():
    response = _response(
        "interest-1",
        _header("logos/timeline_interest_new/v2", "2023-11-06T11:22:52.544+0000", "Du hast 0,07 EUR erhalten"),
    )
    model = ModelBuilderFactory().create(ResponseType.INTEREST_PAYOUT, response).build()
    assert model.total == 0.07
    assert model.tax_amount == 0.0


def test_alternative_timestamp_format():
    response = _response(
        "deposit-1",
        _header("logos/timeline_plus_circle/v2", "2023-11-02T16:41:39.944Z", "Du hast 10,00 € erhalten"),
    )
    model = ModelBuilderFactory().create(ResponseType.DEPOSIT, response).build()
    assert model.timestamp == datetime(2023, 11, 2, 16, 41, 39, 944000, tzinfo=UTC)


def test_invalid_timestamp_raises():
    response = _response("deposit-2", _header("icon", "yesterday", "Du hast 10,00 € erhalten"))
    with pytest.raises(ValueError, match="timestamp"):
        ModelBuilderFactory().create(ResponseType.DEPOSIT, response).build()


def test_custom_documents_builder_is_used():
    calls = []

    def documents_builder(uuid, timestamp, response):
        calls.append((uuid, timestamp))
        return []

    factory = ModelBuilderFactory(documents_builder=documents_builder)
    model = factory.create(ResponseType.DEPOSIT, SEPA[1]).build()
    assert model.documents == []
    assert calls == [(SEPA_ID, datetime(2023, 7, 23, 21, 5, 22, 543000, tzinfo=UTC))]