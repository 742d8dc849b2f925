from datetime import datetime

import pytest
from sqlalchemy.exc import SQLAlchemyError

from ledger import Expense, Income, TransactionStore, ValidationError, parse_transaction
from models import Transaction

NOW = datetime(2024, 6, 1, 12, 0, 0)


def test_parse_expense():
    entry = parse_transaction({"type": "expense", "amount": 50, "category": "Comida",
                               "description": "lunch", "date": "2024-01-01"})
    assert entry == Expense(amount=50.0, category="Comida", description="lunch", date=datetime(2024, 1, 1))
    assert entry.type == "expense"


def test_parse_income_drops_category():
    entry = parse_transaction({"type": "income", "amount": "200", "category": "Comida",
                               "description": "salary"}, now=NOW)
    assert isinstance(entry, Income)
    assert not hasattr(entry, "category")
    assert entry.date == NOW


def test_parse_accepts_spanish_type_labels():
    assert parse_transaction({"type": "ingreso", "amount": 1, "description": "x"}).type == "income"
    assert parse_transaction({"type": "gasto", "amount": 1, "description": "x", "category": "Otros"}).type == "expense"


def test_parse_converts_aware_dates_to_utc():
    entry = parse_transaction({"type": "income", "amount": 1, "description": "x",
                               "date": "2024-01-01T10:00:00+02:00"})
    assert entry.date == datetime(2024, 1, 1, 8, 0, 0)
    entry = parse_transaction({"type": "income", "amount": 1, "description": "x",
                               "date": "2024-01-01T10:00:00Z"})
    assert entry.date == datetime(2024, 1, 1, 10, 0, 0)


@pytest.mark.parametrize("payload, message", [
    ({"type": "expense", "amount": 10, "description": "taxi"}, "category"),
    ({"type": "expense", "amount": 10, "description": "taxi", "category": "  "}, "category"),
    ({"type": "transfer", "amount": 10, "description": "x"}, "type"),
    ({"amount": 10, "description": "x"}, "type"),
    ({"type": "income", "description": "x"}, "amount"),
    ({"type": "income", "amount": 0, "description": "x"}, "amount"),
    ({"type": "income", "amount": -5, "description": "x"}, "amount"),
    ({"type": "income", "amount": "abc", "description": "x"}, "amount"),
    ({"type": "income", "amount": "nan", "description": "x"}, "amount"),
    ({"type": "income", "amount": True, "description": "x"}, "amount"),
    ({"type": "income", "amount": 10}, "description"),
    ({"type": "income", "amount": 10, "description": "x", "date": "yesterday"}, "date"),
])
def test_parse_rejects_invalid_payloads(payload, message):
    with pytest.raises(ValidationError, match=message):
        parse_transaction(payload)


def test_parse_rejects_non_object():
    with pytest.raises(ValidationError):
        parse_transaction(["income", 10])


def test_create_then_list_round_trip(session):
    store = TransactionStore(session)
    payload = {"type": "expense", "amount": 12.5, "category": "Transporte",
               "description": "bus", "date": "2024-03-10T08:30:00"}
    created = store.create_transaction(payload)
    assert created.id is not None

    listed = [t.to_dict() for t in store.list_transactions()]
    assert listed == [{"id": created.id, **payload}]


def test_create_accepts_validated_entry(session):
    store = TransactionStore(session)
    record = store.create_transaction(Income(amount=300.0, description="bonus", date=NOW))
    assert record.to_dict() == {"id": record.id, "type": "income", "amount": 300.0,
                                "description": "bonus", "date": "2024-06-01T12:00:00"}


def test_income_category_is_cleared_before_save(session):
    store = TransactionStore(session)
    store.create_transaction({"type": "income", "amount": 10, "category": "Comida", "description": "gift"})
    stored = session.query(Transaction).one()
    assert stored.category is None
    assert "category" not in stored.to_dict()


def test_invalid_payload_is_not_persisted(session):
    store = TransactionStore(session)
    with pytest.raises(ValidationError):
        store.create_transaction({"type": "expense", "amount": 10, "description": "no category"})
    assert store.list_transactions() == []


def test_list_is_newest_first(session):
    store = TransactionStore(session)
    for day in ("2024-01-02", "2024-01-05", "2024-01-01"):
        store.create_transaction({"type": "income", "amount": 1, "description": day, "date": day})
    assert [t.description for t in store.list_transactions()] == ["2024-01-05", "2024-01-02", "2024-01-01"]


def test_store_failure_rolls_back(session, monkeypatch):
    store = TransactionStore(session)

    def broken_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(session(), "commit", broken_commit)
    with pytest.raises(SQLAlchemyError):
        store.create_transaction({"type": "income", "amount": 1, "description": "x"})
    monkeypatch.undo()
    assert store.list_transactions() == []


def test_parse_keeps_text_as_submitted():
    entry = parse_transaction({"type": "expense", "amount": 3, "category": " Comida ",
                               "description": "  tip ", "date": "2024-01-01"})
    assert entry.description == "  tip "
    assert entry.category == " Comida "


def test_round_trip_preserves_surrounding_whitespace(session):
    store = TransactionStore(session)
    payload = {"type": "income", "amount": 4.0, "description": "  tip ", "date": "2024-02-02T00:00:00"}
    created = store.create_transaction(payload)
    assert [t.to_dict() for t in store.list_transactions()] == [{"id": created.id, **payload}]
