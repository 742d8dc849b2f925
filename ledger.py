"""Validation and storage of income/expense transactions."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from models import EXPENSE, INCOME, Transaction

logger = logging.getLogger(__name__)

# Spanish labels are what the first version of the dashboard posted
TYPE_ALIASES = {
    "income": INCOME,
    "ingreso": INCOME,
    "expense": EXPENSE,
    "gasto": EXPENSE,
}


class ValidationError(ValueError):
    """Client-side mistake in a submitted payload. Nothing was written."""


@dataclass(frozen=True)
class Income:
    amount: float
    description: str
    date: datetime
    type: ClassVar[str] = INCOME


@dataclass(frozen=True)
class Expense:
    amount: float
    category: str
    description: str
    date: datetime
    type: ClassVar[str] = EXPENSE


Entry = Union[Income, Expense]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_type(value: Any) -> str:
    if not isinstance(value, str) or value.strip().lower() not in TYPE_ALIASES:
        raise ValidationError("type must be 'income' or 'expense'")
    return TYPE_ALIASES[value.strip().lower()]


def _parse_amount(value: Any) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("amount is required")
    if isinstance(value, bool):
        raise ValidationError("amount must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("amount must be a number")
    if not math.isfinite(amount):
        raise ValidationError("amount must be a finite number")
    if amount <= 0:
        raise ValidationError("amount must be greater than zero")
    return amount


def _parse_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


def _parse_date(value: Any, now: Optional[datetime]) -> datetime:
    if value is None or value == "":
        return now or _utcnow()
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            # fromisoformat only learned the trailing Z in 3.11
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}. Expected ISO-8601 (YYYY-MM-DD)")
    else:
        raise ValidationError("date must be an ISO-8601 string")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_transaction(payload: Any, now: Optional[datetime] = None) -> Entry:
    """Validate a submitted transaction and return the matching variant.

    A category sent along with an income is dropped rather than rejected.
    ``now`` is the default date when the payload carries none.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Transaction must be a JSON object")

    kind = _parse_type(payload.get("type"))
    amount = _parse_amount(payload.get("amount"))
    description = _parse_text(payload.get("description"), "description")
    date = _parse_date(payload.get("date"), now)

    if kind == EXPENSE:
        category = _parse_text(payload.get("category"), "category")
        return Expense(amount=amount, category=category, description=description, date=date)
    return Income(amount=amount, description=description, date=date)


class TransactionStore:
    """Insert and list transactions through an explicit SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def list_transactions(self) -> list[Transaction]:
        return (
            self.session.query(Transaction)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .all()
        )

    def create_transaction(self, candidate) -> Transaction:
        entry = candidate if isinstance(candidate, (Income, Expense)) else parse_transaction(candidate)
        record = Transaction.from_entry(entry)
        self.session.add(record)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        logger.info("Stored %s transaction id=%s amount=%.2f", record.type, record.id, record.amount)
        return record
