"""Dashboard figures derived from a list of transaction records.

Records are mappings shaped like ``Transaction.to_dict()``. Nothing here
touches the database; every function works on the snapshot it is given.
"""

from datetime import datetime, timezone

import pandas as pd

from models import EXPENSE, INCOME

COLUMNS = ["id", "type", "amount", "category", "description", "date"]


def _frame(transactions) -> pd.DataFrame:
    return pd.DataFrame(list(transactions), columns=COLUMNS)


def _sum_of(transactions, kind) -> float:
    df = _frame(transactions)
    return float(df.loc[df["type"] == kind, "amount"].sum())


def total_income(transactions) -> float:
    return _sum_of(transactions, INCOME)


def total_expense(transactions) -> float:
    return _sum_of(transactions, EXPENSE)


def balance(transactions) -> float:
    transactions = list(transactions)
    return total_income(transactions) - total_expense(transactions)


def expense_by_category(transactions, categories) -> dict:
    """Sum expenses per category, in the order of ``categories``.

    Labels not listed in ``categories`` are ignored and categories that add
    up to nothing are left out.
    """
    df = _frame(transactions)
    expenses = df[df["type"] == EXPENSE]
    sums = expenses.groupby("category")["amount"].sum()

    result = {}
    for name in categories:
        value = float(sums.get(name, 0.0))
        if value > 0:
            result[name] = value
    return result


def _date_key(record):
    value = record["date"]
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is not None:
        # compare everything as naive UTC, like the stored dates
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def recent_transactions(transactions, limit) -> list:
    if limit < 0:
        raise ValueError("limit must not be negative")
    # sorted() is stable, so records sharing a date keep their input order
    ordered = sorted(transactions, key=_date_key, reverse=True)
    return ordered[:limit]


def summarize(transactions, categories, limit) -> dict:
    transactions = list(transactions)
    income = total_income(transactions)
    expense = total_expense(transactions)
    by_category = expense_by_category(transactions, categories)
    return {
        "total_income": income,
        "total_expense": expense,
        "balance": income - expense,
        "bar_chart": [
            {"name": "Income", "value": income},
            {"name": "Expense", "value": expense},
        ],
        "pie_chart": [{"name": name, "value": value} for name, value in by_category.items()],
        "expense_by_category": by_category,
        "recent": recent_transactions(transactions, limit),
    }
