from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()

INCOME = "income"
EXPENSE = "expense"


class User(db.Model, UserMixin):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    def set_password(self, pw: str):
        self.password_hash = generate_password_hash(pw)

    def check_password(self, pw: str) -> bool:
        return check_password_hash(self.password_hash, pw)


class Transaction(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(10), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(100), nullable=True)
    description = db.Column(db.String(255), nullable=False)
    date = db.Column(db.DateTime, nullable=False)

    __table_args__ = (
        db.CheckConstraint("type IN ('income', 'expense')", name="ck_transaction_type"),
        db.CheckConstraint("amount > 0", name="ck_transaction_amount"),
    )

    @classmethod
    def from_entry(cls, entry) -> "Transaction":
        """Build a row from a validated ``Income`` or ``Expense``."""
        return cls(
            type=entry.type,
            amount=entry.amount,
            category=getattr(entry, "category", None),
            description=entry.description,
            date=entry.date,
        )

    def to_dict(self) -> dict:
        record = {
            "id": self.id,
            "type": self.type,
            "amount": float(self.amount),
            "description": self.description,
            "date": self.date.isoformat(),
        }
        if self.category is not None:
            record["category"] = self.category
        return record

    def __repr__(self) -> str:
        return f"Transaction(id={self.id}, type={self.type}, amount={self.amount}, category={self.category!r})"
