from pathlib import Path
import logging
import os

from dotenv import load_dotenv

load_dotenv()

# Project paths & files
BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"
DATABASE_PATH = DATA_DIR / "finance.db"
SQLITE_URI = f"sqlite:///{DATABASE_PATH}"

APP_NAME = "Finance Tracker"

# Expense categories offered by the dashboard form and used for the pie chart
CATEGORIES = ["Comida", "Transporte", "Entretenimiento", "Servicios", "Otros"]
CHART_COLORS = ["#0088FE", "#00C49F", "#FFBB28", "#FF8042", "#8884D8"]

LOGGING_CONFIG = {
    "level": os.getenv("LOG_LEVEL", "INFO").upper(),
    "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-this-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", SQLITE_URI)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TRANSACTION_CATEGORIES = CATEGORIES
    RECENT_TRANSACTIONS_LIMIT = int(os.getenv("RECENT_TRANSACTIONS_LIMIT", "10"))


def ensure_data_dir():
    """Create the directory holding the default SQLite file."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
