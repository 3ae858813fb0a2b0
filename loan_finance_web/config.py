import os


class Config:

    # -------------------------
    # Flask core
    # -------------------------
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")

    # -------------------------
    # Quotation store
    # -------------------------
    QUOTATION_DATABASE_URL = os.environ.get("QUOTATION_DATABASE_URL", "sqlite:///quotation_data.sqlite3")
    QUOTATION_MAX_PER_USER = int(os.environ.get("QUOTATION_MAX_PER_USER", "50"))
