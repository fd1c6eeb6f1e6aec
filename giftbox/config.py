import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///giftbox.db")
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-key")

    SITE_NAME = os.getenv("SITE_NAME", "GiftBox")
    CURRENCY = os.getenv("CURRENCY", "AZN")
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")

    # checkout
    SHIPPING_COST_CENTS = int(os.getenv("SHIPPING_COST_CENTS", "500"))
    TAX_RATE_PERCENT = int(os.getenv("TAX_RATE_PERCENT", "18"))
    MYSTERY_MIN_BUDGET = int(os.getenv("MYSTERY_MIN_BUDGET", "30"))
    DEFAULT_COUNTRY = os.getenv("DEFAULT_COUNTRY", "Azerbaijan")
    WHATSAPP_NUMBER = os.getenv("WHATSAPP_NUMBER", "")

    # uploads
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))
    MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

    # auth
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")

    # i18n
    LOCALES = ("en", "az", "ru")
    DEFAULT_LOCALE = os.getenv("DEFAULT_LOCALE", "en")

    # logging & notify
    LOG_FILE = os.getenv("LOG_FILE", "app.log")
    SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL")
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    ALERT_EMAIL_TO = os.getenv("ALERT_EMAIL_TO")
