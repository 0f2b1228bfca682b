# src/libs/ledger-common/ledger_common/config.py
import os
from dotenv import load_dotenv

# Load environment variables from a .env file for local development.
load_dotenv()


# Database Configurations
POSTGRES_USER = os.getenv("POSTGRES_USER", "user")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "password")
POSTGRES_DB = os.getenv("POSTGRES_DB", "ledger_db")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "postgres")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

# Ledger Configurations
LEDGER_BULK_MAX_ROWS = int(os.getenv("LEDGER_BULK_MAX_ROWS", "1000"))
LEDGER_LIST_DEFAULT_LIMIT = int(os.getenv("LEDGER_LIST_DEFAULT_LIMIT", "50"))
LEDGER_LIST_MAX_LIMIT = int(os.getenv("LEDGER_LIST_MAX_LIMIT", "500"))
# 'business' (weekday arithmetic) or 'legacy' (historical settlement output)
LEDGER_SETTLEMENT_CALENDAR = os.getenv("LEDGER_SETTLEMENT_CALENDAR", "business")
LEDGER_SETTLEMENT_LAG_DAYS = int(os.getenv("LEDGER_SETTLEMENT_LAG_DAYS", "2"))
LEDGER_UPLOAD_SAMPLE_SIZE = int(os.getenv("LEDGER_UPLOAD_SAMPLE_SIZE", "20"))

# Header carrying the subject verified by the upstream identity gateway.
AUTHENTICATED_SUBJECT_HEADER = os.getenv("AUTHENTICATED_SUBJECT_HEADER", "X-Authenticated-Subject")
