import os
from datetime import datetime, timezone

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

ENV = os.getenv("ENV", "TEST").upper()

SERVICE_NAME = "order-status-api"
SERVICE_VERSION = "1.0.0"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


DEFAULTS = {
    "TEST": {
        "MSSQL_HOST": "localhost",
        "MSSQL_DB": "EFC_DB_PROD",
        "MSSQL_USER": "tracking_ro",
        "MSSQL_PASS": "",
        "PG_HOST": "localhost",
        "PG_DB": "diccionario",
        "PG_USER": "diccionario_ro",
        "PG_PASS": "",
    },
    "LIVE": {
        "MSSQL_HOST": "efc-sql01",
        "MSSQL_DB": "EFC_DB_PROD",
        "MSSQL_USER": "tracking_ro",
        "MSSQL_PASS": "",
        "PG_HOST": "efc-pg01",
        "PG_DB": "diccionario",
        "PG_USER": "diccionario_ro",
        "PG_PASS": "",
    }
}

cfg = DEFAULTS["LIVE"] if ENV == "LIVE" else DEFAULTS["TEST"]

# ---------------- Tracking store (SQL Server) ----------------
MSSQL_DRIVER = os.getenv("MSSQL_DRIVER", "ODBC Driver 17 for SQL Server")
MSSQL_HOST   = os.getenv("MSSQL_HOST", cfg["MSSQL_HOST"])
MSSQL_PORT   = _env_int("MSSQL_PORT", 1433)
MSSQL_DB     = os.getenv("MSSQL_DB", cfg["MSSQL_DB"])
MSSQL_USER   = os.getenv("MSSQL_USER", cfg["MSSQL_USER"])
MSSQL_PASS   = os.getenv("MSSQL_PASS", cfg["MSSQL_PASS"])

TRACKING_CONN_STR = os.getenv("TRACKING_CONN_STR") or (
    f"DRIVER={{{MSSQL_DRIVER}}};"
    f"SERVER={MSSQL_HOST},{MSSQL_PORT};DATABASE={MSSQL_DB};"
    f"UID={MSSQL_USER};PWD={MSSQL_PASS};"
    "Encrypt=no;TrustServerCertificate=yes;"
)

# ---------------- Dictionary store (PostgreSQL) ----------------
PG_DRIVER = os.getenv("PG_DRIVER", "PostgreSQL Unicode")
PG_HOST   = os.getenv("PG_HOST", cfg["PG_HOST"])
PG_PORT   = _env_int("PG_PORT", 5432)
PG_DB     = os.getenv("PG_DB", cfg["PG_DB"])
PG_USER   = os.getenv("PG_USER", cfg["PG_USER"])
PG_PASS   = os.getenv("PG_PASS", cfg["PG_PASS"])

DICTIONARY_CONN_STR = os.getenv("DICTIONARY_CONN_STR") or (
    f"DRIVER={{{PG_DRIVER}}};"
    f"SERVER={PG_HOST};PORT={PG_PORT};DATABASE={PG_DB};"
    f"UID={PG_USER};PWD={PG_PASS};"
)

DB_LOGIN_TIMEOUT = _env_int("DB_LOGIN_TIMEOUT", 30)
DB_QUERY_TIMEOUT = _env_int("DB_QUERY_TIMEOUT", 30)

# Table name is configuration, never request input.
DICTIONARY_TABLE = os.getenv("DICTIONARY_TABLE", "public.diccionario_estaciones")

# "query" hits PostgreSQL once per tier, "memory" matches against a cached copy
DICTIONARY_MODE = os.getenv("DICTIONARY_MODE", "query").strip().lower()
DICTIONARY_REFRESH_SECONDS = _env_int("DICTIONARY_REFRESH_SECONDS", 300)

# --- ESTIMATED DELIVERY CHECKPOINTS ---
# LIKE patterns, compared upper-cased against label / activity / station.
ESTIMATED_LABEL_PATTERN    = os.getenv("ESTIMATED_LABEL_PATTERN", "%FECHA%ESTIMAD%ENTREGA%")
ESTIMATED_ACTIVITY_PATTERN = os.getenv("ESTIMATED_ACTIVITY_PATTERN", "%ESTIMAD%ENTREGA%")
ESTIMATED_STATION_PATTERN  = os.getenv("ESTIMATED_STATION_PATTERN", "%ENTREGA ESTIMADA%")

# ---------------- HTTP ----------------
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 3000)
API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{PORT}")

# ---------------- Paths (stable, absolute) ----------------
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Logging
LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_FILE = os.getenv("LOG_FILE", "order_status.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -------------- HTTP Session (client scripts) --------------
SESSION = requests.Session()
retries = Retry(
    total=3,
    backoff_factor=2.0,
    status_forcelist=[502, 503, 504],
    allowed_methods=["GET", "POST"],
)
SESSION.mount("http://", HTTPAdapter(max_retries=retries))
SESSION.mount("https://", HTTPAdapter(max_retries=retries))

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
