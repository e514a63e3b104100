# db.py

from typing import Any, Callable, List, Dict, Tuple
import pyodbc

from config import (
    TRACKING_CONN_STR,
    DICTIONARY_CONN_STR,
    DB_LOGIN_TIMEOUT,
    DB_QUERY_TIMEOUT,
)
from exceptions import StoreUnavailable, QueryFailure
from logger import get_logger


log = get_logger("db")

PING_SQL = "SELECT 1 AS ok"

# -------------- Connections --------------
# Read-only work only; the ODBC driver manager pools the underlying sessions.
def get_tracking_conn() -> pyodbc.Connection:
    conn = pyodbc.connect(TRACKING_CONN_STR, autocommit=True, timeout=DB_LOGIN_TIMEOUT)
    conn.timeout = DB_QUERY_TIMEOUT
    return conn

def get_dictionary_conn() -> pyodbc.Connection:
    conn = pyodbc.connect(DICTIONARY_CONN_STR, autocommit=True, timeout=DB_LOGIN_TIMEOUT)
    conn.timeout = DB_QUERY_TIMEOUT
    return conn

# ---------- Row Helpers ----------
def fetchall_dict(cur: pyodbc.Cursor) -> List[Dict[str, Any]]:
    if cur.description is None:
        return []
    cols = [c[0] for c in cur.description]
    out = []
    for row in cur.fetchall():
        d = dict(zip(cols, row))

        # Add lowercase aliases so callers don't care how the driver cased the column
        for k, v in list(d.items()):
            lk = str(k).lower()
            if lk not in d:
                d[lk] = v

        out.append(d)
    return out

def rquery(conn: pyodbc.Connection, sql: str, params: Tuple[Any, ...] = ()) -> List[Dict[str, Any]]:
    cur = conn.cursor()
    try:
        cur.execute(sql, params)
        return fetchall_dict(cur)
    finally:
        cur.close()

# ---------- Stores ----------
class SqlStore:
    """
    Narrow read capability over one ODBC data source. Every call opens a
    connection from the factory, runs one parameterized statement and closes it.
    pyodbc errors are translated so callers never see driver exceptions.
    """
    name = "store"

    def __init__(self, connect: Callable[[], Any]):
        self._connect = connect

    def query(self, sql: str, params: Tuple[Any, ...] = ()) -> List[Dict[str, Any]]:
        try:
            conn = self._connect()
        except pyodbc.Error as e:
            log.error(f"{self.name}: connection failed: {e}")
            raise StoreUnavailable(f"{self.name} store unavailable", store=self.name) from e

        try:
            return rquery(conn, sql, tuple(params))
        except (pyodbc.OperationalError, pyodbc.InterfaceError) as e:
            log.error(f"{self.name}: link lost during query: {e}")
            raise StoreUnavailable(f"{self.name} store unavailable", store=self.name) from e
        except pyodbc.Error as e:
            log.error(f"{self.name}: query failed: {e}")
            raise QueryFailure(f"{self.name} query failed", store=self.name, sql=sql) from e
        finally:
            try:
                conn.close()
            except pyodbc.Error as e:
                log.warning(f"{self.name}: error closing connection: {e}")

    def ping(self) -> bool:
        try:
            self.query(PING_SQL)
            return True
        except (StoreUnavailable, QueryFailure):
            return False


class TrackingStore(SqlStore):
    name = "tracking"

    def __init__(self, connect: Callable[[], Any] = get_tracking_conn):
        super().__init__(connect)


class DictionaryStore(SqlStore):
    name = "dictionary"

    def __init__(self, connect: Callable[[], Any] = get_dictionary_conn):
        super().__init__(connect)
