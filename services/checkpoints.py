# services/checkpoints.py
import re
from typing import Any, List, Optional

from models import CheckpointRecord
from logger import get_logger

log = get_logger("checkpoints")

SQL_INT_MIN = -2147483648
SQL_INT_MAX = 2147483647

_CANONICAL_INT = re.compile(r"-?(0|[1-9][0-9]*)")

# Shared by the checkpoint and estimated-delivery queries.
# Params: order number, then item number when ITEM_FILTER_SQL is appended.
TRACKING_FROM_SQL = """
FROM EFC_DB_PROD.[IP].[Detalle_Estacion_Agrupada] a
JOIN desarrollo.dbo.pe2000 b
  ON a.Pedido_Unico = b.pe2_unique
JOIN desarrollo.dbo.pe1000 c
  ON b.pe2_tipdoc = c.pe1_tipdoc
 AND b.pe2_numped = c.pe1_numped
"""

ORDER_FILTER_SQL = "WHERE LTRIM(RTRIM(c.pe1_numord)) = ?"
ITEM_FILTER_SQL = "AND b.pe2_numitm = ?"


def tracking_filter(order_number: str, item_filter: Optional[int]):
    """Return (where_sql, params) for one order, optionally one item."""
    where = ORDER_FILTER_SQL
    params: List[Any] = [order_number.strip()]
    if item_filter is not None:
        where += "\n  " + ITEM_FILTER_SQL
        params.append(int(item_filter))
    return where, params


def normalize_item_input(raw) -> Optional[int]:
    """
    Caller-supplied item number -> int filter, or None for "all items".
    None, "", "null" and anything that isn't canonical signed decimal text
    (no padding, no leading zeros, fits a SQL int) all mean no filter.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    else:
        s = str(raw)
        if not _CANONICAL_INT.fullmatch(s):
            if s.strip() and s.strip().lower() != "null":
                log.info(f"Ignoring non-numeric item filter {s!r}")
            return None
        value = int(s)

    if value < SQL_INT_MIN or value > SQL_INT_MAX:
        log.info(f"Ignoring out-of-range item filter {value}")
        return None
    return value


def _checkpoint_sql(where_sql: str) -> str:
    return f"""
    WITH latest AS (
        SELECT
            c.PE1_NUMORD              AS OrderNumber,
            b.PE2_NUMITM              AS ItemNumber,
            a.pedido_checkpoint_valor AS CheckpointDate,
            a.nombre_usuario          AS CheckpointLabel,
            a.Estacion                AS Station,
            a.Actividad               AS Activity,
            d.CLI_RZNSOC              AS ClientName,
            a.Pedido_Estado_Item      AS RawStatus,
            ROW_NUMBER() OVER (
                PARTITION BY b.PE2_NUMITM
                ORDER BY a.pedido_checkpoint_valor DESC
            ) AS rn
        {TRACKING_FROM_SQL}
        JOIN desarrollo.dbo.cl0000 d
          ON c.PE1_CODCLI = d.CLI_CODIGO
        {where_sql}
    )
    SELECT OrderNumber, ItemNumber, CheckpointDate, CheckpointLabel,
           Station, Activity, ClientName, RawStatus
    FROM latest
    WHERE rn = 1
    ORDER BY CheckpointDate DESC
    """


def _get(row: dict, key: str):
    v = row.get(key)
    if v is None:
        v = row.get(key.lower())
    return v


def _text(value) -> Optional[str]:
    return None if value is None else str(value)


def fetch_checkpoints(store, order_number: str, item_filter: Optional[int]) -> List[CheckpointRecord]:
    """Latest checkpoint per item for the order, most recent first."""
    order_number = order_number.strip()
    where_sql, params = tracking_filter(order_number, item_filter)

    log.info(f"Fetching checkpoints for order {order_number}, item {item_filter}")
    rows = store.query(_checkpoint_sql(where_sql), tuple(params))
    log.info(f"Checkpoint query returned {len(rows)} rows for order {order_number}")

    out: List[CheckpointRecord] = []
    for r in rows:
        stored_order = _get(r, "OrderNumber")
        item = _get(r, "ItemNumber")
        out.append(CheckpointRecord(
            order_number=str(stored_order).strip() if stored_order is not None else order_number,
            item_number=int(item) if item_filter is not None and item is not None else None,
            checkpoint_date=_get(r, "CheckpointDate"),
            checkpoint=_text(_get(r, "CheckpointLabel")),
            station=_text(_get(r, "Station")),
            activity=_text(_get(r, "Activity")),
            client_name=_text(_get(r, "ClientName")),
            raw_status=_text(_get(r, "RawStatus")),
        ))
    return out
