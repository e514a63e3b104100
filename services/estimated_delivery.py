# services/estimated_delivery.py
from datetime import datetime
from typing import Optional, Union

from config import (
    ESTIMATED_LABEL_PATTERN,
    ESTIMATED_ACTIVITY_PATTERN,
    ESTIMATED_STATION_PATTERN,
)
from services.checkpoints import TRACKING_FROM_SQL, tracking_filter
from logger import get_logger

log = get_logger("estimated_delivery")


def _estimated_sql(where_sql: str) -> str:
    return f"""
    SELECT TOP (1)
        a.pedido_checkpoint_valor AS EstimatedDate
    {TRACKING_FROM_SQL}
    {where_sql}
      AND (
            UPPER(a.nombre_usuario) LIKE UPPER(?) OR
            UPPER(a.Actividad)      LIKE UPPER(?) OR
            UPPER(a.Estacion)       LIKE UPPER(?)
          )
    ORDER BY a.pedido_checkpoint_valor DESC
    """


def resolve_estimated_date(store, order_number: str, item_filter: Optional[int]) -> Optional[Union[datetime, str]]:
    """
    Most recent "estimated delivery" checkpoint timestamp for the order/item,
    or None. Store errors propagate to the caller.
    """
    where_sql, params = tracking_filter(order_number, item_filter)
    params += [ESTIMATED_LABEL_PATTERN, ESTIMATED_ACTIVITY_PATTERN, ESTIMATED_STATION_PATTERN]

    rows = store.query(_estimated_sql(where_sql), tuple(params))
    if not rows:
        log.debug(f"No estimated delivery checkpoint for order {order_number.strip()}")
        return None

    r = rows[0]
    value = r.get("EstimatedDate")
    if value is None:
        value = r.get("estimateddate")
    return value
