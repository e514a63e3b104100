# services/order_status.py
from datetime import date, datetime
from typing import List, Optional

from exceptions import StoreError
from models import OrderStatusResponse
from services.checkpoints import fetch_checkpoints, normalize_item_input
from services.estimated_delivery import resolve_estimated_date
from services.status_classifier import StatusClassifier, normalize_for_match
from logger import get_logger

log = get_logger("order_status")

DISPLAY_DATE_FMT = "%d/%m/%y"


def _parse_ts(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        # handles "2024-03-07T15:30:00", "2024-03-07 15:30:00+00:00", "...Z"
        return datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        pass
    # SQL Server text like "2024-03-07 15:30:00.1234567" (more digits than fromisoformat takes)
    if len(s) >= 10 and s[10:11] in ("", " ", "T"):
        try:
            return datetime.strptime(s[:10], "%Y-%m-%d")
        except ValueError:
            return None
    return None


def format_display_date(value) -> Optional[str]:
    """DD/MM/YY from the stored calendar date (no timezone shift), or None."""
    dt = _parse_ts(value)
    if dt is None:
        return None
    return dt.strftime(DISPLAY_DATE_FMT)


class OrderStatusService:

    def __init__(self, tracking_store, classifier: StatusClassifier):
        self.tracking_store = tracking_store
        self.classifier = classifier

    def get_order_status(self, order_number: str, item_number=None) -> List[OrderStatusResponse]:
        order_number = order_number.strip()
        item_filter = normalize_item_input(item_number)
        log.info(f"Processing order: {order_number}, item: {item_filter}")

        try:
            rows = fetch_checkpoints(self.tracking_store, order_number, item_filter)
            if not rows:
                log.warning(f"No checkpoint data found for order: {order_number}")
                return [OrderStatusResponse.not_found(order_number)]

            # Same order/item filter for every row, so one lookup serves them all
            estimated = format_display_date(
                resolve_estimated_date(self.tracking_store, order_number, item_filter)
            )

            out = []
            for r in rows:
                checkpoint_date = format_display_date(r.checkpoint_date)
                out.append(OrderStatusResponse(
                    order_number=r.order_number,
                    item_number=r.item_number,
                    checkpoint_date=checkpoint_date,
                    checkpoint=normalize_for_match(r.checkpoint),
                    station=normalize_for_match(r.station),
                    activity=normalize_for_match(r.activity),
                    client_name=normalize_for_match(r.client_name),
                    raw_status=normalize_for_match(r.raw_status),
                    customer_status=self.classifier.classify(r.checkpoint, r.station, r.activity),
                    estimated_delivery_date=estimated or checkpoint_date,
                ))
        except StoreError as e:
            log.error(f"Error processing order status for {order_number}: {e!r}")
            return [OrderStatusResponse.not_found(order_number)]

        log.info(f"Returning {len(out)} response(s) for order {order_number}")
        return out
