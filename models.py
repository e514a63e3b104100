#models.py
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Union, Dict, Any

NOT_FOUND = "NOT FOUND"
IN_PROCESS = "IN PROCESS"

@dataclass
class CheckpointRecord:
    order_number: str
    item_number: Optional[int] = None       # only set when the caller filtered by item
    checkpoint_date: Optional[Union[datetime, str]] = None
    checkpoint: Optional[str] = None        # nombre_usuario, free-form "what happened"
    station: Optional[str] = None
    activity: Optional[str] = None
    client_name: Optional[str] = None
    raw_status: Optional[str] = None

@dataclass
class DictionaryEntry:
    checkpoint: Optional[str]
    station: Optional[str]
    activity: Optional[str]
    status_label: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checkpoint": self.checkpoint,
            "station": self.station,
            "activity": self.activity,
            "customerStatus": self.status_label,
        }

@dataclass
class OrderStatusResponse:
    order_number: str
    item_number: Optional[int] = None
    checkpoint_date: Optional[str] = None   # DD/MM/YY
    checkpoint: Optional[str] = None
    station: Optional[str] = None
    activity: Optional[str] = None
    client_name: Optional[str] = None
    raw_status: Optional[str] = None
    customer_status: str = IN_PROCESS
    estimated_delivery_date: Optional[str] = None   # DD/MM/YY

    @classmethod
    def not_found(cls, order_number: str) -> "OrderStatusResponse":
        return cls(
            order_number=order_number,
            raw_status=NOT_FOUND,
            customer_status=NOT_FOUND,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        return {
            "orderNumber": d["order_number"],
            "itemNumber": d["item_number"],
            "checkpointDate": d["checkpoint_date"],
            "checkpoint": d["checkpoint"],
            "station": d["station"],
            "activity": d["activity"],
            "clientName": d["client_name"],
            "rawStatus": d["raw_status"],
            "customerStatus": d["customer_status"],
            "estimatedDeliveryDate": d["estimated_delivery_date"],
        }
