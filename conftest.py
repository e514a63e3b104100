from datetime import datetime

import pytest

from models import DictionaryEntry
from services.dictionary import InMemoryDictionary


class FakeStore:
    """Stands in for TrackingStore / DictionaryStore. Records every statement."""

    def __init__(self, handler=None, ping_ok=True):
        self.calls = []
        self.handler = handler or (lambda sql, params: [])
        self.ping_ok = ping_ok

    def query(self, sql, params=()):
        self.calls.append((sql, tuple(params)))
        return self.handler(sql, tuple(params))

    def ping(self):
        return self.ping_ok


class FakeTrackingStore(FakeStore):
    """Answers the checkpoint query and the estimated-delivery query separately."""

    def __init__(self, checkpoints=(), estimated=(), error=None, estimated_error=None, ping_ok=True):
        super().__init__(ping_ok=ping_ok)
        self.checkpoints = list(checkpoints)
        self.estimated = list(estimated)
        self.error = error
        self.estimated_error = estimated_error
        self.handler = self._answer

    def _answer(self, sql, params):
        if "EstimatedDate" in sql:
            if self.estimated_error:
                raise self.estimated_error
            return self.estimated
        if self.error:
            raise self.error
        return self.checkpoints

    @property
    def checkpoint_calls(self):
        return [c for c in self.calls if "EstimatedDate" not in c[0]]

    @property
    def estimated_calls(self):
        return [c for c in self.calls if "EstimatedDate" in c[0]]


def checkpoint_row(item, when, checkpoint=None, station=None, activity=None,
                   client="ACME S.A.", status="EN PROCESO", order="112697"):
    return {
        "OrderNumber": order,
        "ItemNumber": item,
        "CheckpointDate": when,
        "CheckpointLabel": checkpoint,
        "Station": station,
        "Activity": activity,
        "ClientName": client,
        "RawStatus": status,
    }


DICTIONARY_ENTRIES = [
    DictionaryEntry("Despacho", "Almacen", "Embalaje", "READY TO SHIP"),
    DictionaryEntry("Otro", "Almacen", "Embalaje", "PACKED"),
    DictionaryEntry(None, "Almacen", None, "IN WAREHOUSE"),
    DictionaryEntry(None, "Transporte", None, "IN TRANSIT"),
    DictionaryEntry(None, None, "Entrega", "DELIVERED"),
    DictionaryEntry("Facturado", None, None, "INVOICED"),
]


@pytest.fixture
def dictionary_entries():
    return list(DICTIONARY_ENTRIES)


@pytest.fixture
def in_memory_dictionary(dictionary_entries):
    return InMemoryDictionary(dictionary_entries)


@pytest.fixture
def two_item_tracking():
    """Order 112697: item 2 is the most recent checkpoint, item 1 older."""
    return FakeTrackingStore(checkpoints=[
        checkpoint_row(2, datetime(2024, 3, 8, 9, 0), "Salida", " Transporte Norte ", "Carga"),
        checkpoint_row(1, datetime(2024, 3, 7, 15, 30), "Despacho", "almacen", "EMBALAJE "),
    ])
