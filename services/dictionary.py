# services/dictionary.py
import time
from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Optional, Sequence, Tuple

from config import DICTIONARY_TABLE
from exceptions import StoreError
from models import DictionaryEntry
from logger import get_logger

log = get_logger("dictionary")

EXACT = "exact"
CONTAINS = "contains"

# Logical field -> column in the curated table
FIELD_COLUMNS = {
    "checkpoint": "checkpoint",
    "station": "estacion",
    "activity": "actividad",
}
LABEL_COLUMN = "status_cliente_2"

# Deterministic "first row" for every tier. Code-point order, NULLs last;
# _entry_sort_key mirrors this for the in-memory backend.
TIER_ORDER_SQL = (
    'ORDER BY checkpoint COLLATE "C" NULLS LAST, estacion COLLATE "C" NULLS LAST, '
    'actividad COLLATE "C" NULLS LAST, status_cliente_2 COLLATE "C" NULLS LAST'
)


@dataclass(frozen=True)
class MatchTier:
    name: str
    fields: Tuple[str, ...]
    mode: str = EXACT

    def values_for(self, inputs: Dict[str, Optional[str]]) -> Optional[Tuple[str, ...]]:
        """Input values in field order, or None when any required field is absent."""
        values = tuple(inputs.get(f) for f in self.fields)
        if any(v is None for v in values):
            return None
        return values

    def matches(self, entry: DictionaryEntry, values: Sequence[str]) -> bool:
        for field, value in zip(self.fields, values):
            stored = _norm_upper(getattr(entry, field))
            wanted = value.strip(" ").upper()
            if stored is None:
                return False
            if self.mode == EXACT:
                if stored != wanted:
                    return False
            elif not (wanted in stored or stored in wanted):
                return False
        return True


# Most specific first. Data, not SQL: both backends evaluate these.
MATCH_TIERS: Tuple[MatchTier, ...] = (
    MatchTier("checkpoint+station+activity", ("checkpoint", "station", "activity")),
    MatchTier("station+activity", ("station", "activity")),
    MatchTier("checkpoint+station", ("checkpoint", "station")),
    MatchTier("station", ("station",)),
    MatchTier("activity", ("activity",)),
    MatchTier("checkpoint", ("checkpoint",)),
    MatchTier("station~", ("station",), CONTAINS),
    MatchTier("activity~", ("activity",), CONTAINS),
    MatchTier("checkpoint~", ("checkpoint",), CONTAINS),
)


def _norm_upper(value) -> Optional[str]:
    if value is None:
        return None
    # PostgreSQL TRIM() only removes spaces
    s = str(value).strip(" ")
    return s.upper() if s else None


def _entry_sort_key(e: DictionaryEntry):
    return tuple(
        (v is None, v or "")
        for v in (e.checkpoint, e.station, e.activity, e.status_label)
    )


def _text(value) -> Optional[str]:
    return None if value is None else str(value)


# ---------------- SQL backend ----------------
def tier_condition(tier: MatchTier) -> Tuple[str, int]:
    """WHERE clause for a tier and how many times each value is bound."""
    parts = []
    for field in tier.fields:
        col = FIELD_COLUMNS[field]
        if tier.mode == EXACT:
            parts.append(f"UPPER(TRIM({col})) = UPPER(CAST(? AS TEXT))")
        else:
            parts.append(
                f"(TRIM({col}) <> '' AND ("
                f"POSITION(UPPER(CAST(? AS TEXT)) IN UPPER(TRIM({col}))) > 0 OR "
                f"POSITION(UPPER(TRIM({col})) IN UPPER(CAST(? AS TEXT))) > 0))"
            )
    per_value = 1 if tier.mode == EXACT else 2
    return "\n  AND ".join(parts), per_value


def build_tier_query(tier: MatchTier, values: Sequence[str], table: str = DICTIONARY_TABLE):
    where, per_value = tier_condition(tier)
    sql = f"""
    SELECT {LABEL_COLUMN} AS status_label
    FROM {table}
    WHERE {where}
    {TIER_ORDER_SQL}
    LIMIT 1
    """
    params: List[str] = []
    for v in values:
        params.extend([v.strip(" ")] * per_value)
    return sql, tuple(params)


class SqlDictionary:
    """Runs each tier as its own parameterized query on the dictionary store."""

    def __init__(self, store, table: str = DICTIONARY_TABLE):
        self.store = store
        self.table = table

    def lookup(self, tier: MatchTier, values: Sequence[str]) -> List[Optional[str]]:
        sql, params = build_tier_query(tier, values, self.table)
        rows = self.store.query(sql, params)
        return [_text(r.get("status_label")) for r in rows]


# ---------------- In-memory backend ----------------
class InMemoryDictionary:
    """Evaluates tiers in Python against a loaded copy of the dictionary."""

    def __init__(self, entries: Sequence[DictionaryEntry]):
        self.entries = sorted(entries, key=_entry_sort_key)

    @classmethod
    def load(cls, store) -> "InMemoryDictionary":
        return cls(list_dictionary(store))

    def lookup(self, tier: MatchTier, values: Sequence[str]) -> List[Optional[str]]:
        for e in self.entries:
            if tier.matches(e, values):
                return [e.status_label]
        return []


class RefreshingDictionary:
    """
    In-memory dictionary reloaded from the store every `max_age` seconds.
    A failed reload keeps serving the previous copy.
    """

    def __init__(self, store, max_age: int, clock=time.monotonic):
        self.store = store
        self.max_age = max_age
        self._clock = clock
        self._lock = Lock()
        self._current: Optional[InMemoryDictionary] = None
        self._loaded_at = 0.0

    def _snapshot(self) -> InMemoryDictionary:
        with self._lock:
            now = self._clock()
            if self._current is None or now - self._loaded_at >= self.max_age:
                try:
                    self._current = InMemoryDictionary.load(self.store)
                    self._loaded_at = now
                    log.info(f"Dictionary reloaded: {len(self._current.entries)} entries")
                except StoreError as e:
                    if self._current is None:
                        raise
                    # next attempt waits another max_age
                    self._loaded_at = now
                    log.error(f"Dictionary reload failed, keeping previous copy: {e}")
            return self._current

    def lookup(self, tier: MatchTier, values: Sequence[str]) -> List[Optional[str]]:
        return self._snapshot().lookup(tier, values)


# ---------------- Listing ----------------
LIST_SQL_COLUMNS = f"checkpoint, estacion, actividad, {LABEL_COLUMN}"


def list_dictionary(store, table: str = DICTIONARY_TABLE) -> List[DictionaryEntry]:
    sql = f"""
    SELECT {LIST_SQL_COLUMNS}
    FROM {table}
    ORDER BY {LABEL_COLUMN}, checkpoint, estacion, actividad
    """
    rows = store.query(sql, ())
    return [
        DictionaryEntry(
            checkpoint=_text(r.get("checkpoint")),
            station=_text(r.get("estacion")),
            activity=_text(r.get("actividad")),
            status_label=_text(r.get(LABEL_COLUMN)),
        )
        for r in rows
    ]
