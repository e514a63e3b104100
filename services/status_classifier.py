# services/status_classifier.py
from typing import Optional, Sequence

from exceptions import QueryFailure
from models import IN_PROCESS
from services.dictionary import MATCH_TIERS, MatchTier
from logger import get_logger

log = get_logger("status_classifier")


def normalize_for_match(value) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s if s else None


class StatusClassifier:
    """
    Turns raw checkpoint/station/activity text into the customer-facing label.

    Tiers are tried most specific first. A tier whose inputs are missing is
    skipped; a tier that errors with QueryFailure counts as no match. The first
    non-blank label wins, otherwise IN_PROCESS.
    """

    def __init__(self, dictionary, tiers: Sequence[MatchTier] = MATCH_TIERS, default: str = IN_PROCESS):
        self.dictionary = dictionary
        self.tiers = tuple(tiers)
        self.default = default

    def classify(self, checkpoint, station, activity) -> str:
        inputs = {
            "checkpoint": normalize_for_match(checkpoint),
            "station": normalize_for_match(station),
            "activity": normalize_for_match(activity),
        }
        log.debug(
            f"Classifying checkpoint={inputs['checkpoint']!r}, "
            f"station={inputs['station']!r}, activity={inputs['activity']!r}"
        )

        for tier in self.tiers:
            values = tier.values_for(inputs)
            if values is None:
                continue

            try:
                labels = self.dictionary.lookup(tier, values)
            except QueryFailure as e:
                log.error(f"Tier {tier.name} lookup failed, skipping: {e}")
                continue

            if not labels:
                continue

            label = normalize_for_match(labels[0])
            if label:
                log.info(f"Tier {tier.name} matched {values} -> {label}")
                return label
            log.warning(f"Tier {tier.name} matched {values} with a blank label; continuing")

        log.info(f"No dictionary match for {inputs}; using {self.default}")
        return self.default
