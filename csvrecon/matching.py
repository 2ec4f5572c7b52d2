"""Match-key derivation and record matching between the two sides."""
from __future__ import annotations

import threading
from typing import Dict, Iterator, List, Tuple

from .models import MatchedPair, MatchRule, Record

# Values containing the separator can collide with a different split of
# fields, e.g. ("a|b", "c") and ("a", "b|c").
KEY_SEPARATOR = "|"


def build_key(record: Record, rule: MatchRule) -> str:
    parts = []
    for name in rule.fields:
        value = record.fields.get(name, "")
        if rule.trim:
            value = value.strip()
        if not rule.case_sensitive:
            value = value.lower()
        parts.append(value)
    return KEY_SEPARATOR.join(parts)


class RecordGroups:
    """Records of one side grouped by match key, in load order."""

    def __init__(self) -> None:
        self._groups: Dict[str, List[Record]] = {}
        self._lock = threading.Lock()

    def add(self, key: str, record: Record) -> None:
        with self._lock:
            bucket = self._groups.get(key)
            if bucket is None:
                bucket = self._groups[key] = []
            bucket.append(record)

    def get(self, key: str) -> List[Record] | None:
        return self._groups.get(key)

    def items(self) -> Iterator[Tuple[str, List[Record]]]:
        return iter(self._groups.items())

    def total(self) -> int:
        return sum(len(bucket) for bucket in self._groups.values())

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    def __len__(self) -> int:
        return len(self._groups)


def match_groups(
    side_a: RecordGroups, side_b: RecordGroups
) -> tuple[list[MatchedPair], list[Record], list[Record]]:
    """Partition both sides into matched pairs and one-sided records.

    A key present on both sides yields exactly one pair built from the first
    record loaded on each side; the remaining records under that key are not
    reported anywhere.
    """

    matched: List[MatchedPair] = []
    only_in_a: List[Record] = []
    only_in_b: List[Record] = []
    matched_keys = set()

    for key, records_a in side_a.items():
        records_b = side_b.get(key)
        if records_b:
            matched.append(MatchedPair(key=key, record_a=records_a[0], record_b=records_b[0]))
            matched_keys.add(key)
        else:
            only_in_a.extend(records_a)

    for key, records_b in side_b.items():
        if key not in matched_keys:
            only_in_b.extend(records_b)

    return matched, only_in_a, only_in_b
