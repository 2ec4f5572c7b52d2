"""Data models used by the reconciliation workflow."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class PairingMode(str, Enum):
    """How files from folder A are paired with files from folder B."""

    SINGLE_FILE = "SingleFile"
    ALL_FILE = "AllFile"


@dataclass(frozen=True, slots=True)
class MatchRule:
    fields: Tuple[str, ...]
    case_sensitive: bool = False
    trim: bool = True

    def as_json(self) -> dict[str, object]:
        return {
            "matchingFields": list(self.fields),
            "caseSensitive": self.case_sensitive,
            "trim": self.trim,
        }


@dataclass(frozen=True)
class ReconciliationConfig:
    """Fully validated input of a reconciliation run."""

    folder_a: Path
    folder_b: Path
    match_rule: MatchRule
    output_folder: Path = Path(".")
    delimiter: str = ","
    has_header: bool = True
    pairing_mode: PairingMode = PairingMode.SINGLE_FILE
    parallelism: int = 0


@dataclass(frozen=True, slots=True, eq=False)
class Record:
    source_file: str
    line_number: int
    raw_line: str
    fields: Dict[str, str]


@dataclass(frozen=True, slots=True)
class MatchedPair:
    key: str
    record_a: Record
    record_b: Record


@dataclass(frozen=True, slots=True)
class ProcessingError:
    source_file: str
    line_number: int
    message: str
    raw_line: str


@dataclass(frozen=True, slots=True)
class PairSummary:
    file_a: str
    file_b: str
    file_a_missing: bool
    file_b_missing: bool
    total_in_a: int
    total_in_b: int
    matched: int
    only_in_a: int
    only_in_b: int
    errors: int
    processing_time_ms: int

    def as_json(self) -> dict[str, object]:
        return {
            "fileA": self.file_a,
            "fileB": self.file_b,
            "fileAMissing": self.file_a_missing,
            "fileBMissing": self.file_b_missing,
            "totalInA": self.total_in_a,
            "totalInB": self.total_in_b,
            "matched": self.matched,
            "onlyInA": self.only_in_a,
            "onlyInB": self.only_in_b,
            "errors": self.errors,
            "processingTimeMs": self.processing_time_ms,
        }


@dataclass(frozen=True, slots=True)
class PairResult:
    """Outcome of reconciling one file pair."""

    file_a: str
    file_b: str
    file_a_missing: bool = False
    file_b_missing: bool = False
    total_in_a: int = 0
    total_in_b: int = 0
    matched_count: int = 0
    only_in_a_count: int = 0
    only_in_b_count: int = 0
    processing_time_ms: int = 0
    matched: List[MatchedPair] = field(default_factory=list)
    only_in_a: List[Record] = field(default_factory=list)
    only_in_b: List[Record] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)
    all_headers: List[str] = field(default_factory=list)

    def summary(self) -> PairSummary:
        return PairSummary(
            file_a=self.file_a,
            file_b=self.file_b,
            file_a_missing=self.file_a_missing,
            file_b_missing=self.file_b_missing,
            total_in_a=self.total_in_a,
            total_in_b=self.total_in_b,
            matched=self.matched_count,
            only_in_a=self.only_in_a_count,
            only_in_b=self.only_in_b_count,
            errors=len(self.errors),
            processing_time_ms=self.processing_time_ms,
        )


@dataclass(slots=True)
class RunSummary:
    """Aggregate over every reconciled pair of a run."""

    start_time: datetime
    folder_a: str
    folder_b: str
    comparison_mode: str
    match_rule: MatchRule
    end_time: Optional[datetime] = None
    total_processing_time_ms: int = 0
    total_file_pairs: int = 0
    missing_files: int = 0
    total_records_in_a: int = 0
    total_records_in_b: int = 0
    total_matched: int = 0
    total_only_in_a: int = 0
    total_only_in_b: int = 0
    total_errors: int = 0
    file_pair_results: List[PairSummary] = field(default_factory=list)
    cancelled: bool = False

    def as_json(self) -> dict[str, object]:
        return {
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "totalProcessingTimeMs": self.total_processing_time_ms,
            "folderA": self.folder_a,
            "folderB": self.folder_b,
            "comparisonMode": self.comparison_mode,
            "matchingRuleConfiguration": self.match_rule.as_json(),
            "totalFilePairs": self.total_file_pairs,
            "missingFiles": self.missing_files,
            "totalRecordsInA": self.total_records_in_a,
            "totalRecordsInB": self.total_records_in_b,
            "totalMatched": self.total_matched,
            "totalOnlyInA": self.total_only_in_a,
            "totalOnlyInB": self.total_only_in_b,
            "totalErrors": self.total_errors,
            "cancelled": self.cancelled,
            "filePairResults": [pair.as_json() for pair in self.file_pair_results],
        }
