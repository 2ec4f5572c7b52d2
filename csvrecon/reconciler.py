"""Reconciliation of a single file pair."""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from .loader import iter_records, read_headers
from .matching import RecordGroups, build_key, match_groups
from .models import PairResult, ProcessingError, ReconciliationConfig

LOGGER = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _merge_headers(headers_a: List[str], headers_b: List[str]) -> List[str]:
    merged = list(headers_a)
    for name in headers_b:
        if name not in merged:
            merged.append(name)
    return merged


def _warn_missing_fields(path: Path, headers: List[str], config: ReconciliationConfig) -> None:
    missing = [name for name in config.match_rule.fields if name not in headers]
    if missing:
        LOGGER.warning("Matching fields not found in %s: %s", path, ", ".join(missing))


def _load_side(
    path: Path,
    config: ReconciliationConfig,
    groups: RecordGroups,
    errors: List[ProcessingError],
    errors_lock: threading.Lock,
    cancel_event: Optional[threading.Event],
) -> None:
    for record in iter_records(path, config.delimiter, config.has_header, cancel_event):
        try:
            key = build_key(record, config.match_rule)
        except Exception as exc:
            LOGGER.error("Error processing line %d in %s: %s", record.line_number, path, exc)
            with errors_lock:
                errors.append(
                    ProcessingError(
                        source_file=record.source_file,
                        line_number=record.line_number,
                        message=str(exc),
                        raw_line=record.raw_line,
                    )
                )
            continue
        groups.add(key, record)


def reconcile_pair(
    path_a: Path,
    path_b: Path,
    config: ReconciliationConfig,
    cancel_event: Optional[threading.Event] = None,
) -> PairResult:
    started = time.perf_counter()
    a_missing = not path_a.is_file()
    b_missing = not path_b.is_file()

    if a_missing and b_missing:
        LOGGER.warning("Both files missing: %s and %s", path_a, path_b)
        return PairResult(
            file_a=str(path_a),
            file_b=str(path_b),
            file_a_missing=True,
            file_b_missing=True,
            processing_time_ms=_elapsed_ms(started),
        )
    if a_missing:
        LOGGER.warning("File missing in folder A: %s", path_a)
    if b_missing:
        LOGGER.warning("File missing in folder B: %s", path_b)

    headers_a = [] if a_missing else read_headers(path_a, config.delimiter, config.has_header)
    headers_b = [] if b_missing else read_headers(path_b, config.delimiter, config.has_header)
    if not a_missing:
        _warn_missing_fields(path_a, headers_a, config)
    if not b_missing:
        _warn_missing_fields(path_b, headers_b, config)

    groups_a = RecordGroups()
    groups_b = RecordGroups()
    errors: List[ProcessingError] = []
    errors_lock = threading.Lock()

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="recon-load") as executor:
        futures = []
        if not a_missing:
            futures.append(
                executor.submit(_load_side, path_a, config, groups_a, errors, errors_lock, cancel_event)
            )
        if not b_missing:
            futures.append(
                executor.submit(_load_side, path_b, config, groups_b, errors, errors_lock, cancel_event)
            )
        for future in futures:
            future.result()

    matched, only_in_a, only_in_b = match_groups(groups_a, groups_b)
    elapsed = _elapsed_ms(started)

    result = PairResult(
        file_a=str(path_a),
        file_b=str(path_b),
        file_a_missing=a_missing,
        file_b_missing=b_missing,
        total_in_a=groups_a.total(),
        total_in_b=groups_b.total(),
        matched_count=len(matched),
        only_in_a_count=len(only_in_a),
        only_in_b_count=len(only_in_b),
        matched=matched,
        only_in_a=only_in_a,
        only_in_b=only_in_b,
        errors=errors,
        processing_time_ms=elapsed,
        all_headers=_merge_headers(headers_a, headers_b),
    )

    LOGGER.info(
        "Reconciled %s vs %s: %d matched, %d only in A, %d only in B, %d errors (%d ms)",
        path_a.name,
        path_b.name,
        result.matched_count,
        result.only_in_a_count,
        result.only_in_b_count,
        len(errors),
        result.processing_time_ms,
    )
    return result
