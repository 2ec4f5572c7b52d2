"""High-level orchestration of a multi-file reconciliation run."""
from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from .config import validate_config
from .models import PairResult, ReconciliationConfig, RunSummary
from .pairing import build_file_pairs
from .reconciler import reconcile_pair
from .report import ResultWriter

LOGGER = logging.getLogger(__name__)


class SourceFolderNotFoundError(FileNotFoundError):
    """Raised when one of the source folders does not exist."""


class PairResultWriter(Protocol):
    def write_pair_results(self, result: PairResult) -> object: ...

    def write_global_summary(self, summary: RunSummary) -> object: ...


def effective_parallelism(requested: int) -> int:
    if requested > 0:
        return requested
    return os.cpu_count() or 1


def summarise_results(summary: RunSummary, results: Iterable[PairResult]) -> RunSummary:
    """Fold pair results into ``summary``; called once, after every pair joined."""

    for result in results:
        summary.total_file_pairs += 1
        summary.missing_files += int(result.file_a_missing) + int(result.file_b_missing)
        summary.total_records_in_a += result.total_in_a
        summary.total_records_in_b += result.total_in_b
        summary.total_matched += result.matched_count
        summary.total_only_in_a += result.only_in_a_count
        summary.total_only_in_b += result.only_in_b_count
        summary.total_errors += len(result.errors)
        summary.file_pair_results.append(result.summary())
    return summary


def _check_folder(folder: Path, label: str) -> None:
    if not folder.is_dir():
        raise SourceFolderNotFoundError(f"Folder {label} not found: {folder}")


def _process_pair(
    path_a: Path,
    path_b: Path,
    config: ReconciliationConfig,
    writer: PairResultWriter,
    cancel_event: threading.Event,
) -> Optional[PairResult]:
    result = reconcile_pair(path_a, path_b, config, cancel_event)
    if cancel_event.is_set():
        LOGGER.warning("Discarding results for %s vs %s: run cancelled", path_a.name, path_b.name)
        return None
    writer.write_pair_results(result)
    return result


def run_reconciliation(
    config: ReconciliationConfig,
    *,
    writer: Optional[PairResultWriter] = None,
    cancel_event: Optional[threading.Event] = None,
) -> RunSummary:
    validate_config(config)
    _check_folder(config.folder_a, "A")
    _check_folder(config.folder_b, "B")

    writer = writer or ResultWriter(config.output_folder, config.delimiter)
    cancel_event = cancel_event or threading.Event()
    started = time.perf_counter()
    summary = RunSummary(
        start_time=datetime.now(),
        folder_a=str(config.folder_a),
        folder_b=str(config.folder_b),
        comparison_mode=config.pairing_mode.value,
        match_rule=config.match_rule,
    )

    pairs = build_file_pairs(config.folder_a, config.folder_b, config.pairing_mode)
    parallelism = effective_parallelism(config.parallelism)
    LOGGER.info(
        "Reconciling %d file pairs (%s mode) with parallelism %d",
        len(pairs),
        config.pairing_mode.value,
        parallelism,
    )
    for path_a, path_b in pairs:
        LOGGER.debug("Planned pair: %s <-> %s", path_a, path_b)

    slots = threading.BoundedSemaphore(parallelism)
    futures: List[Future] = []
    with ThreadPoolExecutor(max_workers=parallelism, thread_name_prefix="recon-pair") as executor:
        for path_a, path_b in pairs:
            slots.acquire()
            if cancel_event.is_set():
                slots.release()
                LOGGER.warning("Cancellation requested; not dispatching remaining file pairs")
                break
            future = executor.submit(_process_pair, path_a, path_b, config, writer, cancel_event)
            future.add_done_callback(lambda _: slots.release())
            futures.append(future)

    results = [result for result in (future.result() for future in futures) if result is not None]
    summarise_results(summary, results)

    summary.end_time = datetime.now()
    summary.total_processing_time_ms = int((time.perf_counter() - started) * 1000)
    summary.cancelled = cancel_event.is_set()

    if summary.cancelled:
        LOGGER.warning(
            "Reconciliation cancelled after %d of %d file pairs", summary.total_file_pairs, len(pairs)
        )
        return summary

    writer.write_global_summary(summary)
    LOGGER.info(
        "Reconciliation complete: %d pairs, %d matched, %d only in A, %d only in B, %d errors in %d ms",
        summary.total_file_pairs,
        summary.total_matched,
        summary.total_only_in_a,
        summary.total_only_in_b,
        summary.total_errors,
        summary.total_processing_time_ms,
    )
    return summary
