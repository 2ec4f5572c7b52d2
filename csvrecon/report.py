"""Rendering utilities for machine-readable and human-readable outputs."""
from __future__ import annotations

import csv
import json
import logging
import re
import threading
from pathlib import Path
from typing import Iterable, List, Sequence

from .models import MatchedPair, PairResult, ProcessingError, Record, RunSummary

LOGGER = logging.getLogger(__name__)

MATCHED_FILE = "matched.csv"
ONLY_IN_A_FILE = "only-in-folderA.csv"
ONLY_IN_B_FILE = "only-in-folderB.csv"
ERRORS_FILE = "errors.csv"
PAIR_SUMMARY_FILE = "reconcile-summary.json"
GLOBAL_SUMMARY_FILE = "global-summary.json"
MARKDOWN_REPORT_FILE = "reconciliation-report.md"

ERROR_COLUMNS = ["SourceFile", "LineNumber", "Message", "RawLine"]

_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def pair_folder_name(file_a: str, file_b: str) -> str:
    path_a = Path(file_a)
    path_b = Path(file_b)
    if path_a.name.lower() == path_b.name.lower():
        name = path_a.stem
    elif path_a.stem.lower() == path_b.stem.lower():
        name = f"{path_a.name}_vs_{path_b.name}"
    else:
        name = f"{path_a.stem}_vs_{path_b.stem}"
    return _INVALID_NAME_CHARS.sub("_", name)


def write_rows(path: Path, header: Sequence[str], rows: Iterable[Sequence[str]], *, delimiter: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(
            handle,
            delimiter=delimiter,
            quotechar='"',
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\n",
        )
        writer.writerow(header)
        writer.writerows(rows)


def write_json(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def _record_values(record: Record, headers: List[str]) -> List[str]:
    return [record.fields.get(name, "") for name in headers]


def _matched_rows(pairs: Iterable[MatchedPair], headers: List[str]) -> Iterable[List[str]]:
    for pair in pairs:
        yield _record_values(pair.record_a, headers) + _record_values(pair.record_b, headers)


def _error_rows(errors: Iterable[ProcessingError]) -> Iterable[List[str]]:
    for error in errors:
        yield [error.source_file, str(error.line_number), error.message, error.raw_line]


def generate_markdown_summary(summary: RunSummary) -> str:
    lines = ["# CSV Reconciliation Report", ""]
    if summary.end_time is not None:
        lines.append(f"Generated: {summary.end_time.isoformat()}")
        lines.append("")
    lines.append("## Overview")
    lines.append("")
    lines.append(f"- Folder A: `{summary.folder_a}`")
    lines.append(f"- Folder B: `{summary.folder_b}`")
    lines.append(f"- Pairing mode: **{summary.comparison_mode}**")
    lines.append(f"- Matching fields: **{', '.join(summary.match_rule.fields)}**")
    lines.append(f"- File pairs processed: **{summary.total_file_pairs}**")
    lines.append(f"- Missing files: **{summary.missing_files}**")
    lines.append(f"- Records in A: **{summary.total_records_in_a}**")
    lines.append(f"- Records in B: **{summary.total_records_in_b}**")
    lines.append(f"- Matched: **{summary.total_matched}**")
    lines.append(f"- Only in A: **{summary.total_only_in_a}**")
    lines.append(f"- Only in B: **{summary.total_only_in_b}**")
    lines.append(f"- Errors: **{summary.total_errors}**")
    lines.append(f"- Processing time: **{summary.total_processing_time_ms} ms**")
    lines.append("")

    if summary.file_pair_results:
        lines.append("## File pairs")
        lines.append("")
        lines.append("| File A | File B | Matched | Only in A | Only in B | Errors | Time (ms) |")
        lines.append("| --- | --- | --- | --- | --- | --- | --- |")
        for pair in summary.file_pair_results:
            file_a = Path(pair.file_a).name + (" (missing)" if pair.file_a_missing else "")
            file_b = Path(pair.file_b).name + (" (missing)" if pair.file_b_missing else "")
            lines.append(
                "| {a} | {b} | {matched} | {only_a} | {only_b} | {errors} | {ms} |".format(
                    a=file_a.replace("|", "\\|"),
                    b=file_b.replace("|", "\\|"),
                    matched=pair.matched,
                    only_a=pair.only_in_a,
                    only_b=pair.only_in_b,
                    errors=pair.errors,
                    ms=pair.processing_time_ms,
                )
            )
        lines.append("")
    else:
        lines.append("No file pairs were reconciled.")

    return "\n".join(lines)


def write_markdown(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        handle.write(content)


class ResultWriter:
    """Writes pair and run artefacts below ``output_folder``."""

    def __init__(self, output_folder: Path, delimiter: str = ",") -> None:
        self.output_folder = output_folder
        self.delimiter = delimiter
        self._used_names: set[str] = set()
        self._names_lock = threading.Lock()

    def _reserve_folder(self, result: PairResult) -> Path:
        """Return an output folder no other pair of this writer has used."""

        base = pair_folder_name(result.file_a, result.file_b)
        with self._names_lock:
            name = base
            suffix = 2
            # compared case-insensitively for case-insensitive file systems
            while name.lower() in self._used_names:
                name = f"{base}-{suffix}"
                suffix += 1
            self._used_names.add(name.lower())
        return self.output_folder / name

    def write_pair_results(self, result: PairResult) -> Path:
        pair_folder = self._reserve_folder(result)
        pair_folder.mkdir(parents=True, exist_ok=True)
        headers = result.all_headers

        if result.matched:
            write_rows(
                pair_folder / MATCHED_FILE,
                [f"A_{name}" for name in headers] + [f"B_{name}" for name in headers],
                _matched_rows(result.matched, headers),
                delimiter=self.delimiter,
            )
        if result.only_in_a:
            write_rows(
                pair_folder / ONLY_IN_A_FILE,
                headers,
                (_record_values(record, headers) for record in result.only_in_a),
                delimiter=self.delimiter,
            )
        if result.only_in_b:
            write_rows(
                pair_folder / ONLY_IN_B_FILE,
                headers,
                (_record_values(record, headers) for record in result.only_in_b),
                delimiter=self.delimiter,
            )
        if result.errors:
            write_rows(
                pair_folder / ERRORS_FILE,
                ERROR_COLUMNS,
                _error_rows(result.errors),
                delimiter=self.delimiter,
            )

        write_json(pair_folder / PAIR_SUMMARY_FILE, result.summary().as_json())
        LOGGER.info("Wrote output files to: %s", pair_folder)
        return pair_folder

    def write_global_summary(self, summary: RunSummary) -> Path:
        summary_path = self.output_folder / GLOBAL_SUMMARY_FILE
        write_json(summary_path, summary.as_json())
        write_markdown(self.output_folder / MARKDOWN_REPORT_FILE, generate_markdown_summary(summary))
        LOGGER.info("Wrote global summary to: %s", summary_path)
        return summary_path
