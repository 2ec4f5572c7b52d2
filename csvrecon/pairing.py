"""Selection of the file pairs to reconcile."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Tuple

from .models import PairingMode

LOGGER = logging.getLogger(__name__)

CSV_SUFFIX = ".csv"

FilePair = Tuple[Path, Path]


def list_files(folder: Path) -> List[Path]:
    return sorted((entry for entry in folder.iterdir() if entry.is_file()), key=lambda p: p.name)


def list_csv_files(folder: Path) -> Dict[str, Path]:
    """Map lower-cased file name to path for every ``*.csv`` file in ``folder``."""

    return {
        path.name.lower(): path
        for path in list_files(folder)
        if path.suffix.lower() == CSV_SUFFIX
    }


def _pair_by_name(folder_a: Path, folder_b: Path) -> List[FilePair]:
    files_a = list_csv_files(folder_a)
    files_b = list_csv_files(folder_b)

    pairs: List[FilePair] = []
    for name in sorted(set(files_a) | set(files_b)):
        path_a = files_a.get(name)
        path_b = files_b.get(name)
        if path_a is None:
            path_a = folder_a / path_b.name
        if path_b is None:
            path_b = folder_b / path_a.name
        pairs.append((path_a, path_b))
    return pairs


def _pair_all(folder_a: Path, folder_b: Path) -> List[FilePair]:
    files_b = list_files(folder_b)
    return [(path_a, path_b) for path_a in list_files(folder_a) for path_b in files_b]


def build_file_pairs(folder_a: Path, folder_b: Path, mode: PairingMode) -> List[FilePair]:
    if mode is PairingMode.SINGLE_FILE:
        pairs = _pair_by_name(folder_a, folder_b)
    elif mode is PairingMode.ALL_FILE:
        pairs = _pair_all(folder_a, folder_b)
    else:
        raise ValueError(f"Unsupported pairing mode: {mode!r}")

    LOGGER.debug("Built %d file pairs in %s mode", len(pairs), mode.value)
    return pairs
