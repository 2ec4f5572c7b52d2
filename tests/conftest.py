import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from csvrecon.models import MatchRule, PairingMode, ReconciliationConfig


@pytest.fixture
def folders(tmp_path: Path):
    """Empty side A and side B folders plus an output folder."""

    folder_a = tmp_path / "FolderA"
    folder_b = tmp_path / "FolderB"
    folder_a.mkdir()
    folder_b.mkdir()
    return folder_a, folder_b, tmp_path / "out"


@pytest.fixture
def make_config(folders):
    folder_a, folder_b, output = folders

    def _make(
        fields=("id",),
        *,
        case_sensitive=False,
        trim=True,
        delimiter=",",
        has_header=True,
        pairing_mode=PairingMode.SINGLE_FILE,
        parallelism=2,
    ) -> ReconciliationConfig:
        return ReconciliationConfig(
            folder_a=folder_a,
            folder_b=folder_b,
            output_folder=output,
            match_rule=MatchRule(tuple(fields), case_sensitive=case_sensitive, trim=trim),
            delimiter=delimiter,
            has_header=has_header,
            pairing_mode=pairing_mode,
            parallelism=parallelism,
        )

    return _make
