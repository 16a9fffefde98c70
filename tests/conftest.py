from __future__ import annotations

import sys
from pathlib import Path

import pytest

# repo root / src 를 pytest import 경로에 강제로 추가
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
DATA = Path(__file__).resolve().parent / "data"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path):
    for k in ("BAGDATA_DATA_DIR", "BAGDATA_TEXT_SEP", "BAGDATA_SEED", "BAGDATA_LOG_LEVEL"):
        monkeypatch.delenv(k, raising=False)
    monkeypatch.setenv("BAGDATA_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture
def small_bags_path() -> Path:
    """4 bags x 1 instance, features 1..16 row-major, unsorted bag ids."""
    return DATA / "small.bags"
