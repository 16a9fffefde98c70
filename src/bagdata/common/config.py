from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    data_dir: str
    text_sep: str
    seed: int | None
    log_level: str


def _int_or_none(v: str | None) -> int | None:
    if v is None or not v.strip():
        return None
    try:
        return int(v)
    except ValueError as e:
        raise ValueError(f"BAGDATA_SEED must be an integer, got: {v!r}") from e


def get_settings() -> Settings:
    # 로컬 개발에서는 .env가 있으면 읽고, 그 외에는 환경변수만으로 동작
    load_dotenv(override=False)

    data_dir = os.getenv("BAGDATA_DATA_DIR", "data")
    text_sep = os.getenv("BAGDATA_TEXT_SEP", ",") or ","
    seed = _int_or_none(os.getenv("BAGDATA_SEED"))
    log_level = os.getenv("BAGDATA_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"

    return Settings(
        data_dir=data_dir,
        text_sep=text_sep,
        seed=seed,
        log_level=log_level,
    )
