from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bagdata.common.config import get_settings
from bagdata.datasets.bagged import BaggedDataset
from bagdata.datasets.fingerprint import sha256_file


@dataclass(frozen=True)
class DatasetSpec:
    """포맷 loader/saver에 전달되는 범용 스펙.

    - kind: 포맷 종류 (예: binary, text)
    - name: 데이터셋 표시용 이름(선택)
    - params: 포맷별 파라미터(예: path, header, sep)
    """

    kind: str
    name: str | None = None
    params: dict[str, Any] = field(default_factory=dict)
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "params": self.params,
            "note": self.note,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> DatasetSpec:
        return DatasetSpec(
            kind=str(d.get("kind") or ""),
            name=d.get("name"),
            params=dict(d.get("params") or {}),
            note=d.get("note"),
        )

    @staticmethod
    def from_json(path: str | Path) -> DatasetSpec:
        p = Path(path)
        obj = json.loads(p.read_text(encoding="utf-8"))
        if not isinstance(obj, dict):
            raise ValueError("dataset spec JSON must be an object")
        return DatasetSpec.from_dict(obj)


DatasetLoader = Callable[[DatasetSpec], BaggedDataset]
DatasetSaver = Callable[[BaggedDataset, DatasetSpec], None]


@dataclass(frozen=True)
class _Format:
    loader: DatasetLoader
    saver: DatasetSaver | None


_FORMATS: dict[str, _Format] = {}

_TEXT_SUFFIXES = {".csv", ".txt"}


def register_format(
    kind: str,
    loader: DatasetLoader,
    saver: DatasetSaver | None = None,
    *,
    overwrite: bool = False,
) -> None:
    k = kind.strip().lower()
    if not k:
        raise ValueError("kind is required")
    if (k in _FORMATS) and (not overwrite):
        raise ValueError(f"format already registered: {k}")
    _FORMATS[k] = _Format(loader=loader, saver=saver)


def list_formats() -> list[str]:
    return sorted(_FORMATS.keys())


def guess_kind(path: str | Path) -> str:
    return "text" if Path(path).suffix.lower() in _TEXT_SUFFIXES else "binary"


def _lookup(spec: DatasetSpec) -> tuple[str, _Format]:
    k = spec.kind.strip().lower()
    if not k:
        raise ValueError("spec.kind is required")
    if k not in _FORMATS:
        known = ", ".join(list_formats()) or "(none)"
        raise ValueError(f"unknown dataset kind: {k} (known: {known})")
    return k, _FORMATS[k]


def spec_path(spec: DatasetSpec, *, must_exist: bool) -> Path:
    path = spec.params.get("path")
    if not path:
        raise ValueError(f"{spec.kind} format requires params.path")
    p = Path(str(path))
    if must_exist and not p.exists():
        raise FileNotFoundError(str(p))
    return p


def text_sep(spec: DatasetSpec) -> str:
    return str(spec.params.get("sep") or get_settings().text_sep)


def spec_flag(spec: DatasetSpec, key: str, default: bool = False) -> bool:
    """params의 on/off 값을 bool로 해석 (JSON bool, 0/1, "yes"/"no" 등)."""
    v = spec.params.get(key)
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    s = str(v).strip().lower()
    if s in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def load_dataset(spec: DatasetSpec) -> BaggedDataset:
    _, fmt = _lookup(spec)
    return fmt.loader(spec)


def save_dataset(dataset: BaggedDataset, spec: DatasetSpec) -> Path:
    k, fmt = _lookup(spec)
    if fmt.saver is None:
        raise ValueError(f"dataset kind is read-only: {k}")
    p = spec_path(spec, must_exist=False)
    p.parent.mkdir(parents=True, exist_ok=True)
    fmt.saver(dataset, spec)
    return p


def describe(spec: DatasetSpec, dataset: BaggedDataset) -> dict[str, Any]:
    """재현성을 위한 메타데이터(스펙/해시/크기)."""
    meta: dict[str, Any] = {
        "dataset_kind": spec.kind.strip().lower(),
        "dataset_name": spec.name or spec.kind,
        "dataset_spec": spec.to_dict(),
        "summary": dataset.summary(),
    }
    path = spec.params.get("path")
    if path and Path(str(path)).is_file():
        meta["fingerprint"] = {"sha256": sha256_file(str(path))}
    return meta
