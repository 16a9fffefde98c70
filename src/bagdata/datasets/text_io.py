from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import IO, Any

import numpy as np
import pandas as pd

from bagdata.datasets.bagged import FLOAT_DTYPE, BaggedDataset
from bagdata.datasets.errors import FormatError, ShapeMismatch
from bagdata.datasets.registry import (
    DatasetSpec,
    register_format,
    spec_flag,
    spec_path,
    text_sep,
)

logger = logging.getLogger(__name__)


def _read_frame(
    source: str | Path | IO[str], *, sep: str, header: bool, dtype: Any
) -> pd.DataFrame:
    try:
        df = pd.read_csv(
            source,
            sep=sep,
            header=None,
            skiprows=1 if header else None,
            skip_blank_lines=True,
            dtype=dtype,
            float_precision="round_trip",
        )
    except pd.errors.EmptyDataError as e:
        raise FormatError("no rows to read") from e
    except pd.errors.ParserError as e:
        raise FormatError(f"inconsistent number of columns: {e}") from e
    except (ValueError, OverflowError) as e:
        raise FormatError(f"non-numeric field: {e}") from e

    # 행 끝의 구분자("1,0,1,")가 만드는 빈 컬럼은 버림
    if df.shape[1] > 1 and df.iloc[:, -1].isna().all():
        df = df.iloc[:, :-1]
    return df


def _check_complete(values: np.ndarray) -> np.ndarray:
    missing = np.isnan(values).any(axis=1)
    if missing.any():
        rows = (np.flatnonzero(missing) + 1).tolist()[:10]
        raise FormatError(f"missing or empty field(s) in data row(s) {rows}")
    return values


def read_text_matrix(
    source: str | Path | IO[str], *, sep: str = ",", header: bool = False
) -> np.ndarray:
    """구분자 텍스트를 float 행렬로 읽는다.

    - 빈 줄은 건너뛴다
    - 첫 번째 비어있지 않은 행의 컬럼 수가 기준이며, 다른 행이 이와 다르면 FormatError
    - 비어 있거나 숫자가 아닌 필드도 FormatError (행 끝의 구분자 하나는 허용)
    """
    df = _read_frame(source, sep=sep, header=header, dtype=FLOAT_DTYPE)
    return _check_complete(df.to_numpy(dtype=FLOAT_DTYPE))


def _bag_ids(col: pd.Series) -> np.ndarray:
    if col.isna().any():
        rows = (np.flatnonzero(col.isna().to_numpy()) + 1).tolist()[:10]
        raise FormatError(f"missing bag id in data row(s) {rows}")
    try:
        ids = pd.to_numeric(col.str.strip())
    except (ValueError, TypeError) as e:
        raise FormatError(f"bag ids must be integers: {e}") from e

    values = ids.to_numpy()
    if values.dtype.kind in "iu":
        return values
    if values.dtype.kind != "f":
        raise FormatError("bag ids must be integers")
    if not np.all(np.isfinite(values)) or not np.all(values == np.floor(values)):
        raise FormatError("bag ids must be integers")
    return values


def load_text(
    source: str | Path | IO[str], *, header: bool = False, sep: str = ","
) -> BaggedDataset:
    """Load a bagged dataset from rows of ``<bag-id>,<label>,<feature>+``.

    Bag ids may be any integers in any order; they are renumbered 0, 1, ... in
    order of first appearance. Each bag label is the mean of its instance labels.
    """
    # bag id는 문자열로 읽어 2**53 이상의 정수도 그대로 구분
    dtype = defaultdict(lambda: FLOAT_DTYPE, {0: str})
    df = _read_frame(source, sep=sep, header=header, dtype=dtype)
    n_rows, n_cols = df.shape
    if n_cols < 2:
        raise FormatError(f"expected at least 2 columns (bag, label), got {n_cols}")

    raw_ids = _bag_ids(df.iloc[:, 0])
    data = _check_complete(df.iloc[:, 1:].to_numpy(dtype=FLOAT_DTYPE))

    # 처음 등장한 순서대로 0부터 다시 번호를 매김
    codes, uniques = pd.factorize(raw_ids, sort=False)
    n_bags = len(uniques)

    instance_labels = data[:, 0]
    instances = data[:, 1:]

    sums = np.bincount(codes, weights=instance_labels, minlength=n_bags)
    sizes = np.bincount(codes, minlength=n_bags)
    bag_labels = sums / sizes

    logger.info(
        "loaded text bags: %d instances, %d features, %d bags", n_rows, n_cols - 2, n_bags
    )
    return BaggedDataset(
        instances,
        codes,
        bag_labels,
        instance_labels,
        bag_label_dim=1,
        instance_label_dim=1,
    )


def save_text(dataset: BaggedDataset, target: str | Path | IO[str], *, sep: str = ",") -> None:
    if dataset.instance_label_dim != 1:
        raise ShapeMismatch(
            f"text format supports a single instance label column, "
            f"got {dataset.instance_label_dim}"
        )

    feature_cols = [f"V{j}" for j in range(1, dataset.dimension() + 1)]
    df = pd.DataFrame(dataset.instances, columns=feature_cols)
    df.insert(0, "label", dataset.instance_labels[:, 0])
    df.insert(0, "bag", dataset.indices.astype(np.int64))

    df.to_csv(target, sep=sep, index=False, lineterminator="\n")
    logger.debug("saved text bags %s", dataset.summary())


def load_text_dataset(spec: DatasetSpec) -> BaggedDataset:
    """CSV 형태의 bag 파일을 BaggedDataset으로 로드.

    spec.params 지원 키:
      - path (required)
      - header (default: False) 첫 줄을 헤더로 보고 건너뜀
      - sep (default: BAGDATA_TEXT_SEP, 보통 ',')
    """
    p = spec_path(spec, must_exist=True)
    return load_text(p, header=spec_flag(spec, "header"), sep=text_sep(spec))


def save_text_dataset(dataset: BaggedDataset, spec: DatasetSpec) -> None:
    save_text(dataset, spec_path(spec, must_exist=False), sep=text_sep(spec))


# built-in
register_format("text", load_text_dataset, save_text_dataset, overwrite=True)
