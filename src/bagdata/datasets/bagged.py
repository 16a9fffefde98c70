from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import IO, Any

import numpy as np

from bagdata.common.config import get_settings
from bagdata.datasets.errors import IndexOutOfRange, ShapeMismatch

logger = logging.getLogger(__name__)

FLOAT_DTYPE = np.dtype(np.float64)
# 바이너리 포맷과 맞추기 위해 인덱스는 네이티브 size_t 폭
INDEX_DTYPE = np.dtype(np.uintp)


def _frozen(arr: np.ndarray, dtype: np.dtype) -> np.ndarray:
    out = np.array(arr, dtype=dtype, order="C", copy=True)
    out.flags.writeable = False
    return out


def _as_label_matrix(labels: Any, name: str, dim: int | None) -> np.ndarray:
    arr = np.asarray(labels, dtype=FLOAT_DTYPE)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ShapeMismatch(f"{name} must be 1-D or 2-D, got ndim={arr.ndim}")
    if dim is not None and arr.shape[1] != dim:
        raise ShapeMismatch(f"{name} must have {dim} column(s), got {arr.shape[1]}")
    return arr


def _as_index_vector(indices: Any) -> np.ndarray:
    arr = np.asarray(indices)
    if arr.ndim != 1:
        raise ShapeMismatch(f"bag membership indices must be 1-D, got ndim={arr.ndim}")
    if arr.size == 0:
        return arr.astype(INDEX_DTYPE)
    if arr.dtype.kind not in "iu":
        raise TypeError(f"bag membership indices must be integers, got dtype={arr.dtype}")
    if arr.dtype.kind == "i" and bool((arr < 0).any()):
        raise IndexOutOfRange("bag membership indices must be non-negative")
    return arr.astype(INDEX_DTYPE)


class BaggedDataset:
    """Instances grouped into bags, with labels on both instances and bags.

    - instances: (N, D) float64, row-major
    - indices: (N,) bag id per instance (native size_t)
    - bag_labels: (B, bag_label_dim)
    - instance_labels: (N, instance_label_dim)

    Label widths are fixed at construction. All arrays are copied on the way in
    and exposed read-only; only the instance labels can be replaced.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(
        self,
        instances: Any,
        indices: Any,
        bag_labels: Any,
        instance_labels: Any,
        *,
        bag_label_dim: int | None = None,
        instance_label_dim: int | None = None,
    ) -> None:
        x = np.asarray(instances, dtype=FLOAT_DTYPE)
        if x.ndim != 2:
            raise ShapeMismatch(f"instances must be a 2-D matrix, got ndim={x.ndim}")
        idx = _as_index_vector(indices)
        bl = _as_label_matrix(bag_labels, "bag labels", bag_label_dim)
        il = _as_label_matrix(instance_labels, "instance labels", instance_label_dim)

        n = x.shape[0]
        if il.shape[0] != n:
            raise ShapeMismatch(
                f"Number of instance labels ({il.shape[0]}) does not match "
                f"number of instances ({n})"
            )
        if idx.shape[0] != n:
            raise ShapeMismatch(
                f"Number of bag membership indices ({idx.shape[0]}) does not match "
                f"number of instances ({n})"
            )
        if n > 0 and int(idx.max()) >= bl.shape[0]:
            raise IndexOutOfRange(
                f"Largest bag membership index ({int(idx.max())}) is not smaller than "
                f"the number of bag labels ({bl.shape[0]})"
            )

        self._instances = _frozen(x, FLOAT_DTYPE)
        self._indices = _frozen(idx, INDEX_DTYPE)
        self._bag_labels = _frozen(bl, FLOAT_DTYPE)
        self._instance_labels = _frozen(il, FLOAT_DTYPE)

    @property
    def instances(self) -> np.ndarray:
        return self._instances

    @property
    def indices(self) -> np.ndarray:
        return self._indices

    @property
    def bag_labels(self) -> np.ndarray:
        return self._bag_labels

    @property
    def instance_labels(self) -> np.ndarray:
        return self._instance_labels

    @property
    def bag_label_dim(self) -> int:
        return int(self._bag_labels.shape[1])

    @property
    def instance_label_dim(self) -> int:
        return int(self._instance_labels.shape[1])

    def number_of_bags(self) -> int:
        return int(self._bag_labels.shape[0])

    def number_of_instances(self) -> int:
        return int(self._instances.shape[0])

    def dimension(self) -> int:
        return int(self._instances.shape[1])

    def bag_sizes(self) -> np.ndarray:
        return np.bincount(
            self._indices.astype(np.intp), minlength=self.number_of_bags()
        ).astype(np.intp)

    def summary(self) -> dict[str, int]:
        """Counts in the same order as the binary header."""
        return {
            "n_instances": self.number_of_instances(),
            "n_features": self.dimension(),
            "n_bags": self.number_of_bags(),
            "bag_label_dim": self.bag_label_dim,
            "instance_label_dim": self.instance_label_dim,
        }

    def set_instance_labels(self, instance_labels: Any) -> None:
        il = _as_label_matrix(instance_labels, "instance labels", self.instance_label_dim)
        if il.shape[0] != self.number_of_instances():
            raise ShapeMismatch(
                f"Number of instance labels ({il.shape[0]}) does not match "
                f"number of instances ({self.number_of_instances()})"
            )
        self._instance_labels = _frozen(il, FLOAT_DTYPE)

    def copy(self) -> BaggedDataset:
        # 생성자를 다시 거치므로 불변식도 다시 검사된다
        return BaggedDataset(
            self._instances,
            self._indices,
            self._bag_labels,
            self._instance_labels,
            bag_label_dim=self.bag_label_dim,
            instance_label_dim=self.instance_label_dim,
        )

    @classmethod
    def random(
        cls,
        number_of_bags: int,
        bag_size: int,
        dimension: int,
        *,
        bag_label_dim: int = 1,
        instance_label_dim: int = 1,
        seed: int | None = None,
    ) -> BaggedDataset:
        """Synthetic dataset with fixed shape, for fixtures and smoke checks.

        Features and bag labels are uniform in [-1, 1), instance labels are zero,
        and instance i belongs to bag i // bag_size.
        """
        for name, v in (
            ("number_of_bags", number_of_bags),
            ("bag_size", bag_size),
            ("dimension", dimension),
            ("bag_label_dim", bag_label_dim),
            ("instance_label_dim", instance_label_dim),
        ):
            if int(v) < 0:
                raise ValueError(f"{name} must be non-negative, got {v}")

        if seed is None:
            seed = get_settings().seed
        rng = np.random.default_rng(seed)

        n = int(number_of_bags) * int(bag_size)
        instances = rng.uniform(-1.0, 1.0, size=(n, int(dimension)))
        indices = np.arange(n, dtype=np.intp) // max(int(bag_size), 1)
        bag_labels = rng.uniform(-1.0, 1.0, size=(int(number_of_bags), int(bag_label_dim)))
        instance_labels = np.zeros((n, int(instance_label_dim)), dtype=FLOAT_DTYPE)

        return cls(
            instances,
            indices,
            bag_labels,
            instance_labels,
            bag_label_dim=int(bag_label_dim),
            instance_label_dim=int(instance_label_dim),
        )

    def save(self, target: str | Path | IO[bytes]) -> None:
        from bagdata.datasets.binary_io import save

        save(self, target)

    @staticmethod
    def load(source: str | Path | IO[bytes]) -> BaggedDataset:
        from bagdata.datasets.binary_io import load

        return load(source)

    def save_text(self, target: str | Path | IO[str], *, sep: str = ",") -> None:
        from bagdata.datasets.text_io import save_text

        save_text(self, target, sep=sep)

    @staticmethod
    def load_text(
        source: str | Path | IO[str], *, header: bool = False, sep: str = ","
    ) -> BaggedDataset:
        from bagdata.datasets.text_io import load_text

        return load_text(source, header=header, sep=sep)

    def _arrays(self) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        return (self._instances, self._indices, self._bag_labels, self._instance_labels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaggedDataset):
            return NotImplemented
        return all(
            a.shape == b.shape and bool(np.array_equal(a, b))
            for a, b in zip(self._arrays(), other._arrays())
        )

    def __repr__(self) -> str:
        s = self.summary()
        inner = ", ".join(f"{k}={v}" for k, v in s.items())
        return f"BaggedDataset({inner})"

    @staticmethod
    def join(a: BaggedDataset, b: BaggedDataset) -> BaggedDataset:
        return join(a, b)


def join(a: BaggedDataset, b: BaggedDataset) -> BaggedDataset:
    """a 뒤에 b를 이어 붙인 새 데이터셋.

    b의 bag id는 a.number_of_bags()만큼 밀려서 bag label 행과의 대응이 유지된다.
    순서가 보존되므로 join(a, b) != join(b, a) 이다.
    """
    if a.dimension() != b.dimension():
        raise ShapeMismatch(
            f"cannot join datasets of different dimension: {a.dimension()} vs {b.dimension()}"
        )
    if a.bag_label_dim != b.bag_label_dim:
        raise ShapeMismatch(
            f"cannot join datasets with different bag label dims: "
            f"{a.bag_label_dim} vs {b.bag_label_dim}"
        )
    if a.instance_label_dim != b.instance_label_dim:
        raise ShapeMismatch(
            f"cannot join datasets with different instance label dims: "
            f"{a.instance_label_dim} vs {b.instance_label_dim}"
        )

    offset = np.uintp(a.number_of_bags())
    logger.debug(
        "join: %d+%d instances, %d+%d bags",
        a.number_of_instances(),
        b.number_of_instances(),
        a.number_of_bags(),
        b.number_of_bags(),
    )
    return BaggedDataset(
        np.vstack([a.instances, b.instances]),
        np.concatenate([a.indices, b.indices + offset]),
        np.vstack([a.bag_labels, b.bag_labels]),
        np.vstack([a.instance_labels, b.instance_labels]),
        bag_label_dim=a.bag_label_dim,
        instance_label_dim=a.instance_label_dim,
    )


def join_all(datasets: Iterable[BaggedDataset]) -> BaggedDataset:
    items = list(datasets)
    if not items:
        raise ValueError("join_all requires at least one dataset")
    out = items[0].copy()
    for d in items[1:]:
        out = join(out, d)
    return out
