"""Binary bagged-dataset format.

A one-line text header followed by four raw blocks:

    #  number of instances   number of features   ...
    N   D   B   BL   IL
    <instances N*D float64> <indices N size_t> <bag labels B*BL float64>
    <instance labels N*IL float64>

Blocks are a memory dump: native byte order, native size_t width, row-major.
Files only round-trip between hosts that agree on those (see
``bagdata.common.version.get_build_info``).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO

import numpy as np

from bagdata.datasets.bagged import FLOAT_DTYPE, INDEX_DTYPE, BaggedDataset
from bagdata.datasets.errors import FormatError, TruncatedInput
from bagdata.datasets.registry import DatasetSpec, register_format, spec_path

logger = logging.getLogger(__name__)

# 헤더가 부풀려져 있어도 한 번에 큰 버퍼를 잡지 않도록 나눠 읽음
_READ_CHUNK = 1 << 20

HEADER_COMMENT = (
    "#  number of instances"
    "   number of features"
    "   number of bags"
    "   dimension of bag label space"
    "   dimension of instances label space"
)


@contextmanager
def _stream(target: str | Path | IO[bytes], mode: str) -> Iterator[IO[bytes]]:
    if isinstance(target, (str, os.PathLike)):
        with Path(target).open(mode) as f:
            yield f
    else:
        yield target


def _read_exact(f: IO[bytes], nbytes: int) -> bytes:
    chunks: list[bytes] = []
    remaining = nbytes
    while remaining > 0:
        chunk = f.read(min(remaining, _READ_CHUNK))
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _read_header(f: IO[bytes]) -> tuple[int, int, int, int, int]:
    line = f.readline()
    while line and not line.strip():
        line = f.readline()
    if not line.lstrip().startswith(b"#"):
        raise FormatError("Missing header")

    fields = f.readline().split()
    if len(fields) != 5:
        raise FormatError(f"Error parsing header: expected 5 counts, got {len(fields)}")
    try:
        counts = tuple(int(v) for v in fields)
    except ValueError as e:
        raise FormatError(f"Error parsing header: {fields!r}") from e
    if any(c < 0 for c in counts):
        raise FormatError(f"Error parsing header: negative count in {counts}")
    n, d, b, bl, il = counts
    return n, d, b, bl, il


def _read_block(f: IO[bytes], what: str, shape: tuple[int, ...], dtype: np.dtype) -> np.ndarray:
    count = 1
    for s in shape:
        count *= s
    if count == 0:
        return np.empty(shape, dtype=dtype)
    nbytes = count * dtype.itemsize
    buf = _read_exact(f, nbytes)
    if len(buf) < nbytes:
        raise TruncatedInput(f"Could not read {what}: expected {nbytes} bytes, got {len(buf)}")
    return np.frombuffer(buf, dtype=dtype, count=count).reshape(shape)


def save(dataset: BaggedDataset, target: str | Path | IO[bytes]) -> None:
    s = dataset.summary()
    counts = "   ".join(str(v) for v in s.values())
    header = f"{HEADER_COMMENT}\n{counts}\n".encode("ascii")

    with _stream(target, "wb") as f:
        f.write(header)
        f.write(np.ascontiguousarray(dataset.instances, dtype=FLOAT_DTYPE).tobytes())
        f.write(np.ascontiguousarray(dataset.indices, dtype=INDEX_DTYPE).tobytes())
        f.write(np.ascontiguousarray(dataset.bag_labels, dtype=FLOAT_DTYPE).tobytes())
        f.write(np.ascontiguousarray(dataset.instance_labels, dtype=FLOAT_DTYPE).tobytes())

    logger.debug("saved binary bags %s", s)


def load(source: str | Path | IO[bytes]) -> BaggedDataset:
    with _stream(source, "rb") as f:
        n, d, b, bl, il = _read_header(f)
        instances = _read_block(f, "instances", (n, d), FLOAT_DTYPE)
        indices = _read_block(f, "bag membership indices", (n,), INDEX_DTYPE)
        bag_labels = _read_block(f, "bag labels", (b, bl), FLOAT_DTYPE)
        instance_labels = _read_block(f, "instance labels", (n, il), FLOAT_DTYPE)

    logger.info("loaded binary bags: %d instances, %d features, %d bags", n, d, b)
    return BaggedDataset(
        instances,
        indices,
        bag_labels,
        instance_labels,
        bag_label_dim=bl,
        instance_label_dim=il,
    )


def load_binary_dataset(spec: DatasetSpec) -> BaggedDataset:
    """spec.params 지원 키: path (required)"""
    return load(spec_path(spec, must_exist=True))


def save_binary_dataset(dataset: BaggedDataset, spec: DatasetSpec) -> None:
    save(dataset, spec_path(spec, must_exist=False))


# built-in
register_format("binary", load_binary_dataset, save_binary_dataset, overwrite=True)
