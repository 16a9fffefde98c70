"""Bagged (multiple-instance) dataset container with binary and text formats."""

from __future__ import annotations

from bagdata.datasets import (
    BaggedDataset,
    BaggedDatasetError,
    FormatError,
    IndexOutOfRange,
    ShapeMismatch,
    TruncatedInput,
    join,
    join_all,
)

__all__ = [
    "BaggedDataset",
    "BaggedDatasetError",
    "FormatError",
    "IndexOutOfRange",
    "ShapeMismatch",
    "TruncatedInput",
    "join",
    "join_all",
]
