from __future__ import annotations

# built-in formats registration
from bagdata.datasets import binary_io as _binary_io  # noqa: F401
from bagdata.datasets import text_io as _text_io  # noqa: F401
from bagdata.datasets.bagged import BaggedDataset, join, join_all
from bagdata.datasets.errors import (
    BaggedDatasetError,
    FormatError,
    IndexOutOfRange,
    ShapeMismatch,
    TruncatedInput,
)
from bagdata.datasets.registry import (
    DatasetLoader,
    DatasetSaver,
    DatasetSpec,
    describe,
    guess_kind,
    list_formats,
    load_dataset,
    register_format,
    save_dataset,
)
from bagdata.datasets.text_io import read_text_matrix

__all__ = [
    "BaggedDataset",
    "BaggedDatasetError",
    "DatasetLoader",
    "DatasetSaver",
    "DatasetSpec",
    "FormatError",
    "IndexOutOfRange",
    "ShapeMismatch",
    "TruncatedInput",
    "describe",
    "guess_kind",
    "join",
    "join_all",
    "list_formats",
    "load_dataset",
    "read_text_matrix",
    "register_format",
    "save_dataset",
]
