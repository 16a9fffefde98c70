from __future__ import annotations


class BaggedDatasetError(ValueError):
    """Base class for every failure raised by the bagged dataset layer."""


class ShapeMismatch(BaggedDatasetError):
    """Array row/column counts violate a dataset invariant."""


class IndexOutOfRange(BaggedDatasetError):
    """A bag membership index references a bag label row that does not exist."""


class FormatError(BaggedDatasetError):
    """Binary header or text rows are missing or malformed."""


class TruncatedInput(BaggedDatasetError):
    """Fewer bytes are available than the header promises."""
