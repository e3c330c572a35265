"""
Category Encoding

Integer codes for categorical fields used in interaction features. The
code book is fixed up front from a canonical label set, so train and test
always agree on the integer assigned to a label.
"""

from typing import Dict, Iterable, List

import pandas as pd

from homecredit_features.core.logger import LoggerMixin


class CategoryEncoder(LoggerMixin):
    """
    Sorted-label-to-integer code book.

    Labels are sorted and numbered from 1. Missing values and labels outside
    the code book encode as missing.

    Args:
        column: Name of the encoded column (used in log messages).
        labels: Canonical label set.
    """

    def __init__(self, column: str, labels: Iterable[str]):
        self.column = column
        self._labels: List[str] = sorted(set(labels))
        self._codes: Dict[str, int] = {label: i + 1 for i, label in enumerate(self._labels)}

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    @property
    def codes(self) -> Dict[str, int]:
        return dict(self._codes)

    def encode(self, values: pd.Series) -> pd.Series:
        """
        Encode a series of labels.

        Args:
            values: Categorical labels.

        Returns:
            Float series of codes, NaN for missing or unknown labels.
        """
        encoded = values.astype(object).map(self._codes).astype("float64")

        unknown = values.notna() & encoded.isna()
        if unknown.any():
            unknown_labels = sorted(values[unknown].astype(str).unique())
            self.logger.warning(
                "ENCODE | %s: %d row(s) with labels outside the code book: %s",
                self.column, int(unknown.sum()), unknown_labels[:10]
            )

        return encoded

    def __repr__(self) -> str:
        return f"CategoryEncoder(column={self.column!r}, n_labels={len(self._labels)})"
