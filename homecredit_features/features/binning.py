"""
Binning

Maps a continuous column onto a fixed, ordered set of labelled bands.
"""

import numpy as np
import pandas as pd

from homecredit_features.config.schema import BinningConfig


def assign_bins(values: pd.Series, bins: BinningConfig) -> pd.Series:
    """Label each value with the band it falls in.

    Bands are right-closed, ``(edge[i-1], edge[i]]``. Anything at or below
    the first edge lands in the first band, anything above the last edge in
    the open-ended top band. Missing values stay missing.

    Args:
        values: Continuous values.
        bins: Interior edges and one label per band.

    Returns:
        Ordered categorical series with every configured label as a category,
        whether or not it occurs.
    """
    edges = [-np.inf, *bins.edges, np.inf]
    numeric = pd.to_numeric(values, errors="coerce")
    return pd.cut(numeric, bins=edges, labels=bins.labels, right=True, ordered=True)
