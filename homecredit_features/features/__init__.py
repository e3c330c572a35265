"""
Features Module

Applicant-level derivations and supplementary-table aggregations.
"""

from homecredit_features.features.base_transformer import BaseTransformer
from homecredit_features.features.ratios import safe_divide, replace_infinite
from homecredit_features.features.binning import assign_bins
from homecredit_features.features.encoding import CategoryEncoder
from homecredit_features.features.applicant import ApplicantFeatureDeriver
from homecredit_features.features.aggregation import (
    AGGREGATION_ORDER,
    Statistic,
    Ratio,
    StatAggregator,
    BureauAggregator,
    PreviousApplicationAggregator,
    InstallmentAggregator,
)

__all__ = [
    "BaseTransformer",
    "safe_divide",
    "replace_infinite",
    "assign_bins",
    "CategoryEncoder",
    "ApplicantFeatureDeriver",
    "AGGREGATION_ORDER",
    "Statistic",
    "Ratio",
    "StatAggregator",
    "BureauAggregator",
    "PreviousApplicationAggregator",
    "InstallmentAggregator",
]
