"""
Home Credit Feature Engineering

Config-driven pandas pipeline that derives applicant-level features, aggregates
the bureau, previous-application and installment tables, and joins everything
into model-ready train/test tables.
"""

__version__ = "1.0.0"
__author__ = "Credit Scoring Team"
