"""
IO Module

Output management for pipeline runs.
"""

from homecredit_features.io.output_manager import OutputManager

__all__ = [
    "OutputManager",
]
