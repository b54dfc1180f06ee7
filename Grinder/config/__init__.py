"""
Configuration modules for StripeGrinder.

This package contains the scan configuration:
- grind: ScanConfig, GRIND_CONFIG defaults, orientation tags
"""

from .grind import (
    GRIND_CONFIG,
    ORIENTATION_TAGS,
    WHOLE_GENOME_NAMES,
    ScanConfig,
    ScanConfigError,
    sorted_resolutions,
)

__all__ = [
    'GRIND_CONFIG',
    'ORIENTATION_TAGS',
    'WHOLE_GENOME_NAMES',
    'ScanConfig',
    'ScanConfigError',
    'sorted_resolutions',
]
