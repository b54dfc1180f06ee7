"""Core modules for StripeGrinder"""

from .orientation import Orientation, Window, canonicalize_vertical
from .window_extractor import ExtractedWindow, WindowExtractor, WindowSkipped
from .feature_labeler import FeatureLabeler, LabelResult
from .scan_monitor import ScanMonitor, TaskSummary

__all__ = [
    'Orientation',
    'Window',
    'canonicalize_vertical',
    'ExtractedWindow',
    'WindowExtractor',
    'WindowSkipped',
    'FeatureLabeler',
    'LabelResult',
    'ScanMonitor',
    'TaskSummary',
]
