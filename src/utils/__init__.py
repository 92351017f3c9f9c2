"""
Utilities Module

Common utilities for logging, configuration, metrics and bounded fan-out.
"""

from .config_loader import ConfigLoader, DEFAULT_CONFIG
from .logger import setup_logging
from .metrics import MetricsCollector
from .fanout import FanOutScheduler, FanOutResult
from .errors import PipelineError, DecoderError

__all__ = [
    'ConfigLoader',
    'DEFAULT_CONFIG',
    'setup_logging',
    'MetricsCollector',
    'FanOutScheduler',
    'FanOutResult',
    'PipelineError',
    'DecoderError',
]
