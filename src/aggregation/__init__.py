"""
Aggregation Module

Merges per-file event groups into one corpus per event type.
"""

from .merger import GroupMerger, CorpusAccumulator, MergeResult

__all__ = [
    'GroupMerger',
    'CorpusAccumulator',
    'MergeResult',
]
