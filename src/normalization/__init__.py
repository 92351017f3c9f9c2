"""
Normalization Module

Record types, the stage file-naming contract, and the per-corpus
transforms that run after merging.

Features:
- Tagged value kinds with exhaustive string normalization
- Host IP enrichment from the source file name
- Shared JSON array read/write helpers
"""

from .schema import ValueKind, classifyValue
from .normalizer import ValueNormalizer, normalizeValue, normalizeRecord
from .enrichment import SourceEnricher, extractIpFromSourceFile
from .stage import CorpusStage

__all__ = [
    'ValueKind',
    'classifyValue',
    'ValueNormalizer',
    'normalizeValue',
    'normalizeRecord',
    'SourceEnricher',
    'extractIpFromSourceFile',
    'CorpusStage',
]
