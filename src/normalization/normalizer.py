"""
Value Normalizer

Rewrites every attribute value of a corpus to its canonical string form:

- numbers: shortest round-trip decimal text, never exponent notation
- booleans: "true" / "false"
- null: ""
- strings: unchanged
- anything else (nested lists/objects): compact JSON text

Normalizing an already normalized record returns it unchanged.
"""

from typing import Any, Callable, Dict
import json
import numbers

import numpy as np

from .schema import FlatRecord, ValueKind, classifyValue
from .stage import CorpusStage


def _formatNumber(value: Any) -> str:
    if isinstance(value, numbers.Integral):
        return str(int(value))
    return np.format_float_positional(float(value), trim='-')


def _formatOther(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'), sort_keys=True)
    except (TypeError, ValueError):
        return str(value)


VALUE_FORMATTERS: Dict[ValueKind, Callable[[Any], str]] = {
    ValueKind.NUMBER: _formatNumber,
    ValueKind.BOOL: lambda value: 'true' if value else 'false',
    ValueKind.NULL: lambda value: '',
    ValueKind.STRING: lambda value: value,
    ValueKind.OTHER: _formatOther,
}


def normalizeValue(value: Any) -> str:
    return VALUE_FORMATTERS[classifyValue(value)](value)


def normalizeRecord(record: FlatRecord) -> FlatRecord:
    return {key: normalizeValue(value) for key, value in record.items()}


class ValueNormalizer(CorpusStage):
    
    stageName = 'normalize'
    
    def transformRecord(self, record: FlatRecord) -> FlatRecord:
        return normalizeRecord(record)
