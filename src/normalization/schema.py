# Record types and the file-naming contract shared by all stages

from typing import Any, Dict, List, Optional, Tuple, Union
from pathlib import Path
from enum import Enum
import json
import re


# One flattened event: attribute name -> JSON scalar (strings after normalization)
FlatRecord = Dict[str, Any]

GROUP_SUFFIX = '_parsed.json'

# The event-type id is the last numeric token before the suffix, so a source
# basename that itself contains '_<digits>' still parses unambiguously.
GROUP_FILE_PATTERN = re.compile(r'^(?P<source>.+)_(?P<event_id>\d+)_parsed\.json$')
CORPUS_FILE_PATTERN = re.compile(r'^(?P<event_id>\d+)_parsed\.json$')


def _rejectConstant(token: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {token}")


def loadJson(text: str) -> Any:
    """
    Decode strict JSON text.
    
    NaN and Infinity tokens are rejected, and nesting too deep to decode is
    reported as ValueError like any other malformed input.
    """
    try:
        return json.loads(text, parse_constant=_rejectConstant)
    except RecursionError as e:
        raise ValueError(f"JSON nested too deeply: {e}") from e


class ValueKind(Enum):
    NUMBER = "number"
    BOOL = "bool"
    NULL = "null"
    STRING = "string"
    OTHER = "other"


def classifyValue(value: Any) -> ValueKind:
    # bool is a subclass of int, test it first
    if isinstance(value, bool):
        return ValueKind.BOOL
    if value is None:
        return ValueKind.NULL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    return ValueKind.OTHER


def sourceBaseName(sourcePath: Union[str, Path]) -> str:
    """Basename of a decoder output file without its final extension."""
    return Path(sourcePath).stem


def groupFileName(sourcePath: Union[str, Path], eventId: int) -> str:
    return f"{sourceBaseName(sourcePath)}_{eventId}{GROUP_SUFFIX}"


def corpusFileName(eventId: int) -> str:
    return f"{eventId}{GROUP_SUFFIX}"


def parseGroupFileName(name: str) -> Optional[Tuple[str, int]]:
    """
    Split a per-file group name into (source basename, event-type id).
    
    Returns None when the name does not follow the group naming contract.
    """
    match = GROUP_FILE_PATTERN.match(name)
    if not match:
        return None
    return match.group('source'), int(match.group('event_id'))


def parseCorpusFileName(name: str) -> Optional[int]:
    match = CORPUS_FILE_PATTERN.match(name)
    if not match:
        return None
    return int(match.group('event_id'))


def readRecordArray(path: Union[str, Path]) -> List[FlatRecord]:
    """
    Read a stage file holding a JSON array of flat objects.
    
    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not a JSON array of objects
    """
    with open(path, 'r', encoding='utf-8-sig') as f:
        data = loadJson(f.read())
    
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array in {path}, got {type(data).__name__}")
    
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Element {index} of {path} is not an object")
    
    return data


def writeRecordArray(path: Union[str, Path], records: List[FlatRecord]) -> None:
    # Sorted keys keep re-runs byte-identical
    content = json.dumps(records, indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
        f.write('\n')
