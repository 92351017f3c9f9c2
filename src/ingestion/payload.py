"""
Payload Flattening

Decoded event lines carry their event-specific fields in an embedded
``Payload`` JSON string shaped like::

    {"EventData": {"Data": [{"@Name": "TargetUserName", "#text": "alice"}, ...]}}

Flattening unions those name/value pairs with the line's top-level
attributes. Payload names win on collision and the ``Payload`` field itself
is dropped.
"""

from typing import Dict, Any, Optional
from normalization.schema import FlatRecord, loadJson


EVENT_ID_FIELD = 'EventId'
PAYLOAD_FIELD = 'Payload'


def _extractNestedField(data: Any, fieldPath: str) -> Optional[Any]:
    value = data
    for key in fieldPath.split('.'):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
        if value is None:
            return None
    return value


def _dataItemsToMap(items: Any) -> Dict[str, Any]:
    # A single Data element may be emitted as an object instead of a list
    if isinstance(items, dict):
        items = [items]
    if not isinstance(items, list):
        return {}
    
    result = {}
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get('@Name')
        if not isinstance(name, str) or not name:
            continue
        value = item.get('#text', '')
        result[name] = '' if value is None else value
    return result


def parsePayload(payload: Any) -> Dict[str, Any]:
    """
    Decode an embedded payload into name/value pairs.
    
    Best effort: anything that cannot be decoded, or does not have the
    EventData.Data shape, yields an empty mapping.
    
    Args:
        payload: Payload field value (JSON string or already-decoded mapping)
        
    Returns:
        Mapping of payload field name to value
    """
    if isinstance(payload, str):
        if not payload.strip():
            return {}
        try:
            payload = loadJson(payload)
        except ValueError:
            return {}
    
    if not isinstance(payload, dict):
        return {}
    
    items = _extractNestedField(payload, 'EventData.Data')
    if items is not None:
        return _dataItemsToMap(items)
    
    if 'EventData' in payload:
        return {}
    
    # plain name/value mapping
    return {
        key: value for key, value in payload.items()
        if not isinstance(value, (dict, list))
    }


def flattenRecord(event: Dict[str, Any]) -> FlatRecord:
    """Merge payload fields into the top-level attributes of one event."""
    flat = {key: value for key, value in event.items() if key != PAYLOAD_FIELD}
    flat.update(parsePayload(event.get(PAYLOAD_FIELD)))
    return flat
