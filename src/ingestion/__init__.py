"""
Ingestion Module

Turns raw .evtx exports into per-file, per-event-type groups of flattened
records:

- EvtxDecoder runs the external decoder (raw .evtx -> JSON lines)
- RecordSelector filters decoded lines against the watch-list and flattens
  each record's embedded payload
"""

from .decoder import EvtxDecoder
from .selector import RecordSelector, SelectionResult
from .payload import parsePayload, flattenRecord
from .watchlist import DEFAULT_WATCHLIST, buildWatchList, isWatched

__all__ = [
    'EvtxDecoder',
    'RecordSelector',
    'SelectionResult',
    'parsePayload',
    'flattenRecord',
    'DEFAULT_WATCHLIST',
    'buildWatchList',
    'isWatched',
]
