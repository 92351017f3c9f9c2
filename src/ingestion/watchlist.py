# Event-type watch-list

from typing import Any, FrozenSet, Iterable, Optional


# Logon success/failure, logoff, account lifecycle, group membership,
# computer account changes and audit-log clear.
DEFAULT_WATCHLIST: FrozenSet[int] = frozenset([
    4624, 4625, 4634, 4647,
    4720, 4726, 4724, 4740, 4722, 4776, 4723, 4725, 4732,
    4738, 4741, 4742, 4743,
    1102,
])


def buildWatchList(eventIds: Optional[Iterable[Any]] = None) -> FrozenSet[int]:
    """
    Build an immutable watch-list.
    
    Args:
        eventIds: Configured event-type ids, or None for DEFAULT_WATCHLIST
        
    Returns:
        Frozen set of integer ids
        
    Raises:
        ValueError: If an entry is not an integer
    """
    if eventIds is None:
        return DEFAULT_WATCHLIST
    
    watched = set()
    for value in eventIds:
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise ValueError(f"Invalid event id in watch-list: {value!r}")
        try:
            watched.add(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Invalid event id in watch-list: {value!r}")
    return frozenset(watched)


def isWatched(eventId: Any, watchList: FrozenSet[int]) -> bool:
    # exact integer membership only
    if isinstance(eventId, bool) or not isinstance(eventId, int):
        return False
    return eventId in watchList
