# Record Selector
# Streams one decoder output file, keeps watched event types and writes
# one flattened group per (source file, event type).

from typing import Dict, List, FrozenSet, Optional, Tuple, Union
from dataclasses import dataclass, field
from pathlib import Path
import logging

from normalization.schema import FlatRecord, groupFileName, loadJson, writeRecordArray
from .payload import EVENT_ID_FIELD, flattenRecord
from .watchlist import DEFAULT_WATCHLIST, isWatched


@dataclass
class SelectionResult:
    sourceFile: str
    linesRead: int = 0
    linesSkipped: int = 0
    countsByEventId: Dict[int, int] = field(default_factory=dict)
    outputFiles: List[str] = field(default_factory=list)
    
    @property
    def totalSelected(self) -> int:
        return sum(self.countsByEventId.values())


class RecordSelector:
    """
    Selects watched events from JSON-lines decoder output.
    
    The watch-list is injected at construction so selection stays a pure
    function of (file content, watch-list).
    """
    
    def __init__(self, outputDir: Union[str, Path], watchList: Optional[FrozenSet[int]] = None):
        self.outputDir = Path(outputDir)
        self.watchList = frozenset(DEFAULT_WATCHLIST if watchList is None else watchList)
        self.logger = logging.getLogger(self.__class__.__name__)
    
    def selectLine(self, line: str) -> Optional[Tuple[int, FlatRecord]]:
        """
        Decode one line and flatten it if its event type is watched.
        
        Returns:
            (event-type id, flattened record), or None if the line is not selected
            
        Raises:
            ValueError: If the line is not a strict JSON object
        """
        event = loadJson(line)
        if not isinstance(event, dict):
            raise ValueError(f"Expected a JSON object, got {type(event).__name__}")
        
        eventId = event.get(EVENT_ID_FIELD)
        if not isWatched(eventId, self.watchList):
            return None
        
        return eventId, flattenRecord(event)
    
    def selectFile(self, inputFile: Union[str, Path]) -> SelectionResult:
        """
        Select and group the watched events of one decoder output file.
        
        Malformed lines are skipped. I/O errors propagate and abort only
        this file.
        
        Args:
            inputFile: JSON-lines file, optionally starting with a BOM
            
        Returns:
            SelectionResult describing what was written
        """
        inputFile = Path(inputFile)
        result = SelectionResult(sourceFile=str(inputFile))
        groups: Dict[int, List[FlatRecord]] = {}
        
        # utf-8-sig drops a leading byte-order mark
        with open(inputFile, 'r', encoding='utf-8-sig', errors='replace') as f:
            for lineNumber, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                
                result.linesRead += 1
                try:
                    selected = self.selectLine(line)
                except ValueError as e:
                    result.linesSkipped += 1
                    self.logger.debug(f"Skipping malformed line {lineNumber} in {inputFile}: {e}")
                    continue
                
                if selected is not None:
                    eventId, record = selected
                    groups.setdefault(eventId, []).append(record)
        
        if groups:
            self.outputDir.mkdir(parents=True, exist_ok=True)
        
        for eventId, records in sorted(groups.items()):
            outputFile = self.outputDir / groupFileName(inputFile, eventId)
            writeRecordArray(outputFile, records)
            result.countsByEventId[eventId] = len(records)
            result.outputFiles.append(str(outputFile))
        
        self.logger.info(
            f"Processed {inputFile.name}: {result.totalSelected} event(s) selected "
            f"from {result.linesRead} line(s), {result.linesSkipped} skipped"
        )
        return result
