"""
Group Merger

Unions every per-file, per-event-type group written by the selection stage
into one corpus per event-type id. No deduplication is performed: the
corpus for a type holds exactly the sum of the per-file counts.
"""

from typing import Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field
from pathlib import Path
import logging
import threading

from normalization.schema import (
    FlatRecord,
    GROUP_SUFFIX,
    corpusFileName,
    parseGroupFileName,
    readRecordArray,
    writeRecordArray,
)
from utils.fanout import FanOutScheduler, FanOutResult
from utils.errors import PipelineError


class CorpusAccumulator:
    """
    Thread-safe collector of per-source contributions, keyed by event type.
    
    Contributions are kept per source file and assembled in sorted
    source order, so the corpus does not depend on completion order.
    """
    
    def __init__(self):
        self._lock = threading.Lock()
        self._partitions: Dict[int, Dict[str, List[FlatRecord]]] = {}
    
    def add(self, eventId: int, source: str, records: List[FlatRecord]) -> None:
        with self._lock:
            bySource = self._partitions.setdefault(eventId, {})
            bySource.setdefault(source, []).extend(records)
    
    def eventIds(self) -> List[int]:
        with self._lock:
            return sorted(self._partitions)
    
    def corpus(self, eventId: int) -> List[FlatRecord]:
        with self._lock:
            bySource = self._partitions.get(eventId, {})
            merged: List[FlatRecord] = []
            for source in sorted(bySource):
                merged.extend(bySource[source])
            return merged
    
    def counts(self) -> Dict[int, int]:
        with self._lock:
            return {
                eventId: sum(len(records) for records in bySource.values())
                for eventId, bySource in sorted(self._partitions.items())
            }


@dataclass
class MergeResult:
    countsByEventId: Dict[int, int] = field(default_factory=dict)
    outputFiles: List[str] = field(default_factory=list)
    skippedFiles: List[str] = field(default_factory=list)
    stage: Optional[FanOutResult] = None
    
    @property
    def totalMerged(self) -> int:
        return sum(self.countsByEventId.values())


class GroupMerger:
    
    def __init__(self, inputDir: Union[str, Path], outputDir: Union[str, Path], maxWorkers: int = 10):
        self.inputDir = Path(inputDir)
        self.outputDir = Path(outputDir)
        self.scheduler = FanOutScheduler(maxWorkers, stage='merge')
        self.logger = logging.getLogger(self.__class__.__name__)
    
    def discoverGroups(self) -> List[Path]:
        if not self.inputDir.is_dir():
            raise FileNotFoundError(f"Selection output directory not found: {self.inputDir}")
        return sorted(self.inputDir.glob(f"*{GROUP_SUFFIX}"))
    
    def _loadGroup(self, path: Path, accumulator: CorpusAccumulator) -> Tuple[int, int]:
        parsed = parseGroupFileName(path.name)
        if parsed is None:
            raise ValueError(f"Unrecognised group file name: {path.name}")
        source, eventId = parsed
        
        records = readRecordArray(path)
        accumulator.add(eventId, source, records)
        return eventId, len(records)
    
    def merge(self, accumulator: Optional[CorpusAccumulator] = None) -> MergeResult:
        """
        Merge all groups in the input directory and write one corpus file
        per event type.
        
        A group that cannot be read or decoded is logged and skipped.
        
        Returns:
            MergeResult with per-type counts
        """
        accumulator = accumulator or CorpusAccumulator()
        groupFiles = self.discoverGroups()
        
        loadResult = self.scheduler.run(
            groupFiles,
            lambda path: self._loadGroup(path, accumulator),
            describe=lambda path: path.name
        )
        
        result = MergeResult(
            skippedFiles=[str(path) for path, _ in loadResult.failures],
            stage=loadResult
        )
        
        eventIds = accumulator.eventIds()
        if eventIds:
            try:
                self.outputDir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PipelineError(f"Cannot create merge output directory {self.outputDir}: {e}") from e
        
        for eventId in eventIds:
            records = accumulator.corpus(eventId)
            outputFile = self.outputDir / corpusFileName(eventId)
            try:
                writeRecordArray(outputFile, records)
            except OSError as e:
                self.logger.error(f"Error writing {outputFile}: {e}")
                continue
            
            result.countsByEventId[eventId] = len(records)
            result.outputFiles.append(str(outputFile))
        
        self.logger.info(
            f"Merge complete: {result.totalMerged} event(s) across {len(result.outputFiles)} type(s), "
            f"{len(result.skippedFiles)} group file(s) skipped"
        )
        return result
