from typing import Dict, Any
from collections import defaultdict
from datetime import datetime, timezone
import logging
import threading

from .fanout import FanOutResult


class MetricsCollector:
    
    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.Lock()
        self.reset()
    
    def reset(self) -> None:
        self.startTime = datetime.now(timezone.utc)
        
        self.stages: Dict[str, Dict[str, int]] = {}
        
        self.lines_read = 0
        self.lines_skipped = 0
        self.records_selected = defaultdict(int)
        self.records_merged = defaultdict(int)
        
        self.errors = defaultdict(int)
    
    def recordStage(self, result: FanOutResult) -> None:
        with self._lock:
            self.stages[result.stage] = {
                'succeeded': result.succeeded,
                'failed': result.failed
            }
            if result.failed:
                self.errors[result.stage] += result.failed
    
    def recordSelection(self, linesRead: int, linesSkipped: int, countsByEventId: Dict[int, int]) -> None:
        with self._lock:
            self.lines_read += linesRead
            self.lines_skipped += linesSkipped
            for eventId, count in countsByEventId.items():
                self.records_selected[eventId] += count
    
    def recordMerge(self, countsByEventId: Dict[int, int]) -> None:
        with self._lock:
            for eventId, count in countsByEventId.items():
                self.records_merged[eventId] += count
    
    def getMetrics(self) -> Dict[str, Any]:
        runtimeSeconds = (datetime.now(timezone.utc) - self.startTime).total_seconds()
        
        return {
            'runtimeSeconds': runtimeSeconds,
            'stages': {name: dict(tally) for name, tally in self.stages.items()},
            'selection': {
                'lines_read': self.lines_read,
                'lines_skipped': self.lines_skipped,
                'by_event_id': dict(sorted(self.records_selected.items())),
                'total': sum(self.records_selected.values())
            },
            'merge': {
                'by_event_id': dict(sorted(self.records_merged.items())),
                'total': sum(self.records_merged.values())
            },
            'errors': dict(self.errors)
        }
    
    def log_metrics(self) -> None:
        metrics = self.getMetrics()
        
        self.logger.info("=== Pipeline Metrics ===")
        self.logger.info(f"Runtime: {metrics['runtimeSeconds']:.2f} seconds")
        for name, tally in metrics['stages'].items():
            self.logger.info(f"Stage {name}: succeeded {tally['succeeded']}, failed {tally['failed']}")
        self.logger.info(f"Lines read: {metrics['selection']['lines_read']} (skipped {metrics['selection']['lines_skipped']})")
        self.logger.info(f"Records selected: {metrics['selection']['total']}")
        self.logger.info(f"Records merged: {metrics['merge']['total']}")
        
        if metrics['errors']:
            self.logger.warning(f"Errors: {metrics['errors']}")
