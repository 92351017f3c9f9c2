# Bounded fan-out driver shared by every pipeline stage

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging


@dataclass
class FanOutResult:
    stage: str
    succeeded: int = 0
    failed: int = 0
    # (item, return value) pairs in submission order
    results: List[Tuple[Any, Any]] = field(default_factory=list)
    failures: List[Tuple[Any, BaseException]] = field(default_factory=list)
    
    @property
    def total(self) -> int:
        return self.succeeded + self.failed
    
    def values(self) -> List[Any]:
        return [value for _, value in self.results]
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'stage': self.stage,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'total': self.total
        }


class FanOutScheduler:
    """
    Runs a function over a collection of work items with at most
    ``maxWorkers`` items in flight.
    
    Every item is attempted exactly once. An exception raised for one item
    is logged and counted as a failure; it never cancels the other items.
    ``run`` returns only after all items have finished.
    """
    
    def __init__(self, maxWorkers: int, stage: str = 'stage'):
        if maxWorkers < 1:
            raise ValueError(f"maxWorkers must be at least 1, got {maxWorkers}")
        self.maxWorkers = maxWorkers
        self.stage = stage
        self.logger = logging.LoggerAdapter(logging.getLogger(self.__class__.__name__), {'stage': stage})
    
    def run(
        self,
        items: Iterable[Any],
        func: Callable[[Any], Any],
        describe: Optional[Callable[[Any], str]] = None
    ) -> FanOutResult:
        """
        Apply ``func`` to every item and wait for all of them.
        
        Args:
            items: Work items
            func: Per-item function; raising marks the item as failed
            describe: Optional label for log lines (defaults to str)
            
        Returns:
            FanOutResult with aggregate counts
        """
        workItems = list(items)
        describe = describe or str
        result = FanOutResult(stage=self.stage)
        
        if not workItems:
            self.logger.info("nothing to do")
            return result
        
        self.logger.info(
            f"Processing {len(workItems)} item(s) with {self.maxWorkers} worker(s)"
        )
        
        outcomes: Dict[int, Tuple[bool, Any]] = {}
        
        with ThreadPoolExecutor(max_workers=self.maxWorkers) as executor:
            futures = {
                executor.submit(func, item): index
                for index, item in enumerate(workItems)
            }
            
            for future in as_completed(futures):
                index = futures[future]
                item = workItems[index]
                try:
                    outcomes[index] = (True, future.result())
                    self.logger.debug(f"done: {describe(item)}")
                except Exception as e:
                    outcomes[index] = (False, e)
                    self.logger.error(f"failed: {describe(item)}: {e}")
        
        for index, item in enumerate(workItems):
            ok, value = outcomes[index]
            if ok:
                result.succeeded += 1
                result.results.append((item, value))
            else:
                result.failed += 1
                result.failures.append((item, value))
        
        self.logger.info(
            f"Finished. Succeeded: {result.succeeded}, Failed: {result.failed}"
        )
        return result
