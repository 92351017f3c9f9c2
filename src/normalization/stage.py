# Base class for per-corpus-file record transforms

from abc import ABC, abstractmethod
from typing import List, Union
from pathlib import Path
import logging

from .schema import FlatRecord, GROUP_SUFFIX, parseCorpusFileName, readRecordArray, writeRecordArray
from utils.fanout import FanOutScheduler, FanOutResult
from utils.errors import PipelineError


class CorpusStage(ABC):
    """
    Reads every corpus file in an input directory, rewrites each record and
    writes a file of the same name to the output directory.
    
    Files are independent, so they run under a FanOutScheduler; a failing
    file is counted and never affects the others. Inputs are not modified.
    """
    
    stageName = 'stage'
    
    def __init__(self, maxWorkers: int = 10):
        self.scheduler = FanOutScheduler(maxWorkers, stage=self.stageName)
        self.logger = logging.getLogger(self.__class__.__name__)
    
    @abstractmethod
    def transformRecord(self, record: FlatRecord) -> FlatRecord:
        pass
    
    def transformRecords(self, records: List[FlatRecord]) -> List[FlatRecord]:
        return [self.transformRecord(record) for record in records]
    
    def processFile(self, inputPath: Union[str, Path], outputPath: Union[str, Path]) -> int:
        records = readRecordArray(inputPath)
        transformed = self.transformRecords(records)
        writeRecordArray(outputPath, transformed)
        return len(transformed)
    
    def run(self, inputDir: Union[str, Path], outputDir: Union[str, Path]) -> FanOutResult:
        inputDir = Path(inputDir)
        outputDir = Path(outputDir)
        
        if not inputDir.is_dir():
            raise FileNotFoundError(f"Input directory not found: {inputDir}")
        
        try:
            outputDir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PipelineError(f"Cannot create {self.stageName} output directory {outputDir}: {e}") from e
        files = sorted(
            path for path in inputDir.glob(f"*{GROUP_SUFFIX}")
            if parseCorpusFileName(path.name) is not None
        )
        
        return self.scheduler.run(
            files,
            lambda path: self.processFile(path, outputDir / path.name),
            describe=lambda path: path.name
        )
