"""
EVTX Event Aggregation Pipeline

Main orchestration module. Stages run strictly in order, each one fully
writing its output directory before the next begins:

1. Decode raw .evtx exports to JSON lines (optional, external tool)
2. Select watched event types and flatten payloads, per source file
3. Merge per-file groups into one corpus per event type
4. Normalize every value to a string
5. Enrich records with the host IP taken from the source file name
"""

import sys
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
import click

# Add src to path
sys.path.insert(0, str(Path(__file__).parent))

from utils.config_loader import ConfigLoader, deepMerge
from utils.logger import setup_logging
from utils.metrics import MetricsCollector
from utils.fanout import FanOutScheduler, FanOutResult
from utils.errors import PipelineError
from ingestion.decoder import EvtxDecoder
from ingestion.selector import RecordSelector
from ingestion.watchlist import buildWatchList
from aggregation.merger import GroupMerger
from normalization.normalizer import ValueNormalizer
from normalization.enrichment import SourceEnricher


DEFAULT_CONFIG_PATH = 'config/config.yaml'


class EventAggregationPipeline:
    """
    Main pipeline orchestrator.
    
    Coordinates:
    1. External decoding (EvtxDecoder, 4 workers)
    2. Selection (RecordSelector, 10 workers)
    3. Merging (GroupMerger)
    4. Normalization (ValueNormalizer, 10 workers)
    5. Enrichment (SourceEnricher, 10 workers)
    """
    
    def __init__(self, config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize the pipeline.
        
        Args:
            config_path: Path to configuration file, or None for defaults
            overrides: Nested settings applied on top of the loaded config
            
        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config validation fails
        """
        self.config_loader = ConfigLoader(config_path)
        self.config = self.config_loader.load()
        if overrides:
            self.config = deepMerge(self.config, overrides)
            self.config_loader.config = self.config
            if not self.config_loader.validate():
                raise ValueError("Invalid configuration overrides")
        
        setup_logging(self.config)
        self.logger = logging.getLogger(self.__class__.__name__)
        
        self.metrics = MetricsCollector()
        
        paths = self.config['paths']
        self.rawDir = Path(paths['raw_dir'])
        self.workDir = Path(paths['work_dir'])
        self.decodedDir = self.workDir / paths['decoded_dir']
        self.filteredDir = self.workDir / paths['filtered_dir']
        self.mergedDir = self.workDir / paths['merged_dir']
        self.formattedDir = self.workDir / paths['formatted_dir']
        self.finalDir = self.workDir / paths['final_dir']
        
        self.watchList = buildWatchList(self.config['selection'].get('event_ids'))
        
        executable = self.config['decoder'].get('executable')
        self.decoder = EvtxDecoder(executable, self.decodedDir) if executable else None
        
        self.selector = RecordSelector(self.filteredDir, self.watchList)
        self.merger = GroupMerger(
            self.filteredDir,
            self.mergedDir,
            maxWorkers=self.config['merge']['max_workers']
        )
        self.normalizer = ValueNormalizer(self.config['normalization']['max_workers'])
        self.enricher = SourceEnricher(self.config['enrichment']['max_workers'])
        
        self.logger.info(f"Pipeline initialized with {len(self.watchList)} watched event type(s)")
    
    def _prepareOutputRoot(self) -> None:
        try:
            self.workDir.mkdir(parents=True, exist_ok=True)
            self.decodedDir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PipelineError(f"Cannot create output root {self.workDir}: {e}") from e
    
    def decode(self) -> Optional[FanOutResult]:
        """
        Run the external decoder over every raw .evtx file.
        
        Returns:
            FanOutResult, or None when no decoder is configured
        """
        if self.decoder is None:
            self.logger.info("No decoder configured, using existing decoded files")
            return None
        
        if not self.decoder.validateConfig():
            raise PipelineError(f"Decoder executable not found: {self.decoder.executable}")
        if not self.rawDir.is_dir():
            raise PipelineError(f"Raw input directory not found: {self.rawDir}")
        
        inputs = EvtxDecoder.discoverInputs(self.rawDir)
        scheduler = FanOutScheduler(self.config['decoder']['max_workers'], stage='decode')
        result = scheduler.run(inputs, self.decoder.decodeFile, describe=lambda path: path.name)
        self.metrics.recordStage(result)
        return result
    
    def select(self, decodedFiles: List[Path]) -> FanOutResult:
        scheduler = FanOutScheduler(self.config['selection']['max_workers'], stage='select')
        result = scheduler.run(decodedFiles, self.selector.selectFile, describe=lambda path: path.name)
        
        for selection in result.values():
            self.metrics.recordSelection(
                selection.linesRead,
                selection.linesSkipped,
                selection.countsByEventId
            )
        self.metrics.recordStage(result)
        return result
    
    def run_once(self, skip_decode: bool = False) -> Dict[str, Any]:
        """
        Run every stage once.
        
        Args:
            skip_decode: Start from the decoded directory even if a decoder is configured
            
        Returns:
            Metrics dictionary for the run
            
        Raises:
            PipelineError: If the output root cannot be created or inputs are missing
        """
        self.metrics.reset()
        self.logger.info("Starting pipeline execution...")
        
        self._prepareOutputRoot()
        
        try:
            # Step 1: Decode
            decodeResult = None if skip_decode else self.decode()
            
            if decodeResult is not None:
                decodedFiles = sorted(decodeResult.values())
            else:
                decodedFiles = sorted(self.decodedDir.glob('*.json'))
            
            if not decodedFiles:
                raise PipelineError(f"No decoded JSON files found in {self.decodedDir}")
            
            # Step 2: Select
            self.logger.info(f"Step 2: Selecting events from {len(decodedFiles)} file(s)...")
            self.select(decodedFiles)
            
            # Step 3: Merge
            self.logger.info("Step 3: Merging event groups...")
            if not self.filteredDir.is_dir():
                self.logger.warning("No watched events were selected")
                return self.metrics.getMetrics()
            
            mergeResult = self.merger.merge()
            self.metrics.recordMerge(mergeResult.countsByEventId)
            if mergeResult.stage is not None:
                self.metrics.recordStage(mergeResult.stage)
            
            # Step 4: Normalize
            self.logger.info("Step 4: Normalizing values...")
            try:
                self.mergedDir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PipelineError(f"Cannot create {self.mergedDir}: {e}") from e
            self.metrics.recordStage(self.normalizer.run(self.mergedDir, self.formattedDir))
            
            # Step 5: Enrich
            self.logger.info("Step 5: Adding logip field...")
            self.metrics.recordStage(self.enricher.run(self.formattedDir, self.finalDir))
            
            self.logger.info("Pipeline execution completed")
            return self.metrics.getMetrics()
        
        finally:
            self.metrics.log_metrics()


@click.command()
@click.option(
    '--config',
    default=None,
    help=f'Path to configuration file (default: {DEFAULT_CONFIG_PATH} if present)'
)
@click.option(
    '--raw-dir',
    type=click.Path(file_okay=False),
    help='Directory holding raw .evtx exports'
)
@click.option(
    '--work-dir',
    type=click.Path(file_okay=False),
    help='Root directory for all stage outputs'
)
@click.option(
    '--decoder',
    type=click.Path(dir_okay=False),
    help='Path to the EVTX decoder executable'
)
@click.option(
    '--skip-decode',
    is_flag=True,
    help='Start from already-decoded JSON-lines files'
)
def cli(config, raw_dir, work_dir, decoder, skip_decode):
    """EVTX Event Aggregation Pipeline"""
    
    if config is None and Path(DEFAULT_CONFIG_PATH).exists():
        config = DEFAULT_CONFIG_PATH
    
    overrides: Dict[str, Any] = {}
    if raw_dir:
        overrides.setdefault('paths', {})['raw_dir'] = raw_dir
    if work_dir:
        overrides.setdefault('paths', {})['work_dir'] = work_dir
    if decoder:
        overrides.setdefault('decoder', {})['executable'] = decoder
    
    try:
        pipeline = EventAggregationPipeline(config, overrides)
        metrics = pipeline.run_once(skip_decode=skip_decode)
    
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user")
        sys.exit(0)
    except (PipelineError, FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    
    for name, tally in metrics['stages'].items():
        click.echo(f"{name}: succeeded {tally['succeeded']}, failed {tally['failed']}")
    click.echo(f"Total runtime: {metrics['runtimeSeconds']:.2f}s")


if __name__ == '__main__':
    cli()
