# Logging setup for the aggregation pipeline
# Every record carries a ``stage`` attribute so stage workers can be told
# apart when their output interleaves.

import logging
import sys
from pathlib import Path
from typing import Dict, Any
import json
from datetime import datetime, timezone


NO_STAGE = '-'


class StageFilter(logging.Filter):
    
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'stage'):
            record.stage = NO_STAGE
        return True


class JSONFormatter(logging.Formatter):
    
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'stage': getattr(record, 'stage', NO_STAGE),
            'logger': record.name,
            'message': record.getMessage(),
            'thread': record.threadName
        }
        
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        
        return json.dumps(log_data, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    
    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(stage)s] %(name)s %(levelname)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def _buildHandler(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.addFilter(StageFilter())
    return handler


def setup_logging(config: Dict[str, Any]) -> None:
    logging_config = config.get('logging', {})
    
    log_level = str(logging_config.get('level', 'INFO')).upper()
    log_format = logging_config.get('format', 'text')
    log_output = logging_config.get('output', 'stdout')
    
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))
    
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    
    formatter = JSONFormatter() if log_format == 'json' else TextFormatter()
    
    if log_output in ['file', 'both']:
        log_path = Path(logging_config.get('file_path', 'logs/evtx_aggregator.log'))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_buildHandler(logging.FileHandler(log_path, encoding='utf-8'), formatter))
    
    if log_output in ['stdout', 'both']:
        root_logger.addHandler(_buildHandler(logging.StreamHandler(sys.stdout), formatter))
    
    root_logger.debug(f"Logging configured: level={log_level}, format={log_format}, output={log_output}")
