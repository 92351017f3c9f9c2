"""
Source Enrichment

Derives the exporting host's IP address from the ``SourceFile`` attribute
of each record, e.g. ``C:\\logs\\192.168.1.5.evtx`` -> ``logip = 192.168.1.5``.
Records whose source name is not an IP literal are left untouched.
"""

from typing import Any, Optional
from pathlib import PureWindowsPath
import ipaddress

from .schema import FlatRecord
from .stage import CorpusStage


SOURCE_FILE_FIELD = 'SourceFile'
LOG_IP_FIELD = 'logip'
EXPORT_EXTENSION = '.evtx'


def extractIpFromSourceFile(sourceFile: Any) -> Optional[str]:
    if not isinstance(sourceFile, str) or not sourceFile:
        return None
    
    # PureWindowsPath splits on both "\" and "/"
    fileName = PureWindowsPath(sourceFile).name
    if fileName.lower().endswith(EXPORT_EXTENSION):
        fileName = fileName[:-len(EXPORT_EXTENSION)]
    
    try:
        ipaddress.ip_address(fileName)
    except ValueError:
        return None
    return fileName


class SourceEnricher(CorpusStage):
    
    stageName = 'enrich'
    
    def transformRecord(self, record: FlatRecord) -> FlatRecord:
        ip = extractIpFromSourceFile(record.get(SOURCE_FILE_FIELD))
        if ip is None:
            return record
        
        enriched = dict(record)
        enriched[LOG_IP_FIELD] = ip
        return enriched
