# External EVTX decoder stage
# Converts raw .evtx exports into JSON-lines files with an external tool
# (EvtxECmd-compatible command line).

from typing import List, Optional, Union
from pathlib import Path
import logging
import subprocess

from utils.errors import DecoderError


EVTX_SUFFIX = '.evtx'


class EvtxDecoder:
    
    def __init__(self, executable: Union[str, Path], outputDir: Union[str, Path], timeout: Optional[float] = None):
        self.executable = Path(executable)
        self.outputDir = Path(outputDir)
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)
    
    def validateConfig(self) -> bool:
        if not self.executable.is_file():
            self.logger.error(f"Decoder executable not found: {self.executable}")
            return False
        return True
    
    @staticmethod
    def discoverInputs(rawDir: Union[str, Path]) -> List[Path]:
        """Find .evtx files (any case) below rawDir, sorted for stable scheduling."""
        rawDir = Path(rawDir)
        return sorted(
            path for path in rawDir.rglob('*')
            if path.is_file() and path.name.lower().endswith(EVTX_SUFFIX)
        )
    
    def outputPathFor(self, inputFile: Union[str, Path]) -> Path:
        return self.outputDir / f"{Path(inputFile).name}.json"
    
    def buildCommand(self, inputFile: Union[str, Path]) -> List[str]:
        return [
            str(self.executable),
            '-f', str(inputFile),
            '--json', str(self.outputDir),
            '--jsonf', self.outputPathFor(inputFile).name
        ]
    
    def decodeFile(self, inputFile: Union[str, Path]) -> Path:
        """
        Run the decoder for one file.
        
        Args:
            inputFile: Raw .evtx file
            
        Returns:
            Path of the JSON-lines output
            
        Raises:
            DecoderError: If the process cannot start, exits non-zero or
                produces no output file
        """
        cmd = self.buildCommand(inputFile)
        
        try:
            completed = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
                check=False
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise DecoderError(str(inputFile), f"could not run decoder: {e}") from e
        
        output = completed.stdout.decode('utf-8', errors='replace') if completed.stdout else ''
        
        if completed.returncode != 0:
            self.logger.debug(f"Decoder output for {inputFile}:\n{output}")
            raise DecoderError(str(inputFile), f"decoder exited with code {completed.returncode}", output)
        
        outputPath = self.outputPathFor(inputFile)
        if not outputPath.is_file():
            raise DecoderError(str(inputFile), f"decoder produced no output at {outputPath}", output)
        
        self.logger.info(f"Decoded {inputFile}")
        return outputPath
