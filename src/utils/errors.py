# Run-level error types


class PipelineError(Exception):
    """Raised for conditions that abort the whole run."""


class DecoderError(Exception):
    """Raised when the external decoder fails for one input file."""
    
    def __init__(self, inputFile: str, message: str, output: str = ''):
        super().__init__(f"{inputFile}: {message}")
        self.inputFile = inputFile
        self.output = output
