"""Spikeforge - Spike template engine.

Materializes parameterized development scaffolds ("spikes") for a technology
combination and applies them onto a file tree under explicit conflict rules.
"""

from spikeforge.apply import ApplyResult, ConflictStrategy, FileStatus
from spikeforge.foundation.errors import ErrorCode, SpikeforgeError
from spikeforge.spikes.engine import SpikeEngine, get_engine, reset_engine
from spikeforge.spikes.validation import SpikeValidator, ValidationReport

__version__ = "0.1.0"

__all__ = [
    "ApplyResult",
    "ConflictStrategy",
    "ErrorCode",
    "FileStatus",
    "SpikeEngine",
    "SpikeValidator",
    "SpikeforgeError",
    "ValidationReport",
    "__version__",
    "get_engine",
    "reset_engine",
]
