"""Small generic helpers: checksums and JSON/YAML serialization."""

from spikeforge.foundation.utils.hashing import compute_hash
from spikeforge.foundation.utils.serialization import (
    load_document,
    safe_json_dumps,
    safe_json_loads,
    safe_yaml_dumps,
    safe_yaml_loads,
)

__all__ = [
    "compute_hash",
    "load_document",
    "safe_json_dumps",
    "safe_json_loads",
    "safe_yaml_dumps",
    "safe_yaml_loads",
]
