"""Immutable store of hand-authored spike specs.

Documents are read once, at construction. Broken documents are logged and
skipped so one bad file cannot take the catalog down; duplicate ids keep the
first definition seen (built-in directory first, then configured dirs in
order).
"""


import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from spikeforge.foundation.errors import ErrorCode, SpikeforgeError
from spikeforge.spikes.loader import SpikeLoader, iter_spec_files
from spikeforge.spikes.types import SpikeSpec

logger = logging.getLogger(__name__)

BUILTIN_DIR = Path(__file__).parent / "builtin"


class StaticSpecStore:
    """Read-only mapping of spike id to hand-authored spec."""

    def __init__(self, specs: Mapping[str, SpikeSpec] | None = None) -> None:
        self._specs: Mapping[str, SpikeSpec] = MappingProxyType(dict(specs or {}))
        self._sorted_ids: tuple[str, ...] = tuple(sorted(self._specs))

    @classmethod
    def load(cls, dirs: Iterable[Path | str], loader: SpikeLoader | None = None) -> "StaticSpecStore":
        """Load every spike document found in ``dirs``."""
        loader = loader or SpikeLoader()
        specs: dict[str, SpikeSpec] = {}

        for directory in dirs:
            directory = Path(directory).expanduser()
            if not directory.is_dir():
                logger.debug("Spike directory %s does not exist, skipping", directory)
                continue

            for path in iter_spec_files(directory):
                try:
                    spec = loader.load(path)
                except SpikeforgeError as e:
                    logger.warning("Skipping spike document %s: %s", path, e.message)
                    continue

                if spec.id in specs:
                    duplicate = SpikeforgeError(
                        ErrorCode.DUPLICATE_SPIKE_ID,
                        {"spike": spec.id, "path": str(path)},
                    )
                    logger.warning("%s Keeping %s", duplicate.message, specs[spec.id].source)
                    continue
                specs[spec.id] = spec

        logger.debug("Loaded %d static spikes", len(specs))
        return cls(specs)

    @classmethod
    def from_config(cls, spec_dirs: Iterable[str] = (), include_builtin: bool = True) -> "StaticSpecStore":
        dirs: list[Path | str] = [BUILTIN_DIR] if include_builtin else []
        dirs.extend(spec_dirs)
        return cls.load(dirs)

    def get(self, spike_id: str) -> SpikeSpec | None:
        return self._specs.get(spike_id)

    def __contains__(self, spike_id: object) -> bool:
        return spike_id in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[str]:
        return iter(self._sorted_ids)

    @property
    def ids(self) -> tuple[str, ...]:
        """All ids in sorted order."""
        return self._sorted_ids

    @property
    def specs(self) -> Mapping[str, SpikeSpec]:
        return self._specs
