"""Configuration type definitions - single source of truth for all config classes."""


from dataclasses import dataclass, field

# Short aliases that boost a canonical spike id in discovery ranking.
DEFAULT_ALIASES: dict[str, str] = {
    "next": "nextjs-minimal",
    "nextjs": "nextjs-minimal",
    "express": "express-minimal",
    "fastapi": "fastapi-minimal",
    "jwt": "jwt-auth-express",
    "ci": "github-actions-ci",
    "gha": "github-actions-ci",
    "docker": "docker-node",
    "dockerfile": "docker-node",
}


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Configuration for the spike catalog."""

    spec_dirs: tuple[str, ...] = ()
    """Extra directories holding hand-authored spike documents."""

    include_builtin: bool = True
    """Load the spikes bundled with spikeforge."""

    generated_scan_limit: int = 5000
    """Ceiling on generated identifiers enumerated in one listing call."""

    list_limit: int = 200
    """Ceiling on ids returned by listing/discovery regardless of request."""


@dataclass(frozen=True, slots=True)
class DiscoveryConfig:
    """Configuration for discovery ranking."""

    candidate_window: int = 500
    """Candidates drawn from the catalog listing before ranking."""

    alias_boost_enabled: bool = True
    """Whether alias matches boost their canonical spike."""

    alias_boost: float = 1.5
    """Raw score added to a canonical spike when its alias appears in the query."""

    aliases: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))
    """alias -> canonical spike id."""


@dataclass(frozen=True, slots=True)
class SelectionConfig:
    """Configuration for auto-selection."""

    batch_size: int = 200
    """Discovery window evaluated per auto-selection."""

    top_n: int = 5
    """Candidates kept after constraint filtering."""


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Configuration for the generated spec cache."""

    spec_cache_size: int = 128
    """Maximum generated specs kept in the LRU (0 disables caching)."""
