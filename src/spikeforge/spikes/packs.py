"""Spike packs: named presets over the generation axes.

A pack is an include filter (and optional exclude filter) across the four
axes. It can filter an existing list of ids or be turned into an axis filter
for a lazy catalog listing.
"""


from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType

from spikeforge.spikes.axes import AXES_BY_KIND, AxisKind, split_generated_id


@dataclass(frozen=True, slots=True)
class AxisSelection:
    """Values per axis; an empty tuple leaves that axis unconstrained."""

    libraries: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    styles: tuple[str, ...] = ()
    languages: tuple[str, ...] = ()

    def values(self, kind: AxisKind) -> tuple[str, ...]:
        return {
            AxisKind.LIBRARY: self.libraries,
            AxisKind.PATTERN: self.patterns,
            AxisKind.STYLE: self.styles,
            AxisKind.LANGUAGE: self.languages,
        }[kind]


@dataclass(frozen=True, slots=True)
class SpikePack:
    """A named subset of the generated space."""

    name: str
    description: str
    include: AxisSelection = field(default_factory=AxisSelection)
    exclude: AxisSelection = field(default_factory=AxisSelection)

    def matches(self, spike_id: str) -> bool:
        parts = split_generated_id(spike_id)
        if parts is None:
            # Hand-authored ids: conservative match on the pack name
            return self.name in spike_id

        point = {
            AxisKind.LIBRARY: parts.library,
            AxisKind.PATTERN: parts.pattern,
            AxisKind.STYLE: parts.style,
            AxisKind.LANGUAGE: parts.language,
        }
        for kind, value in point.items():
            included = self.include.values(kind)
            if included and value not in included:
                return False
            if value in self.exclude.values(kind):
                return False
        return True

    def axis_filter(self) -> dict[AxisKind, tuple[str, ...]]:
        """Included values per axis, minus exclusions and unknown values."""
        result: dict[AxisKind, tuple[str, ...]] = {}
        for kind in AxisKind:
            included = self.include.values(kind)
            if not included:
                if not self.exclude.values(kind):
                    continue
                included = AXES_BY_KIND[kind].values
            excluded = set(self.exclude.values(kind))
            result[kind] = tuple(
                v for v in AXES_BY_KIND[kind].select(included) if v not in excluded
            )
        return result

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "description": self.description}


SPIKE_PACKS: MappingProxyType[str, SpikePack] = MappingProxyType({
    "nextjs-secure": SpikePack(
        name="nextjs-secure",
        description="Next.js secure setup: middleware, route and service spikes in secure/typed styles",
        include=AxisSelection(
            libraries=("nextjs",),
            patterns=("middleware", "route", "service"),
            styles=("secure", "typed"),
            languages=("ts",),
        ),
    ),
    "bun-elysia-worker": SpikePack(
        name="bun-elysia-worker",
        description="Bun + Elysia workers and listeners",
        include=AxisSelection(
            libraries=("bun-elysia", "elysia"),
            patterns=("worker", "listener"),
            styles=("typed", "testing", "basic"),
            languages=("ts",),
        ),
    ),
    "payments": SpikePack(
        name="payments",
        description="Payments and billing (Stripe, Paddle, PayPal, Braintree)",
        include=AxisSelection(
            libraries=("stripe", "paddle", "paypal", "braintree"),
            patterns=("service", "route", "webhook"),
            styles=("typed", "secure", "basic"),
            languages=("ts", "js"),
        ),
    ),
    "search": SpikePack(
        name="search",
        description="Search and full-text indexing (Elasticsearch, OpenSearch, Meilisearch, Typesense, Algolia)",
        include=AxisSelection(
            libraries=("elasticsearch", "opensearch", "meilisearch", "typesense", "algolia"),
            patterns=("client", "service", "adapter"),
            styles=("typed", "basic"),
            languages=("ts",),
        ),
    ),
    "storage": SpikePack(
        name="storage",
        description="Object storage and uploads (S3, GCS, Azure Blob, MinIO, Cloudinary, UploadThing)",
        include=AxisSelection(
            libraries=("s3", "gcs", "azure-blob", "minio", "cloudinary", "uploadthing"),
            patterns=("adapter", "service", "client", "route"),
            styles=("typed", "secure", "basic"),
            languages=("ts",),
        ),
    ),
    "monitoring": SpikePack(
        name="monitoring",
        description="Monitoring, APM and logging (Sentry, PostHog, Datadog, New Relic, Prometheus, Pino, Winston)",
        include=AxisSelection(
            libraries=("sentry", "posthog", "datadog", "newrelic", "prometheus", "pino", "winston"),
            patterns=("middleware", "service", "config", "adapter"),
            styles=("typed", "basic", "secure"),
            languages=("ts",),
        ),
    ),
    "api-backend": SpikePack(
        name="api-backend",
        description="HTTP API backends: routes, controllers and middleware across server frameworks",
        include=AxisSelection(
            libraries=("express", "fastify", "koa", "hono", "nestjs", "fastapi", "flask", "django", "gin"),
            patterns=("route", "controller", "middleware"),
            styles=("typed", "secure", "testing"),
        ),
        exclude=AxisSelection(languages=("rb", "kt", "java")),
    ),
    "ai-rag": SpikePack(
        name="ai-rag",
        description="Retrieval-augmented generation: model clients plus vector stores",
        include=AxisSelection(
            libraries=("openai", "anthropic", "langchain", "llamaindex", "weaviate", "pinecone", "milvus", "qdrant"),
            patterns=("client", "service", "adapter"),
            styles=("typed", "advanced"),
            languages=("ts", "py"),
        ),
    ),
})


def get_pack(name: str) -> SpikePack | None:
    return SPIKE_PACKS.get(name)


def list_packs() -> list[SpikePack]:
    return list(SPIKE_PACKS.values())


def filter_ids_by_pack(ids: Iterable[str], pack_name: str) -> list[str]:
    """Keep the ids that belong to a pack; an unknown pack matches nothing."""
    pack = SPIKE_PACKS.get(pack_name)
    if pack is None:
        return []
    return [spike_id for spike_id in ids if pack.matches(spike_id)]


def pack_axis_filter(pack_name: str) -> dict[AxisKind, tuple[str, ...]] | None:
    pack = SPIKE_PACKS.get(pack_name)
    return None if pack is None else pack.axis_filter()
