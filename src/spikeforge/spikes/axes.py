"""Generation axes and the generated identifier codec.

A generated spike is named by one value from each of four closed axes:

    gen-<library>-<pattern>-<style>-<language>

Pattern, style and language values never contain '-', so an identifier is
parsed from the right and the remaining prefix is the library (which may).
The value sets are versioned together through AXES_VERSION; changing any
set changes the identity space.
"""


from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

AXES_VERSION = "2"
GEN_PREFIX = "gen-"


class AxisKind(Enum):
    """The four axes, in identifier order."""

    LIBRARY = "library"
    PATTERN = "pattern"
    STYLE = "style"
    LANGUAGE = "language"


# Library value -> category. The category doubles as a discovery tag.
LIBRARY_CATEGORIES: MappingProxyType[str, str] = MappingProxyType({
    # Frontend frameworks
    "react": "frontend", "vue": "frontend", "svelte": "frontend",
    "angular": "frontend", "solid": "frontend", "qwik": "frontend",
    "nextjs": "frontend", "nuxt": "frontend", "remix": "frontend",
    "astro": "frontend",
    # Server frameworks
    "express": "backend", "fastify": "backend", "koa": "backend",
    "hapi": "backend", "nestjs": "backend", "deno-fresh": "backend",
    "bun-elysia": "backend", "sails": "backend", "adonis": "backend",
    "feathers": "backend", "fastapi": "backend", "django": "backend",
    "flask": "backend", "gin": "backend", "actix": "backend",
    "spring-boot": "backend", "ktor": "backend", "rails": "backend",
    # API layers
    "graphql": "api", "apollo": "api", "urql": "api", "relay": "api",
    "graphql-yoga": "api", "openapi": "api", "swagger": "api",
    "trpc": "api", "hono": "api", "elysia": "api", "grpc": "api",
    # Data
    "prisma": "database", "mongoose": "database", "sequelize": "database",
    "typeorm": "database", "drizzle": "database", "knex": "database",
    "postgres": "database", "mysql": "database", "sqlite": "database",
    "neo4j": "database", "sqlalchemy": "database", "mongodb": "database",
    # Messaging and queues
    "redis": "messaging", "bullmq": "messaging", "kafka": "messaging",
    "rabbitmq": "messaging", "nats": "messaging", "sqs": "messaging",
    "sns": "messaging", "pubsub": "messaging", "kinesis": "messaging",
    "activemq": "messaging", "celery": "messaging",
    # Tooling
    "jest": "tooling", "vitest": "tooling", "playwright": "tooling",
    "cypress": "tooling", "eslint": "tooling", "prettier": "tooling",
    "rollup": "tooling", "vite": "tooling", "webpack": "tooling",
    "tsup": "tooling", "pytest": "tooling",
    # Infrastructure
    "docker": "infra", "kubernetes": "infra", "helm": "infra",
    "terraform": "infra", "pulumi": "infra", "ansible": "infra",
    "serverless": "infra", "aws-lambda": "infra",
    "gcp-cloud-functions": "infra", "azure-functions": "infra",
    "github-actions": "infra",
    # Identity
    "auth0": "auth", "passport": "auth", "next-auth": "auth",
    "keycloak": "auth", "firebase-auth": "auth", "cognito": "auth",
    "supabase-auth": "auth", "clerk": "auth", "lucia": "auth",
    "ory": "auth", "jsonwebtoken": "auth",
    # AI
    "openai": "ai", "anthropic": "ai", "langchain": "ai",
    "llamaindex": "ai", "transformers": "ai", "whisper": "ai",
    "weaviate": "ai", "pinecone": "ai", "milvus": "ai", "qdrant": "ai",
    # Payments
    "stripe": "payments", "paddle": "payments", "paypal": "payments",
    "braintree": "payments",
    # Search
    "elasticsearch": "search", "opensearch": "search",
    "meilisearch": "search", "typesense": "search", "algolia": "search",
    # Storage
    "s3": "storage", "gcs": "storage", "azure-blob": "storage",
    "minio": "storage", "cloudinary": "storage", "uploadthing": "storage",
    # Monitoring
    "sentry": "monitoring", "posthog": "monitoring", "datadog": "monitoring",
    "newrelic": "monitoring", "prometheus": "monitoring", "pino": "monitoring",
    "winston": "monitoring", "opentelemetry": "monitoring",
})

LIBRARIES: tuple[str, ...] = tuple(LIBRARY_CATEGORIES)

PATTERNS: tuple[str, ...] = (
    "minimal", "init", "config", "route", "controller", "service", "client",
    "crud", "webhook", "job", "middleware", "adapter", "listener", "worker",
    "schema", "auth", "cache",
)

STYLES: tuple[str, ...] = ("basic", "typed", "advanced", "secure", "testing")

LANGUAGES: tuple[str, ...] = ("ts", "js", "py", "go", "rs", "kt", "java", "rb")


@dataclass(frozen=True, slots=True)
class GenerationAxis:
    """One closed, ordered value set."""

    kind: AxisKind
    values: tuple[str, ...]
    version: str = AXES_VERSION

    def __contains__(self, value: object) -> bool:
        return value in self.values

    def __len__(self) -> int:
        return len(self.values)

    def select(self, wanted: Iterable[str] | None) -> tuple[str, ...]:
        """Narrow to the requested values, keeping axis order.

        None means the whole axis. Values outside the axis are dropped.
        """
        if wanted is None:
            return self.values
        wanted_set = {w.lower() for w in wanted}
        return tuple(v for v in self.values if v in wanted_set)


AXES: tuple[GenerationAxis, ...] = (
    GenerationAxis(AxisKind.LIBRARY, LIBRARIES),
    GenerationAxis(AxisKind.PATTERN, PATTERNS),
    GenerationAxis(AxisKind.STYLE, STYLES),
    GenerationAxis(AxisKind.LANGUAGE, LANGUAGES),
)

AXES_BY_KIND: MappingProxyType[AxisKind, GenerationAxis] = MappingProxyType(
    {axis.kind: axis for axis in AXES}
)


@dataclass(frozen=True, slots=True)
class AxisTuple:
    """A point in the generation space."""

    library: str
    pattern: str
    style: str
    language: str

    @property
    def id(self) -> str:
        return format_generated_id(self.library, self.pattern, self.style, self.language)

    @property
    def category(self) -> str:
        return LIBRARY_CATEGORIES.get(self.library, "misc")


def is_generated_id(spike_id: str) -> bool:
    return spike_id.startswith(GEN_PREFIX)


def format_generated_id(library: str, pattern: str, style: str, language: str) -> str:
    return f"{GEN_PREFIX}{library}-{pattern}-{style}-{language}"


def split_generated_id(spike_id: str) -> AxisTuple | None:
    """Split an id into its four parts without checking the value sets."""
    if not is_generated_id(spike_id):
        return None
    parts = spike_id[len(GEN_PREFIX):].rsplit("-", 3)
    if len(parts) != 4 or not all(parts):
        return None
    return AxisTuple(*parts)


def parse_generated_id(spike_id: str) -> AxisTuple | None:
    """Parse a generated id; None unless every part is a known axis value."""
    parsed = split_generated_id(spike_id)
    if parsed is None:
        return None
    if (
        parsed.library in LIBRARY_CATEGORIES
        and parsed.pattern in AXES_BY_KIND[AxisKind.PATTERN]
        and parsed.style in AXES_BY_KIND[AxisKind.STYLE]
        and parsed.language in AXES_BY_KIND[AxisKind.LANGUAGE]
    ):
        return parsed
    return None


def axis_kinds_for(value: str) -> list[AxisKind]:
    """Axes on which ``value`` is a member (a word can name more than one)."""
    return [axis.kind for axis in AXES if value in axis]


def space_size() -> int:
    size = 1
    for axis in AXES:
        size *= len(axis)
    return size


# Common spellings of language axis values.
LANGUAGE_ALIASES: MappingProxyType[str, str] = MappingProxyType({
    "typescript": "ts",
    "javascript": "js",
    "python": "py",
    "golang": "go",
    "rust": "rs",
    "kotlin": "kt",
    "ruby": "rb",
})


def canonical_language(value: str) -> str:
    """Map a language spelling onto its axis value (unknown words pass through)."""
    lowered = value.lower()
    return LANGUAGE_ALIASES.get(lowered, lowered)
