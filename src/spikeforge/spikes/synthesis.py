"""Content tables for generated spikes.

Generated specs are assembled from four tables:

- language profiles: file names and source stubs per language
- pattern purposes: one line of intent per pattern
- style overlays: which extra files and params a style contributes
- specialized files: hand-written extras for well-known (library, pattern) pairs

Stubs are written with ``string.Template`` placeholders ($lib, $pattern, $fn,
...) for the axis values and keep ``{{ }}`` placeholders for spike params, so
the same text goes through the spike renderer like any hand-authored spec.
"""


from collections.abc import Callable
from dataclasses import dataclass
from string import Template as _Stub

from spikeforge.spikes.axes import AxisTuple
from spikeforge.spikes.types import FileTemplate, Param, ParamType

PATTERN_PURPOSES: dict[str, str] = {
    "minimal": "smallest working setup",
    "init": "project bootstrap and wiring",
    "config": "configuration module with environment overrides",
    "route": "HTTP route handler",
    "controller": "request controller",
    "service": "service layer with a single entry point",
    "client": "typed API client",
    "crud": "create, read, update and delete operations",
    "webhook": "webhook receiver with payload checks",
    "job": "scheduled job",
    "middleware": "request middleware",
    "adapter": "adapter around the library API",
    "listener": "event listener",
    "worker": "background worker loop",
    "schema": "data schema definition",
    "auth": "sign-in and session handling",
    "cache": "caching layer with expiry",
}

STYLE_SUMMARIES: dict[str, str] = {
    "basic": "minimal",
    "typed": "with type declarations",
    "advanced": "with a richer example",
    "secure": "with input validation and an origin guard",
    "testing": "with a test file",
}


@dataclass(frozen=True, slots=True)
class LanguageProfile:
    """File layout and stubs for one language."""

    code: str
    name: str
    main: str
    types: str
    guard: str
    test: str
    snake_case: bool
    main_stub: str
    advanced_stub: str
    types_stub: str
    guard_stub: str
    test_stub: str


_TS = LanguageProfile(
    code="ts",
    name="TypeScript",
    main="index.ts",
    types="types.ts",
    guard="guard.ts",
    test="index.test.ts",
    snake_case=False,
    main_stub="""\
// $lib $pattern spike ($style)
// $purpose
export const APP_NAME = '{{app_name}}';

export function $fn(): string {
  return `use $lib for $pattern in ` + APP_NAME;
}
""",
    advanced_stub="""
export interface ${type}Options {
  retries: number;
  verbose: boolean;
}

export async function ${fn}WithRetry(opts: ${type}Options = { retries: 3, verbose: {{verbose}} }): Promise<string> {
  let lastError: unknown;
  for (let attempt = 0; attempt < opts.retries; attempt++) {
    try {
{{#if verbose}}
      console.debug('[{{app_name}}] attempt', attempt);
{{/if}}
      return $fn();
    } catch (err) {
      lastError = err;
    }
  }
  throw lastError;
}
""",
    types_stub="""\
// Types for the {{app_name}} $pattern spike
export interface ${type}Request {
  id: string;
  payload: Record<string, unknown>;
}

export interface ${type}Result {
  ok: boolean;
  message?: string;
}
""",
    guard_stub="""\
// Origin guard and input checks for {{app_name}}
const ALLOWED_ORIGINS: readonly string[] = [
{{#each allowed_origins}}
  '{{this}}',
{{/each}}
];

export function isAllowedOrigin(origin: string): boolean {
  return ALLOWED_ORIGINS.includes(origin);
}

export function requireText(value: unknown, field: string): string {
  if (typeof value !== 'string' || value.trim() === '') {
    throw new Error('invalid ' + field);
  }
  return value.trim();
}
""",
    test_stub="""\
import { $fn } from './index';

describe('$fn', () => {
  it('mentions the app name', () => {
    expect($fn()).toContain('{{app_name}}');
  });
});
""",
)

_JS = LanguageProfile(
    code="js",
    name="JavaScript",
    main="index.js",
    types="types.js",
    guard="guard.js",
    test="index.test.js",
    snake_case=False,
    main_stub="""\
// $lib $pattern spike ($style)
// $purpose
const APP_NAME = '{{app_name}}';

function $fn() {
  return 'use $lib for $pattern in ' + APP_NAME;
}

module.exports = { APP_NAME, $fn };
""",
    advanced_stub="""
async function ${fn}WithRetry(retries = 3) {
  let lastError;
  for (let attempt = 0; attempt < retries; attempt++) {
    try {
{{#if verbose}}
      console.debug('[{{app_name}}] attempt', attempt);
{{/if}}
      return $fn();
    } catch (err) {
      lastError = err;
    }
  }
  throw lastError;
}

module.exports.${fn}WithRetry = ${fn}WithRetry;
""",
    types_stub="""\
// JSDoc types for the {{app_name}} $pattern spike

/**
 * @typedef {Object} ${type}Request
 * @property {string} id
 * @property {Object<string, unknown>} payload
 */

/**
 * @typedef {Object} ${type}Result
 * @property {boolean} ok
 * @property {string} [message]
 */

module.exports = {};
""",
    guard_stub="""\
// Origin guard and input checks for {{app_name}}
const ALLOWED_ORIGINS = [
{{#each allowed_origins}}
  '{{this}}',
{{/each}}
];

function isAllowedOrigin(origin) {
  return ALLOWED_ORIGINS.includes(origin);
}

function requireText(value, field) {
  if (typeof value !== 'string' || value.trim() === '') {
    throw new Error('invalid ' + field);
  }
  return value.trim();
}

module.exports = { isAllowedOrigin, requireText };
""",
    test_stub="""\
const { $fn } = require('./index');

describe('$fn', () => {
  it('mentions the app name', () => {
    expect($fn()).toContain('{{app_name}}');
  });
});
""",
)

_PY = LanguageProfile(
    code="py",
    name="Python",
    main="main.py",
    types="models.py",
    guard="guard.py",
    test="test_main.py",
    snake_case=True,
    main_stub='''\
"""$lib $pattern spike ($style): $purpose."""

APP_NAME = "{{app_name}}"


def $fn() -> str:
    return f"use $lib for $pattern in {APP_NAME}"
''',
    advanced_stub='''

def ${fn}_with_retry(retries: int = 3) -> str:
    last_error: Exception | None = None
    for attempt in range(retries):
        try:
{{#if verbose}}
            print(f"[{APP_NAME}] attempt {attempt}")
{{/if}}
            return $fn()
        except Exception as err:
            last_error = err
    raise RuntimeError("all attempts failed") from last_error
''',
    types_stub='''\
"""Types for the {{app_name}} $pattern spike."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ${type}Request:
    id: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ${type}Result:
    ok: bool
    message: str | None = None
''',
    guard_stub='''\
"""Origin guard and input checks for {{app_name}}."""

ALLOWED_ORIGINS = frozenset({
{{#each allowed_origins}}
    "{{this}}",
{{/each}}
})


def is_allowed_origin(origin: str) -> bool:
    return origin in ALLOWED_ORIGINS


def require_text(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"invalid {field}")
    return value.strip()
''',
    test_stub='''\
from main import $fn


def test_${fn}_mentions_app_name():
    assert "{{app_name}}" in $fn()
''',
)

_GO = LanguageProfile(
    code="go",
    name="Go",
    main="main.go",
    types="types.go",
    guard="guard.go",
    test="main_test.go",
    snake_case=False,
    main_stub="""\
// $lib $pattern spike ($style): $purpose
package main

import "fmt"

const AppName = "{{app_name}}"

func $type() string {
	return fmt.Sprintf("use $lib for $pattern in %s", AppName)
}

func main() {
	fmt.Println($type())
}
""",
    advanced_stub="""
func ${type}WithRetry(retries int) (string, error) {
	var lastErr error
	for attempt := 0; attempt < retries; attempt++ {
{{#if verbose}}
		fmt.Printf("[%s] attempt %d\\n", AppName, attempt)
{{/if}}
		result := $type()
		if result != "" {
			return result, nil
		}
		lastErr = fmt.Errorf("empty result")
	}
	return "", lastErr
}
""",
    types_stub="""\
// Types for the {{app_name}} $pattern spike
package main

type ${type}Request struct {
	ID      string                 `json:"id"`
	Payload map[string]interface{} `json:"payload"`
}

type ${type}Result struct {
	OK      bool   `json:"ok"`
	Message string `json:"message,omitempty"`
}
""",
    guard_stub="""\
// Origin guard and input checks for {{app_name}}
package main

import (
	"errors"
	"strings"
)

var allowedOrigins = map[string]bool{
{{#each allowed_origins}}
	"{{this}}": true,
{{/each}}
}

func IsAllowedOrigin(origin string) bool {
	return allowedOrigins[origin]
}

func RequireText(value, field string) (string, error) {
	if strings.TrimSpace(value) == "" {
		return "", errors.New("invalid " + field)
	}
	return strings.TrimSpace(value), nil
}
""",
    test_stub="""\
package main

import (
	"strings"
	"testing"
)

func Test$type(t *testing.T) {
	if !strings.Contains($type(), "{{app_name}}") {
		t.Fatal("app name missing")
	}
}
""",
)

_RS = LanguageProfile(
    code="rs",
    name="Rust",
    main="main.rs",
    types="types.rs",
    guard="guard.rs",
    test="tests.rs",
    snake_case=True,
    main_stub="""\
// $lib $pattern spike ($style): $purpose
pub const APP_NAME: &str = "{{app_name}}";

pub fn $fn() -> String {
    format!("use $lib for $pattern in {}", APP_NAME)
}

fn main() {
    println!("{}", $fn());
}
""",
    advanced_stub="""
pub fn ${fn}_with_retry(retries: u32) -> Option<String> {
    for attempt in 0..retries {
{{#if verbose}}
        eprintln!("[{}] attempt {}", APP_NAME, attempt);
{{/if}}
        let result = $fn();
        if !result.is_empty() {
            return Some(result);
        }
    }
    None
}
""",
    types_stub="""\
// Types for the {{app_name}} $pattern spike
use std::collections::HashMap;

#[derive(Debug, Clone)]
pub struct ${type}Request {
    pub id: String,
    pub payload: HashMap<String, String>,
}

#[derive(Debug, Clone)]
pub struct ${type}Result {
    pub ok: bool,
    pub message: Option<String>,
}
""",
    guard_stub="""\
// Origin guard and input checks for {{app_name}}
const ALLOWED_ORIGINS: &[&str] = &[
{{#each allowed_origins}}
    "{{this}}",
{{/each}}
];

pub fn is_allowed_origin(origin: &str) -> bool {
    ALLOWED_ORIGINS.contains(&origin)
}

pub fn require_text(value: &str, field: &str) -> Result<String, String> {
    let trimmed = value.trim();
    if trimmed.is_empty() {
        return Err(format!("invalid {}", field));
    }
    Ok(trimmed.to_string())
}
""",
    test_stub="""\
#[cfg(test)]
mod tests {
    use super::*;

    #[test]
    fn ${fn}_mentions_app_name() {
        assert!($fn().contains("{{app_name}}"));
    }
}
""",
)

_KT = LanguageProfile(
    code="kt",
    name="Kotlin",
    main="Main.kt",
    types="Types.kt",
    guard="Guard.kt",
    test="MainTest.kt",
    snake_case=False,
    main_stub="""\
// $lib $pattern spike ($style): $purpose
const val APP_NAME = "{{app_name}}"

fun $fn(): String = "use $lib for $pattern in " + APP_NAME

fun main() {
    println($fn())
}
""",
    advanced_stub="""
fun ${fn}WithRetry(retries: Int = 3): String {
    var lastError: Exception? = null
    repeat(retries) { attempt ->
        try {
{{#if verbose}}
            println("[" + APP_NAME + "] attempt " + attempt)
{{/if}}
            return $fn()
        } catch (err: Exception) {
            lastError = err
        }
    }
    throw IllegalStateException("all attempts failed", lastError)
}
""",
    types_stub="""\
// Types for the {{app_name}} $pattern spike
data class ${type}Request(val id: String, val payload: Map<String, Any?> = emptyMap())

data class ${type}Result(val ok: Boolean, val message: String? = null)
""",
    guard_stub="""\
// Origin guard and input checks for {{app_name}}
private val allowedOrigins = setOf(
{{#each allowed_origins}}
    "{{this}}",
{{/each}}
)

fun isAllowedOrigin(origin: String): Boolean = origin in allowedOrigins

fun requireText(value: String?, field: String): String {
    require(!value.isNullOrBlank()) { "invalid " + field }
    return value.trim()
}
""",
    test_stub="""\
import kotlin.test.Test
import kotlin.test.assertTrue

class MainTest {
    @Test
    fun mentionsAppName() {
        assertTrue($fn().contains("{{app_name}}"))
    }
}
""",
)

_JAVA = LanguageProfile(
    code="java",
    name="Java",
    main="Main.java",
    types="Types.java",
    guard="Guard.java",
    test="MainTest.java",
    snake_case=False,
    main_stub="""\
// $lib $pattern spike ($style): $purpose
public class Main {
    public static final String APP_NAME = "{{app_name}}";

    public static String $fn() {
        return "use $lib for $pattern in " + APP_NAME;
    }

    public static void main(String[] args) {
        System.out.println($fn());
    }
}
""",
    advanced_stub="""
class ${type}Retry {
    static String run(int retries) {
        RuntimeException lastError = null;
        for (int attempt = 0; attempt < retries; attempt++) {
            try {
{{#if verbose}}
                System.err.println("[" + Main.APP_NAME + "] attempt " + attempt);
{{/if}}
                return Main.$fn();
            } catch (RuntimeException err) {
                lastError = err;
            }
        }
        throw new IllegalStateException("all attempts failed", lastError);
    }
}
""",
    types_stub="""\
// Types for the {{app_name}} $pattern spike
import java.util.Map;

public final class Types {
    public record ${type}Request(String id, Map<String, Object> payload) {}

    public record ${type}Result(boolean ok, String message) {}
}
""",
    guard_stub="""\
// Origin guard and input checks for {{app_name}}
import java.util.HashSet;
import java.util.Set;

public final class Guard {
    private static final Set<String> ALLOWED_ORIGINS = new HashSet<>();

    static {
{{#each allowed_origins}}
        ALLOWED_ORIGINS.add("{{this}}");
{{/each}}
    }

    public static boolean isAllowedOrigin(String origin) {
        return ALLOWED_ORIGINS.contains(origin);
    }

    public static String requireText(String value, String field) {
        if (value == null || value.isBlank()) {
            throw new IllegalArgumentException("invalid " + field);
        }
        return value.trim();
    }
}
""",
    test_stub="""\
import static org.junit.jupiter.api.Assertions.assertTrue;

import org.junit.jupiter.api.Test;

class MainTest {
    @Test
    void mentionsAppName() {
        assertTrue(Main.$fn().contains("{{app_name}}"));
    }
}
""",
)

_RB = LanguageProfile(
    code="rb",
    name="Ruby",
    main="main.rb",
    types="types.rbs",
    guard="guard.rb",
    test="main_test.rb",
    snake_case=True,
    main_stub="""\
# $lib $pattern spike ($style): $purpose
APP_NAME = "{{app_name}}"

def $fn
  "use $lib for $pattern in " + APP_NAME
end
""",
    advanced_stub="""
def ${fn}_with_retry(retries = 3)
  last_error = nil
  retries.times do |attempt|
    begin
{{#if verbose}}
      warn "[" + APP_NAME + "] attempt " + attempt.to_s
{{/if}}
      return $fn
    rescue StandardError => e
      last_error = e
    end
  end
  raise last_error
end
""",
    types_stub="""\
# Types for the {{app_name}} $pattern spike
class ${type}Request
  attr_reader id: String
  attr_reader payload: Hash[String, untyped]
end

class ${type}Result
  attr_reader ok: bool
  attr_reader message: String?
end
""",
    guard_stub="""\
# Origin guard and input checks for {{app_name}}
require "set"

ALLOWED_ORIGINS = Set[
{{#each allowed_origins}}
  "{{this}}",
{{/each}}
].freeze

def allowed_origin?(origin)
  ALLOWED_ORIGINS.include?(origin)
end

def require_text(value, field)
  raise ArgumentError, "invalid " + field if value.nil? || value.strip.empty?

  value.strip
end
""",
    test_stub="""\
require "minitest/autorun"
require_relative "main"

class MainTest < Minitest::Test
  def test_mentions_app_name
    assert_includes $fn, "{{app_name}}"
  end
end
""",
)

LANGUAGE_PROFILES: dict[str, LanguageProfile] = {
    p.code: p for p in (_TS, _JS, _PY, _GO, _RS, _KT, _JAVA, _RB)
}


# =============================================================================
# Specialized files for well-known (library, pattern) pairs
# =============================================================================

_NEXT_HEALTH_ROUTE = """\
import { NextResponse } from 'next/server';

export async function GET() {
  return NextResponse.json({ ok: true, app: '{{app_name}}' });
}
"""

_NEXT_MIDDLEWARE = """\
import { NextResponse } from 'next/server';
import type { NextRequest } from 'next/server';

export function middleware(request: NextRequest) {
  const response = NextResponse.next();
  response.headers.set('x-app-name', '{{app_name}}');
  return response;
}
"""

_NEXT_ACTION = """\
'use server';

export async function demoAction() {
  return { ok: true, app: '{{app_name}}' };
}
"""

_PRISMA_CLIENT = """\
import { PrismaClient } from '@prisma/client';

export const prisma = new PrismaClient();
"""

_PRISMA_SCHEMA = """\
datasource db {
  provider = "postgresql"
  url      = env("DATABASE_URL")
}

generator client {
  provider = "prisma-client-js"
}

model User {
  id        Int      @id @default(autoincrement())
  email     String   @unique
  name      String?
  createdAt DateTime @default(now())
}
"""

_PRISMA_SERVICE = """\
import { prisma } from './prisma';

export async function createUserWithTx(email: string) {
  return prisma.$transaction(async (tx) => {
    return tx.user.create({ data: { email } });
  });
}
"""

_GRAPHQL_SCHEMA = "type Query {\n  hello: String!\n}\n"

_GRAPHQL_RESOLVERS = """\
export const resolvers = {
  Query: {
    hello: () => 'world from {{app_name}}',
  },
};
"""

_APOLLO_SERVER = """\
import { ApolloServer } from '@apollo/server';
import { startStandaloneServer } from '@apollo/server/standalone';

const typeDefs = `type Query { hello: String! }`;
const resolvers = { Query: { hello: () => 'world' } };

const server = new ApolloServer({ typeDefs, resolvers });
startStandaloneServer(server, { listen: { port: 4000 } });
"""

_APOLLO_CLIENT = """\
import { ApolloClient, InMemoryCache, HttpLink } from '@apollo/client';

export const client = new ApolloClient({
  link: new HttpLink({ uri: '/api/graphql' }),
  cache: new InMemoryCache(),
});
"""

_NEXT_AUTH_ROUTE = """\
import NextAuth from 'next-auth';
import Credentials from 'next-auth/providers/credentials';

const handler = NextAuth({
  providers: [
    Credentials({
      name: 'Credentials',
      credentials: { username: {}, password: {} },
      authorize: async () => ({ id: '1', name: 'demo' }),
    }),
  ],
});

export { handler as GET, handler as POST };
"""

_GHA_CI = """\
name: CI
on: [push, pull_request]
jobs:
  test:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - uses: actions/setup-node@v4
        with:
          node-version: '20'
      - run: npm ci
      - run: npm test
"""

_EXPRESS_ROUTE_TS = """\
import express, { Request, Response } from 'express';

const app = express();

app.get('/health', (req: Request, res: Response) => {
  res.json({ ok: true, app: '{{app_name}}' });
});

app.listen(3000);
"""

_EXPRESS_ROUTE_JS = """\
const express = require('express');

const app = express();

app.get('/health', (req, res) => res.json({ ok: true, app: '{{app_name}}' }));

app.listen(3000);
"""

_FASTAPI_ROUTE = '''\
from fastapi import FastAPI

app = FastAPI(title="{{app_name}}")


@app.get("/health")
async def health() -> dict:
    return {"ok": True}
'''

# (library, pattern) -> [(path, template)]
SPECIALIZED_FILES: dict[tuple[str, str], tuple[tuple[str, str], ...]] = {
    ("nextjs", "route"): (("app/api/health/route.ts", _NEXT_HEALTH_ROUTE),),
    ("nextjs", "config"): (("middleware.ts", _NEXT_MIDDLEWARE),),
    ("nextjs", "init"): (("middleware.ts", _NEXT_MIDDLEWARE),),
    ("nextjs", "middleware"): (("middleware.ts", _NEXT_MIDDLEWARE),),
    ("nextjs", "service"): (("app/actions/demo.ts", _NEXT_ACTION),),
    ("prisma", "crud"): (
        ("src/prisma.ts", _PRISMA_CLIENT),
        ("prisma/schema.prisma", _PRISMA_SCHEMA),
    ),
    ("prisma", "service"): (
        ("src/prisma.ts", _PRISMA_CLIENT),
        ("prisma/schema.prisma", _PRISMA_SCHEMA),
        ("src/user.service.ts", _PRISMA_SERVICE),
    ),
    ("graphql", "service"): (
        ("schema.graphql", _GRAPHQL_SCHEMA),
        ("src/graphql/resolvers.ts", _GRAPHQL_RESOLVERS),
    ),
    ("graphql", "route"): (
        ("schema.graphql", _GRAPHQL_SCHEMA),
        ("src/graphql/resolvers.ts", _GRAPHQL_RESOLVERS),
    ),
    ("apollo", "service"): (("src/apollo/server.ts", _APOLLO_SERVER),),
    ("apollo", "route"): (("src/apollo/server.ts", _APOLLO_SERVER),),
    ("apollo", "client"): (("src/apollo/client.ts", _APOLLO_CLIENT),),
    ("next-auth", "config"): (("app/api/auth/[...nextauth]/route.ts", _NEXT_AUTH_ROUTE),),
    ("next-auth", "route"): (("app/api/auth/[...nextauth]/route.ts", _NEXT_AUTH_ROUTE),),
    ("github-actions", "config"): ((".github/workflows/ci.yml", _GHA_CI),),
    ("github-actions", "init"): ((".github/workflows/ci.yml", _GHA_CI),),
}

# (library, pattern, language) -> main stub replacing the profile default
SPECIALIZED_MAIN: dict[tuple[str, str, str], str] = {
    ("express", "route", "ts"): _EXPRESS_ROUTE_TS,
    ("express", "route", "js"): _EXPRESS_ROUTE_JS,
    ("fastapi", "route", "py"): _FASTAPI_ROUTE,
}


# =============================================================================
# Assembly
# =============================================================================


FileBuilder = Callable[[], str]


def _identifier(axis: AxisTuple, snake_case: bool) -> str:
    words = [w for w in f"{axis.library}-{axis.pattern}".replace("_", "-").split("-") if w]
    if snake_case:
        return "_".join(words)
    return words[0] + "".join(w.capitalize() for w in words[1:])


def _type_name(axis: AxisTuple) -> str:
    words = [w for w in f"{axis.library}-{axis.pattern}".split("-") if w]
    return "".join(w[:1].upper() + w[1:] for w in words)


def _fill(stub: str, axis: AxisTuple, profile: LanguageProfile) -> str:
    return _Stub(stub).safe_substitute(
        lib=axis.library,
        pattern=axis.pattern,
        style=axis.style,
        purpose=PATTERN_PURPOSES[axis.pattern],
        fn=_identifier(axis, profile.snake_case),
        type=_type_name(axis),
    )


def _readme(axis: AxisTuple, profile: LanguageProfile) -> str:
    return (
        f"# {{{{app_name}}}}: {axis.library} {axis.pattern} ({axis.style}, {profile.name})\n"
        "\n"
        f"Generated spike: {PATTERN_PURPOSES[axis.pattern]}, "
        f"{STYLE_SUMMARIES[axis.style]}.\n"
    )


def plan_files(axis: AxisTuple) -> list[tuple[str, FileBuilder]]:
    """Output paths for a generated spike, with deferred content builders.

    Paths are known without building content, so metadata stays cheap.
    """
    profile = LANGUAGE_PROFILES[axis.language]
    base = f"spikes/{axis.id}"
    plan: list[tuple[str, FileBuilder]] = []

    for path, template in SPECIALIZED_FILES.get((axis.library, axis.pattern), ()):
        plan.append((path, lambda t=template: t))

    def main() -> str:
        special = SPECIALIZED_MAIN.get((axis.library, axis.pattern, axis.language))
        text = special if special is not None else _fill(profile.main_stub, axis, profile)
        if axis.style == "advanced" and special is None:
            text += _fill(profile.advanced_stub, axis, profile)
        return text

    plan.append((f"{base}/{profile.main}", main))
    plan.append((f"{base}/README.md", lambda: _readme(axis, profile)))

    if axis.style == "typed":
        plan.append((f"{base}/{profile.types}", lambda: _fill(profile.types_stub, axis, profile)))
    elif axis.style == "secure":
        plan.append((f"{base}/{profile.guard}", lambda: _fill(profile.guard_stub, axis, profile)))
    elif axis.style == "testing":
        plan.append((f"{base}/{profile.test}", lambda: _fill(profile.test_stub, axis, profile)))

    return plan


def build_files(axis: AxisTuple) -> tuple[FileTemplate, ...]:
    return tuple(FileTemplate(path=path, template=build()) for path, build in plan_files(axis))


def build_params(axis: AxisTuple) -> tuple[Param, ...]:
    params = [
        Param(
            name="app_name",
            default=f"{axis.library}-{axis.pattern}-app",
            description="Application name used in generated code",
            pattern=r"[A-Za-z0-9][A-Za-z0-9._-]*",
        ),
    ]
    if axis.style == "advanced" and (axis.library, axis.pattern, axis.language) not in SPECIALIZED_MAIN:
        params.append(
            Param(
                name="verbose",
                type=ParamType.BOOLEAN,
                default=False,
                description="Log each retry attempt",
            )
        )
    if axis.style == "secure":
        params.append(
            Param(
                name="allowed_origins",
                type=ParamType.LIST,
                default=("http://localhost:3000",),
                description="Origins accepted by the guard (comma-separated)",
                minimum=1,
            )
        )
    return tuple(params)


def describe(axis: AxisTuple) -> str:
    profile = LANGUAGE_PROFILES[axis.language]
    return (
        f"Generated {axis.library} {axis.pattern} spike in {profile.name} "
        f"({axis.style}): {PATTERN_PURPOSES[axis.pattern]}, {STYLE_SUMMARIES[axis.style]}."
    )
