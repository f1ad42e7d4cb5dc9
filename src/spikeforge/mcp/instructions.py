"""MCP Server instructions for Spikeforge.

Provides the system prompt/instructions for AI agents using Spikeforge via MCP.
"""

SPIKEFORGE_INSTRUCTIONS = """Spikeforge materializes "spikes": small, parameterized code scaffolds for a technology combination, applied onto the workspace under explicit conflict rules.

## Quick Start

1. **Find a spike**: `discover-spikes(query="nextjs route")`, or let Spikeforge pick one with `auto-spike(task="...", constraints=["ts"])`
2. **Read its parameters**: `explain-spike(id)`
3. **Preview**: `preview-spike(id, params)` renders files in memory; nothing is written
4. **Apply**: `apply-spike(id, params, strategy)`
5. **Check**: `validate-spike(id, params)` reports what is present and passes static analysis

## Spike Identifiers

- Hand-authored spikes have plain ids (`nextjs-minimal`, `jwt-auth-express`)
- Generated spikes follow `gen-<library>-<pattern>-<style>-<language>`,
  e.g. `gen-stripe-webhook-secure-ts`. Use `list-generated-spikes` to browse
  by axis, or a pack (`list-spike-packs`) for curated subsets.

## Conflict Strategies

| Strategy | Existing file | Result |
|----------|---------------|--------|
| **abort** (default) | any | Whole apply fails, nothing written |
| **overwrite** | any | Replaced with rendered content |
| **three_way_merge** | JSON/YAML | Fields merged; differing values conflict |
| **three_way_merge** | text | Lines merged; overlapping edits conflict |

Any conflict fails the whole apply and leaves the workspace untouched.

## Errors

Errors come back as JSON with `error_id`, `code`, `message` and
`recovery_hints`. Follow the hints: most errors name the parameter or path
to fix.

## Format Tiers

`discover-spikes` accepts `format`: `summary` (ids only), `compact` (default,
short descriptions) or `full` (pretty-printed, with matched terms and fields).
"""
