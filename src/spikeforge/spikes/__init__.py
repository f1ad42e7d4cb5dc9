"""Spikes: parameterized scaffolds for a technology combination.

Hand-authored spikes live in YAML/JSON documents; generated spikes are
synthesized on demand from the library x pattern x style x language axes.
Both resolve through SpikeCatalog and render through the same template
grammar.

Usage:
    from spikeforge import get_engine

    engine = get_engine()
    result = engine.discover("nextjs route", limit=5)
"""

from spikeforge.spikes.axes import (
    AXES,
    AXES_VERSION,
    AxisKind,
    AxisTuple,
    GenerationAxis,
    format_generated_id,
    parse_generated_id,
)
from spikeforge.spikes.catalog import CatalogListing, SpikeCatalog
from spikeforge.spikes.discovery import DiscoveryEngine, DiscoveryItem, DiscoveryResult
from spikeforge.spikes.generator import SpecCache, SpikeGenerator
from spikeforge.spikes.loader import SpikeLoader
from spikeforge.spikes.packs import SpikePack, filter_ids_by_pack, list_packs
from spikeforge.spikes.renderer import RenderedFile, RenderedOutput, RenderedPatch, render
from spikeforge.spikes.selection import AutoSelection, AutoSelector, NoMatch
from spikeforge.spikes.store import StaticSpecStore
from spikeforge.spikes.template import Template, parse_template, render_string
from spikeforge.spikes.types import (
    FileTemplate,
    Param,
    ParamType,
    Patch,
    PatchOperation,
    SpikeMetadata,
    SpikeSpec,
)

__all__ = [
    # Axes
    "AXES",
    "AXES_VERSION",
    "AxisKind",
    "AxisTuple",
    "GenerationAxis",
    "format_generated_id",
    "parse_generated_id",
    # Types
    "FileTemplate",
    "Param",
    "ParamType",
    "Patch",
    "PatchOperation",
    "SpikeMetadata",
    "SpikeSpec",
    # Catalog
    "CatalogListing",
    "SpecCache",
    "SpikeCatalog",
    "SpikeGenerator",
    "SpikeLoader",
    "StaticSpecStore",
    # Finding
    "AutoSelection",
    "AutoSelector",
    "DiscoveryEngine",
    "DiscoveryItem",
    "DiscoveryResult",
    "NoMatch",
    "SpikePack",
    "filter_ids_by_pack",
    "list_packs",
    # Rendering
    "RenderedFile",
    "RenderedOutput",
    "RenderedPatch",
    "Template",
    "parse_template",
    "render",
    "render_string",
]
