"""Pytest fixtures for Spikeforge tests."""

import os
from pathlib import Path

import pytest

from spikeforge.foundation.config import SpikeforgeConfig, reset_config
from spikeforge.spikes.catalog import SpikeCatalog
from spikeforge.spikes.engine import SpikeEngine, reset_engine
from spikeforge.spikes.generator import SpecCache, SpikeGenerator
from spikeforge.spikes.store import StaticSpecStore

CUSTOM_SPIKE = """\
id: custom-greeter
name: Custom greeter
version: 2.0.0
stack: [node, js]
tags: [example]
description: Greets someone from a module.
params:
  - name: greeting
    required: true
  - name: names
    type: list
    default: [ada, grace]
files:
  - path: "src/{{greeting}}.js"
    template: |
      {{#each names}}
      console.log('{{greeting}} {{this}}');
      {{/each}}
"""


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep user config, env overrides and singletons out of every test."""
    for key in list(os.environ):
        if key.startswith("SPIKEFORGE_"):
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    reset_config()
    reset_engine()
    yield
    reset_config()
    reset_engine()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """An empty target root."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def spec_dir(tmp_path: Path) -> Path:
    """A directory holding one custom spike document."""
    directory = tmp_path / "spikes"
    directory.mkdir()
    (directory / "custom-greeter.yaml").write_text(CUSTOM_SPIKE, encoding="utf-8")
    return directory


@pytest.fixture
def store() -> StaticSpecStore:
    """The built-in hand-authored spikes."""
    return StaticSpecStore.from_config()


@pytest.fixture
def generator() -> SpikeGenerator:
    return SpikeGenerator(scan_limit=5000, cache=SpecCache(max_size=16))


@pytest.fixture
def catalog(store: StaticSpecStore, generator: SpikeGenerator) -> SpikeCatalog:
    return SpikeCatalog(store, generator, list_limit=200)


@pytest.fixture
def engine() -> SpikeEngine:
    """Engine over built-in spikes with default configuration."""
    return SpikeEngine.from_config(SpikeforgeConfig())
