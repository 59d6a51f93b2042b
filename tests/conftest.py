"""Pytest configuration for renderer tests.

This module provides shared fixtures for all test modules: a seeded random
generator, a few small scenes and the Taichi runtime for preview tests.
"""

import numpy as np
import pytest


@pytest.fixture(scope="session")
def taichi_cpu():
    """Initialize Taichi once for the tests that need it.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    import taichi as ti

    ti.init(arch=ti.cpu, random_seed=42)
    yield ti


@pytest.fixture
def rng():
    """Deterministic random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def emitter_scene():
    """One non-reflective emitter 5 units down -z, dark background."""
    from sidequest.scene.world import Scene, SceneObject

    return Scene(
        objects=(SceneObject.new(0.0, 0.0, -5.0, 1.0, (2.0, 1.0, 0.5), 0.0),),
        ambient=(0.1, 0.2, 0.3),
        margin=1e-5,
    )


@pytest.fixture
def enclosing_scene():
    """A half-reflective emitting sphere enclosing the origin."""
    from sidequest.scene.world import Scene, SceneObject

    return Scene(
        objects=(SceneObject.new(0.0, 0.0, 0.0, 10.0, (1.0, 1.0, 1.0), 0.5),),
        ambient=(0.0, 0.0, 0.0),
        margin=1e-5,
    )


@pytest.fixture
def small_params():
    """Render parameters small enough for fast end-to-end runs."""
    from sidequest.core.params import RenderParams

    return RenderParams(width=32, height=24, tile_size=16, tile_queue=4, threads=2, seed=7)
