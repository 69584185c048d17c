"""Pytest configuration for spherepath tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f32)
    yield


@pytest.fixture
def rng():
    """Seeded random source so sample sequences are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def unit_sphere():
    """A unit sphere at the origin."""
    from src.spherepath.scene.snapshot import SphereSpec

    return SphereSpec(center=(0.0, 0.0, 0.0), radius=1.0)
