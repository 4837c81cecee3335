"""Pytest configuration for spheretrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene tables, render target and fault flag around each test.

    Worker random states are reseeded so every test starts from the same
    streams.
    """
    # Import here so the fields are created after ti.init
    from spheretrace.core.integrator import (
        _render_target_initialized,
        clear_render_target,
        clear_scatter_fault,
    )
    from spheretrace.core.rng import MAX_WORKERS, seed_workers
    from spheretrace.scene.manager import clear_scene_data

    def _clear_all():
        clear_scene_data()
        if _render_target_initialized[None] != 0:
            clear_render_target()
        clear_scatter_fault()
        seed_workers(MAX_WORKERS)

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def reference_scene():
    """Upload the reference scene and its camera for a landscape image."""
    from spheretrace.camera.pinhole import setup_camera
    from spheretrace.scene.manager import upload_scene
    from spheretrace.scene.reference import create_reference_camera, create_reference_scene

    scene = create_reference_scene()
    upload_scene(scene)
    setup_camera(create_reference_camera(16.0 / 9.0))
    return scene
