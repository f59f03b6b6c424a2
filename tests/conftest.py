"""Pytest configuration helpers.

This conftest ensures ``backend/`` is on `sys.path` so tests can import the
`wallgen` package without an editable install, and provides the shared
request and configuration fixtures.
"""
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from wallgen.config import OrchestratorConfig  # noqa: E402
from wallgen.schemas.generation import GenerationRequest  # noqa: E402


@pytest.fixture
def config():
    """Orchestrator config with the production retry and polling constants."""
    return OrchestratorConfig(base_url="https://upstream.test")


@pytest.fixture
def image_request():
    return GenerationRequest(prompt="misty mountains at dawn", aspect_ratio="9:16")


@pytest.fixture
def video_request():
    return GenerationRequest(
        prompt="waves rolling onto a beach", mode="video", aspect_ratio="21:9"
    )
