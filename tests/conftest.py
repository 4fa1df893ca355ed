"""
Pytest configuration and fixtures for TrackerCore tests.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Generator
from unittest.mock import MagicMock, patch

import pytest

from trackercore.config import reset_config
from trackercore.contexts.loader import ContextManifestLoader
from trackercore.logger import LOG


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Strip TRACKERCORE_* variables and reset cached state around each test."""
    original = {k: v for k, v in os.environ.items() if k.startswith("TRACKERCORE_")}
    for key in original:
        del os.environ[key]
    reset_config()
    ContextManifestLoader.clear_cache()
    level, log_format = LOG.level, LOG.log_format

    yield

    LOG.level, LOG.log_format = level, log_format
    ContextManifestLoader.clear_cache()
    reset_config()
    for key in [k for k in os.environ if k.startswith("TRACKERCORE_")]:
        del os.environ[key]
    os.environ.update(original)


# ============================================================================
# OTel Fixtures
# ============================================================================


@pytest.fixture
def mock_span() -> MagicMock:
    """Create a mock OTel span that is recording."""
    span = MagicMock()
    span.is_recording.return_value = True
    return span


@pytest.fixture
def mock_otel(mock_span: MagicMock) -> Generator[MagicMock, None, None]:
    """Patch OTel to return our mock span."""
    with patch("trackercore._otel_helpers.otel_trace") as mock_trace:
        mock_trace.get_current_span.return_value = mock_span
        yield mock_span


# ============================================================================
# Entity Fixtures
# ============================================================================


@pytest.fixture
def entity_a() -> Dict[str, Any]:
    return {"sc": "iglu:com.acme/user/jsonschema/1-0-0", "dt": {"id": "u-1"}}


@pytest.fixture
def entity_b() -> Dict[str, Any]:
    return {"sc": "iglu:com.acme/session/jsonschema/1-0-0", "dt": {"id": "s-1"}}


@pytest.fixture
def entity_c() -> Dict[str, Any]:
    return {"sc": "iglu:com.acme/device/jsonschema/1-0-0", "dt": {"os": "linux"}}


@pytest.fixture
def acme_event() -> Dict[str, Any]:
    """A self-describing event under the com.acme vendor."""
    return {"sc": "iglu:com.acme/checkout/jsonschema/1-0-2", "dt": {"total": 42}}


@pytest.fixture
def other_event() -> Dict[str, Any]:
    """A self-describing event under a different vendor."""
    return {"sc": "iglu:com.other/checkout/jsonschema/1-0-0", "dt": {"total": 7}}
