"""
Pytest configuration and fixtures for Depot tests.
"""

import sys
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

# Check for pytest-asyncio
try:
    import pytest_asyncio
    HAS_PYTEST_ASYNCIO = True
except ImportError:
    HAS_PYTEST_ASYNCIO = False


def pytest_collection_modifyitems(config, items):
    """Skip async tests if pytest-asyncio is not installed."""
    if HAS_PYTEST_ASYNCIO:
        return

    import asyncio
    skip_asyncio = pytest.mark.skip(
        reason="pytest-asyncio not installed - async tests require pytest-asyncio"
    )
    for item in items:
        if asyncio.iscoroutinefunction(item.function):
            item.add_marker(skip_asyncio)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def storage_root(temp_dir: Path) -> Path:
    """An empty storage root, with StorageGate initialized on it."""
    from depot.StorageGate import StorageGate

    root = temp_dir / "uploads"
    assert StorageGate.initialize(str(root))
    return root


@pytest.fixture
def sample_tree(storage_root: Path) -> Path:
    """
    Populate the storage root:

        readme.txt
        data.json
        docs/
            nested.txt
            deep/
                leaf.txt
        empty/
    """
    (storage_root / "readme.txt").write_text("Hello World")
    (storage_root / "data.json").write_text('{"key": "value"}')

    docs = storage_root / "docs"
    (docs / "deep").mkdir(parents=True)
    (docs / "nested.txt").write_text("Nested content")
    (docs / "deep" / "leaf.txt").write_text("leaf")

    (storage_root / "empty").mkdir()
    return storage_root


@pytest.fixture
def client(storage_root: Path):
    """HTTP client for an app serving the storage root."""
    from fastapi.testclient import TestClient
    from dock.run import create_app

    with TestClient(create_app(str(storage_root))) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def isolated_env(temp_dir: Path, monkeypatch):
    """Keep config lookups away from the developer's environment."""
    for key in ("STORAGE_ROOT", "MAX_UPLOAD_MB", "UPLOAD_CHUNK_SIZE", "HOST", "PORT",
                "CORS_ORIGINS", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DEPOT_CONFIG_FILE", str(temp_dir / "no-config.json"))


@pytest.fixture(autouse=True)
def reset_module_state():
    """Reset module-level state between tests."""
    yield

    # Reset StorageGate
    try:
        import depot.StorageGate as storage_gate
        storage_gate._root = None
        storage_gate._max_upload_bytes = storage_gate.ops.DEFAULT_MAX_UPLOAD_BYTES
        storage_gate._chunk_size = storage_gate.ops.DEFAULT_CHUNK_SIZE
        storage_gate._initialized = False
    except (ImportError, AttributeError):
        pass

    # Reset Config
    try:
        import depot.Config as config_module
        config_module._manager = None
    except (ImportError, AttributeError):
        pass

