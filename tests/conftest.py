"""
Pytest configuration for the multimodal test suite.

Configures:
- pytest-asyncio for async test support
- fake media processor / text engine fixtures
"""
import pytest
import pytest_asyncio

from multimodal.domain.model.multimodal_model import MultimodalModel
from multimodal.domain.models.media import PathRef
from multimodal.infrastructure.config.settings import MultimodalSettings
from multimodal.infrastructure.observability.logging import metrics

from tests.fakes import FakeMediaProcessor, FakeTextEngine

pytest_plugins = ["pytest_asyncio"]


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def processor():
    return FakeMediaProcessor()


@pytest.fixture
def engine():
    return FakeTextEngine()


@pytest.fixture
def settings(tmp_path):
    return MultimodalSettings(temp_dir=str(tmp_path))


@pytest_asyncio.fixture
async def model(processor, engine, settings):
    model = MultimodalModel(processor, engine, settings)
    yield model
    await model.dispose()


@pytest.fixture
def media_file(tmp_path):
    """Write a media file and return a PathRef to it"""

    def _write(name: str, payload: bytes = None, **fields) -> PathRef:
        path = tmp_path / name
        path.write_bytes(payload if payload is not None else name.encode())
        return PathRef(path=str(path), **fields)

    return _write
