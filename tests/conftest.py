"""Shared pytest fixtures for Lyrical Vision tests."""

import asyncio
import io
import shutil
import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import Generator
from unittest.mock import patch

import pytest
from PIL import Image

from lyricalvision.core.catalog import GenerationCatalog, load_catalog
from lyricalvision.core.config import DEFAULT_CATALOG_PATH, LyricalVisionConfig
from lyricalvision.core.models import GenerationConfig, ReferenceImage
from lyricalvision.core.session import StoryboardSession

STANDARD_MODEL = "gemini-2.5-flash-image"
PREMIUM_MODEL = "gemini-3-pro-image-preview"


def make_response(*candidate_parts):
    """Build a stand-in for a ``generate_content`` response.

    Each positional argument is the list of parts of one candidate.  A part is
    either ``("image", data, mime_type)`` or ``("text", text)``.
    """
    candidates = []
    for parts in candidate_parts:
        built = []
        for part in parts:
            if part[0] == "image":
                _, data, mime_type = part
                built.append(
                    SimpleNamespace(
                        text=None,
                        inline_data=SimpleNamespace(data=data, mime_type=mime_type),
                    )
                )
            else:
                built.append(SimpleNamespace(text=part[1], inline_data=None))
        candidates.append(SimpleNamespace(content=SimpleNamespace(parts=built)))
    return SimpleNamespace(candidates=candidates)


def image_response(data: bytes = b"png-bytes", mime_type: str = "image/png"):
    """A response with a single candidate carrying one inline image."""
    return make_response([("image", data, mime_type)])


class FakeKeyHost:
    """In-memory :class:`KeyHost` that counts selection calls."""

    def __init__(self, has_key: bool = False, key_after_select: bool = False) -> None:
        self.has_key = has_key
        self.key_after_select = key_after_select
        self.select_calls = 0
        self.probe_calls = 0

    async def has_selected_key(self) -> bool:
        self.probe_calls += 1
        return self.has_key

    async def select_key(self) -> None:
        self.select_calls += 1
        if self.key_after_select:
            self.has_key = True


class ControlledImageService:
    """Image service whose calls resolve only when a test says so.

    Every call to :meth:`generate` records its request and parks on a future
    appended to :attr:`calls`.  Tests resolve calls in any order with
    :meth:`succeed` / :meth:`fail`.
    """

    def __init__(self) -> None:
        self.requests = []
        self.calls: list[asyncio.Future] = []

    async def generate(self, request):
        future = asyncio.get_running_loop().create_future()
        self.requests.append(request)
        self.calls.append(future)
        return await future

    async def wait_for_calls(self, count: int) -> None:
        while len(self.calls) < count:
            await asyncio.sleep(0)

    def succeed(self, index: int, data: bytes = b"png-bytes", mime_type: str = "image/png") -> None:
        self.calls[index].set_result(image_response(data, mime_type))

    def fail(self, index: int, error: Exception) -> None:
        self.calls[index].set_exception(error)


class ImmediateImageService:
    """Image service that answers every call at once with a fixed outcome."""

    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response if response is not None else image_response()
        self.error = error
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config() -> LyricalVisionConfig:
    """Create a test configuration that ignores .env and has no API key.

    Returns:
        LyricalVisionConfig instance for testing
    """
    return LyricalVisionConfig(
        _env_file=None,
        api_key=None,
        catalog_path=DEFAULT_CATALOG_PATH,
        default_model_id=STANDARD_MODEL,
        default_style_id="cinematic",
        default_aspect_ratio="16:9",
        discard_stale_responses=False,
        verify_key_after_select=False,
    )


@pytest.fixture
def catalog() -> GenerationCatalog:
    """The bundled catalog."""
    return load_catalog(DEFAULT_CATALOG_PATH)


@pytest.fixture
def generation_settings() -> GenerationConfig:
    """Standard-model settings with context and subject filled in."""
    return GenerationConfig(
        model_id=STANDARD_MODEL,
        style_id="watercolor",
        aspect_ratio="16:9",
        context="A rainy harbour town at dusk",
        subject="An old fisherman in a yellow coat",
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A tiny valid JPEG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(30, 30, 200)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def reference_images() -> list[ReferenceImage]:
    """Two reference images in attachment order."""
    return [
        ReferenceImage(data="Zmlyc3Q=", mime_type="image/png", id="ref-1"),
        ReferenceImage(data="c2Vjb25k", mime_type="image/jpeg", id="ref-2"),
    ]


@pytest.fixture
def key_host() -> FakeKeyHost:
    """Key host with no key selected."""
    return FakeKeyHost(has_key=False)


@pytest.fixture
def image_service() -> ControlledImageService:
    return ControlledImageService()


@pytest.fixture
def session(test_config, catalog, key_host, image_service) -> StoryboardSession:
    """Session wired to the fake key host and the controlled image service."""
    return StoryboardSession(
        test_config,
        catalog,
        key_host=key_host,
        image_service=image_service,
    )


@pytest.fixture
def api_key_host() -> FakeKeyHost:
    """Key host used by the API session."""
    return FakeKeyHost(has_key=False, key_after_select=True)


@pytest.fixture
def api_image_service() -> ImmediateImageService:
    """Image service used by the API session."""
    return ImmediateImageService()


@pytest.fixture
def test_client(test_config, catalog, api_key_host, api_image_service):
    """FastAPI TestClient running the app with a fake key host and image service.

    ``create_session`` is patched so the lifespan builds a session that never
    talks to a real provider.
    """
    from fastapi.testclient import TestClient

    from lyricalvision.api.main import app

    def build_session() -> StoryboardSession:
        return StoryboardSession(
            test_config,
            catalog,
            key_host=api_key_host,
            image_service=api_image_service,
        )

    with patch("lyricalvision.api.main.create_session", build_session):
        with TestClient(app) as client:
            yield client
