"""pytest fixtures for MerchMagic backend tests.

Provides:
- FakeImageService: In-process stand-in for the Gemini client
- image_service: Function-scoped fake service
- studio: Function-scoped MockupStudio wired to the fake service
- test_client: AsyncClient driving the FastAPI app with injected state
"""

import asyncio
import io
import os
from typing import Optional

os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402

from merchmagic.services.image_generation.data_uri import to_data_uri  # noqa: E402
from merchmagic.services.preferences import PreferenceStore  # noqa: E402
from merchmagic.services.studio import MockupStudio  # noqa: E402


def make_png(color=(255, 0, 0, 255), size=(4, 4)) -> bytes:
    """Encode a solid-colour RGBA PNG."""
    output = io.BytesIO()
    Image.new("RGBA", size, color).save(output, format="PNG")
    return output.getvalue()


def png_data_uri(color=(255, 0, 0, 255), size=(4, 4)) -> str:
    return to_data_uri(make_png(color, size))


LOGO = png_data_uri((0, 0, 255, 255))


async def settle(rounds: int = 10) -> None:
    """Let every ready task run until it blocks."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeImageService:
    """Records calls and returns a fresh PNG for each render.

    Attributes:
        failures: Map of instruction substring to the exception raised for it
        gate: When set, every call waits for this event before answering
    """

    def __init__(self):
        self.generate_calls: list[tuple[str, str]] = []
        self.edit_calls: list[tuple[str, str, Optional[str]]] = []
        self.failures: dict[str, Exception] = {}
        self.gate: Optional[asyncio.Event] = None
        self.in_flight = 0
        self.max_in_flight = 0
        self.counter = 0

    async def _respond(self, prompt: str) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            for needle, error in self.failures.items():
                if needle in prompt:
                    raise error
            self.counter += 1
            return png_data_uri((self.counter % 256, 128, 64, 255))
        finally:
            self.in_flight -= 1

    async def generate_mockup(self, logo: str, prompt: str) -> str:
        self.generate_calls.append((logo, prompt))
        return await self._respond(prompt)

    async def edit_mockup(
        self, base_image: str, prompt: str, background_image: Optional[str] = None
    ) -> str:
        self.edit_calls.append((base_image, prompt, background_image))
        return await self._respond(prompt)


@pytest.fixture
def image_service() -> FakeImageService:
    return FakeImageService()


@pytest.fixture
def studio(image_service) -> MockupStudio:
    return MockupStudio(image_service, concurrency_limit=2)


@pytest_asyncio.fixture
async def ready_studio(studio) -> MockupStudio:
    """Studio whose batch has completed with every mockup ready."""
    studio.set_logo(LOGO)
    await studio.start_batch()
    return studio


@pytest_asyncio.fixture
async def test_client(studio, tmp_path):
    """Provide AsyncClient for testing API endpoints with an injected studio."""
    from merchmagic.app import app

    app.state.studio = studio
    app.state.preferences = PreferenceStore(tmp_path / "preferences.json")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
