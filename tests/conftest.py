import io
import base64

import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image
from typing import AsyncGenerator

from leafcrops.main import app

GREEN = (0, 200, 0)
BLACK = (0, 0, 0)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    # Trigger lifespan events (startup/shutdown)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """Lossless encoding so decoded pixels match what the test painted."""
    return _png_bytes


@pytest.fixture
def png_data_url():
    def _data_url(image: Image.Image) -> str:
        return "data:image/png;base64," + base64.b64encode(_png_bytes(image)).decode("ascii")
    return _data_url


@pytest.fixture
def full_green_image() -> Image.Image:
    return Image.new("RGB", (100, 100), GREEN)


@pytest.fixture
def dark_image() -> Image.Image:
    return Image.new("RGB", (100, 100), (10, 10, 10))


@pytest.fixture
def two_squares_image() -> Image.Image:
    """200x200 black frame with a 60x60 and a 30x30 green square."""
    image = Image.new("RGB", (200, 200), BLACK)
    image.paste(GREEN, (10, 10, 70, 70))
    image.paste(GREEN, (120, 120, 150, 150))
    return image


@pytest.fixture
def corrupted_png_bytes() -> bytes:
    """64x64 green PNG whose IDAT chunk length was overwritten.

    Pillow reports this as ``SyntaxError("broken PNG file")`` during load.
    """
    data = bytearray(_png_bytes(Image.new("RGB", (64, 64), GREEN)))
    assert data[37:41] == b"IDAT"
    data[36] = 0x29
    return bytes(data)
