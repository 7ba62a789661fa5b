import base64
import io
from unittest.mock import AsyncMock, Mock, patch

import aiohttp
import pytest
from PIL import Image

from openaicli import OpenAIClient


def make_image_bytes(fmt: str = "PNG", size=(4, 4), color=(255, 0, 0)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def mock_session():
    """Session that OpenAIClient gets instead of a real aiohttp.ClientSession."""
    session = AsyncMock(spec=aiohttp.ClientSession)
    session.closed = False
    return session


@pytest.fixture
def mock_response():
    """Successful API reply; tests set json/read/text per endpoint."""
    response = AsyncMock(spec=aiohttp.ClientResponse)
    response.status = 200
    response.raise_for_status = Mock()
    response.json = AsyncMock()
    response.read = AsyncMock()
    response.text = AsyncMock(return_value="")
    return response


@pytest.fixture
def client():
    """Client with a dummy key pointed at the default API base."""
    return OpenAIClient(api_key="sk-test")


@pytest.fixture
def client_no_key():
    """Client with no key, for checks that fail before any request."""
    return OpenAIClient()


@pytest.fixture
def mock_client_session(mock_session):
    """Patch session, connector and CA bundle creation in openaicli.openaicli."""
    with patch("openaicli.openaicli.aiohttp.ClientSession", return_value=mock_session):
        with patch("openaicli.openaicli.aiohttp.TCPConnector"):
            with patch("openaicli.openaicli.ssl.create_default_context", return_value=True):
                with patch("openaicli.openaicli.certifi.where", return_value="dummy_cert_file"):
                    yield mock_session


@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG")


@pytest.fixture
def sample_chat_response():
    """Sample chat completion response."""
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "model": "gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "Hello, this is a test response!"},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12},
    }


@pytest.fixture
def sample_images_response(png_bytes):
    """Sample images API response with one base64 PNG."""
    return {
        "created": 1700000000,
        "data": [{"b64_json": base64.b64encode(png_bytes).decode("ascii")}],
    }


@pytest.fixture
def sample_models_response():
    """Sample models API response."""
    return {
        "object": "list",
        "data": [
            {"id": "gpt-4o-mini", "object": "model", "owned_by": "system"},
            {"id": "dall-e-2", "object": "model", "owned_by": "system"},
            {"id": "whisper-1", "object": "model", "owned_by": "openai-internal"},
        ],
    }
