import json
import logging
import ssl
from pathlib import Path
from typing import Any, Dict, Optional, Union

import aiohttp
import certifi
from pydantic import TypeAdapter

from .errors import APIError, AuthenticationError
from .models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ImageEditRequest,
    ImageGenerationRequest,
    ImagesResponse,
    ModelList,
    PathStr,
    SpeechRequest,
    Transcription,
    TranscriptionRequest,
)

logger = logging.getLogger(__name__)

__version__ = "0.1.0"

DEFAULT_BASE_URL = "https://api.openai.com/v1"

_path_adapter = TypeAdapter(PathStr)


def validate_path(value: Any) -> str:
    return _path_adapter.validate_python(value)


def _existing_file(path: Union[str, Path]) -> Path:
    file_path = Path(validate_path(str(path)))
    if not file_path.is_file():
        raise FileNotFoundError(f"No such file: {file_path}")
    return file_path


class OpenAIClient:
    """
    Asynchronous client for the OpenAI REST API.

    Each method sends exactly one request. Use as an async context manager so
    the underlying session is closed:

        async with OpenAIClient(api_key="sk-...") as client:
            reply = await client.create_chat_completion(request)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 120,
        ignore_ssl: bool = False,
    ):
        self.api_key = api_key
        self.api_base = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.ignore_ssl = ignore_ssl
        self.headers = {
            "Accept": "application/json",
            "User-Agent": f"openai-cli/{__version__}",
        }
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "OpenAIClient":
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            if self.ignore_ssl:
                logger.warning("SSL certificate verification is disabled")
                connector = aiohttp.TCPConnector(ssl=False)
            else:
                ssl_context = ssl.create_default_context(cafile=certifi.where())
                connector = aiohttp.TCPConnector(ssl=ssl_context)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_auth_headers(self, json_body: bool = True) -> Dict[str, str]:
        if not self.api_key:
            logger.error("Authentication error: No API key available")
            raise AuthenticationError(
                "OpenAI API key not found. Set it using --key or OPENAI_API_KEY environment variable"
            )
        headers = {**self.headers, "Authorization": f"Bearer {self.api_key}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _raise_for_status(self, response: aiohttp.ClientResponse) -> None:
        if response.status < 400:
            return
        text = await response.text()
        try:
            body = json.loads(text)
        except (json.JSONDecodeError, TypeError):
            body = None
        error = APIError.from_body(response.status, body, fallback=(text or "").strip()[:200])
        logger.error(f"API error: {error}")
        raise error

    async def _read_json(self, response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Malformed JSON in response: {e}")
            raise APIError(f"Malformed JSON in response: {e}", status=response.status) from e

    async def _post(
        self,
        path: str,
        *,
        json_payload: Optional[Dict[str, Any]] = None,
        form: Optional[aiohttp.FormData] = None,
        raw: bool = False,
    ) -> Union[Dict[str, Any], bytes]:
        headers = self._get_auth_headers(json_body=form is None)
        session = await self._get_session()
        url = f"{self.api_base}{path}"
        kwargs: Dict[str, Any] = {"headers": headers}
        if form is not None:
            kwargs["data"] = form
        else:
            kwargs["json"] = json_payload
            logger.debug(f"Payload: {json.dumps(json_payload, ensure_ascii=False)[:2000]}")

        logger.info(f"POST {url}")
        try:
            async with session.post(url, **kwargs) as response:
                await self._raise_for_status(response)
                if raw:
                    return await response.read()
                return await self._read_json(response)
        except aiohttp.ClientError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise

    # ---- Chat ----
    async def create_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        data = await self._post("/chat/completions", json_payload=request.to_payload())
        result = ChatCompletionResponse.model_validate(data)
        logger.info(f"Chat completion successful, model: {result.model}, choices: {len(result.choices)}")
        return result

    # ---- Images ----
    async def create_image(self, request: ImageGenerationRequest) -> ImagesResponse:
        data = await self._post("/images/generations", json_payload=request.to_payload())
        result = ImagesResponse.model_validate(data)
        logger.info(f"Image generation successful, images: {len(result.data)}")
        return result

    async def create_image_edit(
        self,
        image_path: Union[str, Path],
        request: ImageEditRequest,
        mask_path: Optional[Union[str, Path]] = None,
    ) -> ImagesResponse:
        image_file = _existing_file(image_path)
        form = aiohttp.FormData()
        form.add_field("image", image_file.read_bytes(), filename=image_file.name, content_type="image/png")
        if mask_path is not None:
            mask_file = _existing_file(mask_path)
            form.add_field("mask", mask_file.read_bytes(), filename=mask_file.name, content_type="image/png")
        for name, value in request.to_form_fields().items():
            form.add_field(name, value)

        data = await self._post("/images/edits", form=form)
        result = ImagesResponse.model_validate(data)
        logger.info(f"Image edit successful, images: {len(result.data)}")
        return result

    # ---- Audio ----
    async def create_transcription(
        self, audio_path: Union[str, Path], request: TranscriptionRequest
    ) -> Transcription:
        audio_file = _existing_file(audio_path)
        form = aiohttp.FormData()
        form.add_field("file", audio_file.read_bytes(), filename=audio_file.name)
        for name, value in request.to_form_fields().items():
            form.add_field(name, value)

        data = await self._post("/audio/transcriptions", form=form)
        result = Transcription.model_validate(data)
        logger.info("Transcription successful")
        return result

    async def create_speech(self, request: SpeechRequest) -> bytes:
        """Text to speech. Returns the encoded audio bytes."""
        audio = await self._post("/audio/speech", json_payload=request.to_payload(), raw=True)
        logger.info(f"Speech generation successful, {len(audio)} bytes")
        return audio

    # ---- Models ----
    async def list_models(self) -> ModelList:
        headers = self._get_auth_headers(json_body=False)
        session = await self._get_session()
        url = f"{self.api_base}/models"
        logger.info(f"GET {url}")
        try:
            async with session.get(url, headers=headers) as response:
                await self._raise_for_status(response)
                data = await self._read_json(response)
        except aiohttp.ClientError as e:
            logger.error(f"Request to /models failed: {e}")
            raise
        return ModelList.model_validate(data)
