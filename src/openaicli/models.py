from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PathStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

ImageSize = Literal["256x256", "512x512", "1024x1024", "1792x1024", "1024x1792"]
ImageResponseFormat = Literal["url", "b64_json"]
SpeechFormat = Literal["mp3", "opus", "aac", "flac", "wav", "pcm"]


class RequestModel(BaseModel):
    """Base for request bodies. Unknown fields are rejected so typos fail locally."""

    model_config = ConfigDict(extra="forbid")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_form_fields(self) -> Dict[str, str]:
        """Flatten the request into multipart form fields."""
        return {key: str(value) for key, value in self.to_payload().items()}


# ---------- Chat ----------
class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: Optional[Union[str, List[Dict[str, Any]]]] = None


class ChatCompletionRequest(RequestModel):
    model: NonEmptyStr
    messages: List[ChatMessage] = Field(min_length=1)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    n: Optional[int] = Field(default=None, ge=1)
    user: Optional[str] = None


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: Optional[str] = None


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[ChatChoice] = []
    usage: Optional[Usage] = None


# ---------- Images ----------
class ImageGenerationRequest(RequestModel):
    prompt: NonEmptyStr
    model: Optional[str] = None
    n: int = Field(default=1, ge=1, le=10)
    size: ImageSize = "256x256"
    response_format: ImageResponseFormat = "b64_json"
    user: Optional[str] = None


class ImageEditRequest(RequestModel):
    prompt: NonEmptyStr
    model: Optional[str] = None
    n: int = Field(default=1, ge=1, le=10)
    size: ImageSize = "256x256"
    response_format: ImageResponseFormat = "b64_json"
    user: Optional[str] = None


class ImageData(BaseModel):
    b64_json: Optional[str] = None
    url: Optional[str] = None
    revised_prompt: Optional[str] = None


class ImagesResponse(BaseModel):
    created: Optional[int] = None
    data: List[ImageData] = []


# ---------- Audio ----------
class TranscriptionRequest(RequestModel):
    model: NonEmptyStr
    prompt: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=1)
    language: Optional[str] = None
    response_format: Literal["json"] = "json"


class Transcription(BaseModel):
    text: str = ""


class SpeechRequest(RequestModel):
    model: NonEmptyStr
    input: str = Field(min_length=1, max_length=4096)
    voice: NonEmptyStr = "alloy"
    response_format: SpeechFormat = "mp3"
    speed: Optional[float] = Field(default=None, ge=0.25, le=4.0)


# ---------- Models ----------
class ModelInfo(BaseModel):
    id: str
    owned_by: Optional[str] = None
    created: Optional[int] = None


class ModelList(BaseModel):
    data: List[ModelInfo] = []
