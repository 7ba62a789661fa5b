import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import aiohttp
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .errors import AuthenticationError, OpenAIError
from .imaging import image_data_url, str_to_image_bytes
from .models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ImageEditRequest,
    ImageGenerationRequest,
    ImagesResponse,
    SpeechRequest,
    TranscriptionRequest,
)
from .openaicli import OpenAIClient, __version__

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"
BASE_URL_ENV = "OPENAI_BASE_URL"

DEFAULT_MODELS = {
    "dialogue": "gpt-4o-mini",
    "image-recognition": "gpt-4o-mini",
    "image-generation": "dall-e-2",
    "image-editing": "dall-e-2",
    "audio-generation": "tts-1",
    "audio-transcription": "whisper-1",
    "code-generation": "gpt-4o-mini",
}

RECOGNITION_PROMPT = "描述这个图片"
TRANSCRIPTION_PROMPT = "用简体中文"
TRANSCRIPTION_LANGUAGE = "zh"
SPEECH_FORMATS = {"mp3", "opus", "aac", "flac", "wav", "pcm"}


def resolve_api_key(flag_value: Optional[str]) -> str:
    key = (flag_value or "").strip() or (os.environ.get(API_KEY_ENV) or "").strip()
    if not key:
        raise AuthenticationError(
            "OpenAI API key not found. Set it using --key or OPENAI_API_KEY environment variable"
        )
    return key


def get_client(args: argparse.Namespace) -> OpenAIClient:
    return OpenAIClient(
        api_key=resolve_api_key(args.key),
        base_url=args.base_url or os.environ.get(BASE_URL_ENV) or None,
        timeout=args.timeout,
        ignore_ssl=args.insecure,
    )


def speech_format_for(output_file: str) -> str:
    ext = Path(output_file).suffix.lower().lstrip(".")
    return ext if ext in SPEECH_FORMATS else "mp3"


def _first_text(completion: ChatCompletionResponse) -> str:
    if not completion.choices:
        raise OpenAIError("no result, no choices returned")
    return completion.choices[0].message.content or ""


def _save_first_image(result: ImagesResponse, output_file: str, what: str) -> None:
    if not result.data or not result.data[0].b64_json:
        raise OpenAIError(f"no result, no image {what}")
    Path(output_file).write_bytes(str_to_image_bytes(result.data[0].b64_json))


# ---------- Commands ----------
async def dialogue(args):
    client = get_client(args)
    request = ChatCompletionRequest(
        model=args.model,
        messages=[ChatMessage(role="user", content=args.prompt)],
        max_tokens=5000,
    )
    async with client:
        completion = await client.create_chat_completion(request)
    if not completion.choices:
        raise OpenAIError("no result, no choices returned")
    for choice in completion.choices:
        print(choice.message.content or "")


async def image_recognition(args):
    client = get_client(args)
    request = ChatCompletionRequest(
        model=args.model,
        messages=[
            ChatMessage(
                role="user",
                content=[
                    {"type": "text", "text": args.prompt},
                    {"type": "image_url", "image_url": {"url": image_data_url(args.filename)}},
                ],
            )
        ],
        max_tokens=50,
        temperature=0.5,
        n=1,
    )
    async with client:
        completion = await client.create_chat_completion(request)
    print(_first_text(completion))


async def image_generation(args):
    client = get_client(args)
    request = ImageGenerationRequest(
        prompt=args.prompt,
        model=args.model,
        n=1,
        size="256x256",
        response_format="b64_json",
        user="Developer",
    )
    async with client:
        result = await client.create_image(request)
    _save_first_image(result, args.output, "data")
    print(f"Image saved to {args.output}")


async def image_editing(args):
    client = get_client(args)
    request = ImageEditRequest(
        prompt=args.instructions,
        model=args.model,
        n=1,
        size="256x256",
        response_format="b64_json",
    )
    async with client:
        result = await client.create_image_edit(args.input_file, request, mask_path=args.mask)
    _save_first_image(result, args.output_file, "edited")
    print(f"Image saved to {args.output_file}")


async def audio_generation(args):
    client = get_client(args)
    request = SpeechRequest(
        model=args.model,
        input=args.text,
        voice=args.voice,
        response_format=speech_format_for(args.output_file),
    )
    async with client:
        audio = await client.create_speech(request)
    Path(args.output_file).write_bytes(audio)
    print(f"Audio saved to {args.output_file}")


async def audio_transcription(args):
    client = get_client(args)
    request = TranscriptionRequest(
        model=args.model,
        prompt=args.prompt,
        temperature=0.5,
        language=args.language,
    )
    async with client:
        result = await client.create_transcription(args.filename, request)
    print(result.text)


async def code_generation(args):
    client = get_client(args)
    request = ChatCompletionRequest(
        model=args.model,
        messages=[ChatMessage(role="user", content=args.prompt)],
        max_tokens=5000,
        n=1,
        temperature=0.5,
    )
    async with client:
        completion = await client.create_chat_completion(request)
    print(_first_text(completion))


async def list_models(args):
    client = get_client(args)
    async with client:
        models = await client.list_models()
    for model_id in sorted(m.id for m in models.data):
        print(model_id)


COMMANDS = {
    "dialogue": dialogue,
    "image-recognition": image_recognition,
    "image-generation": image_generation,
    "image-editing": image_editing,
    "audio-generation": audio_generation,
    "audio-transcription": audio_transcription,
    "code-generation": code_generation,
    "models": list_models,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="openai-cli", description="A command-line tool for OpenAI API")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--key",
        default=None,
        help="OpenAI API key (can also be set using OPENAI_API_KEY environment variable)",
    )
    parser.add_argument("--base-url", default=None, help="API base URL (default: $OPENAI_BASE_URL or api.openai.com)")
    parser.add_argument("--timeout", type=float, default=120.0, help="HTTP timeout in seconds (default: 120)")
    parser.add_argument("--insecure", action="store_true", default=False, help="Disable SSL certificate verification")
    parser.add_argument("--debug", action="store_true", default=False, help="Enable debug logging")

    # Same global options, accepted after the subcommand too. SUPPRESS keeps
    # an absent sub-level flag from clobbering one given at the top level.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--key", default=argparse.SUPPRESS, help=argparse.SUPPRESS)
    common.add_argument("--base-url", default=argparse.SUPPRESS, help=argparse.SUPPRESS)
    common.add_argument("--timeout", type=float, default=argparse.SUPPRESS, help=argparse.SUPPRESS)
    common.add_argument("--insecure", action="store_true", default=argparse.SUPPRESS, help=argparse.SUPPRESS)
    common.add_argument("--debug", action="store_true", default=argparse.SUPPRESS, help=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text, parents=[common])
        if name in DEFAULT_MODELS:
            sub.add_argument(
                "--model",
                default=DEFAULT_MODELS[name],
                help=f"Model to use (default: {DEFAULT_MODELS[name]})",
            )
        return sub

    dialogue_parser = add_command("dialogue", "Generate text with a chat model")
    dialogue_parser.add_argument("prompt", help="Prompt text")

    recognition_parser = add_command("image-recognition", "Describe an image with a vision model")
    recognition_parser.add_argument("filename", help="Image file to describe")
    recognition_parser.add_argument(
        "--prompt", default=RECOGNITION_PROMPT, help=f"Instruction sent with the image (default: {RECOGNITION_PROMPT})"
    )

    generation_parser = add_command("image-generation", "Generate an image from a prompt")
    generation_parser.add_argument("prompt", help="Image description")
    generation_parser.add_argument("--output", default="output.png", help="Destination PNG file (default: output.png)")

    editing_parser = add_command("image-editing", "Edit an image following instructions")
    editing_parser.add_argument("input_file", help="Image to edit (PNG)")
    editing_parser.add_argument("instructions", help="Editing instructions")
    editing_parser.add_argument("output_file", help="Destination PNG file")
    editing_parser.add_argument("--mask", default=None, help="Optional PNG mask; transparent areas are edited")

    speech_parser = add_command("audio-generation", "Generate speech audio from text")
    speech_parser.add_argument("text", help="Text to speak")
    speech_parser.add_argument("output_file", help="Destination audio file; extension selects the format")
    speech_parser.add_argument("--voice", default="alloy", help="Voice to use (default: alloy)")

    transcription_parser = add_command("audio-transcription", "Transcribe speech from an audio file")
    transcription_parser.add_argument("filename", help="Audio file to transcribe")
    transcription_parser.add_argument(
        "--prompt", default=TRANSCRIPTION_PROMPT, help=f"Prompt guiding the transcription (default: {TRANSCRIPTION_PROMPT})"
    )
    transcription_parser.add_argument(
        "--language",
        default=TRANSCRIPTION_LANGUAGE,
        help=f"ISO-639-1 language of the audio (default: {TRANSCRIPTION_LANGUAGE})",
    )

    code_parser = add_command("code-generation", "Generate code from a prompt")
    code_parser.add_argument("prompt", help="Description of the code to write")

    add_command("models", "List models available to the API key")

    return parser


def main(argv: Optional[List[str]] = None):
    load_dotenv(find_dotenv(usecwd=True))
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )

    try:
        asyncio.run(COMMANDS[args.command](args))
    except AuthenticationError as e:
        logger.error(str(e))
        sys.exit(1)
    except (OpenAIError, ValidationError, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
