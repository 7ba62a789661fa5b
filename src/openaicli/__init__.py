"""
openaicli - command-line front-end and asynchronous client for the OpenAI API.
"""

from .errors import APIError, AuthenticationError, ImageDecodeError, OpenAIError
from .openaicli import OpenAIClient, __version__

__all__ = [
    "OpenAIClient",
    "OpenAIError",
    "APIError",
    "AuthenticationError",
    "ImageDecodeError",
    "__version__",
]
