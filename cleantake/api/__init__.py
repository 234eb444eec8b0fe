"""HTTP clients for the remote speech-to-text and language-model services.

WHY: The pipeline depends on two opaque remote services. This package
keeps every request shape, auth header, and response format in one
place.

HOW: Uses httpx.AsyncClient. SpeechClient (speech.py) and ChatClient
(chat.py) are async context managers; response shapes are parsed into
dataclasses defined in models.py.

RULES:
- All outbound service HTTP goes through these clients
- Each client is opened per request and closed afterwards
"""

from cleantake.api.chat import ChatClient
from cleantake.api.speech import SpeechClient

__all__ = ["ChatClient", "SpeechClient"]
