import logging
from typing import Any, Optional

from repairdesk.config.settings import DEFAULT_GEMINI_MODEL
from repairdesk.errors import InternalError, ValidationError

logger = logging.getLogger(__name__)


class ChatProxy:
    """Stateless relay to the Gemini text-completion API.

    The client is built on first use so the app starts without a key; nothing
    about earlier messages is kept between calls.
    """

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_GEMINI_MODEL, client: Any = None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise InternalError('Chat service not configured')
            from google import genai
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def chat(self, message: Optional[str]) -> str:
        if not message or not str(message).strip():
            raise ValidationError('Message required')
        client = self.client
        try:
            response = client.models.generate_content(model=self.model, contents=message)
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise InternalError('Failed to get a response from the assistant') from e
        return response.text
