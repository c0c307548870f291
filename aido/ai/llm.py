import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import aisuite

logger = logging.getLogger(__name__)


@dataclass
class LLMCompletionResponse:
    """Wraps the full assistant message from the LLM API."""

    assistant_message: Dict

    @property
    def content(self) -> Optional[str]:
        """The text content of the message, if any."""
        return self.assistant_message.get("content")


class LLMClient:
    """
    A wrapper for the LLM client to abstract away the specific provider library.
    This allows for easier swapping of LLM providers in the future.
    """

    def __init__(self, provider_configs: Dict):
        """
        Initializes the LLM client.

        Args:
            provider_configs: A dictionary containing configuration for the LLM provider.
        """
        self.client = aisuite.Client(provider_configs)

    @staticmethod
    def format_system_message(content: str) -> Dict:
        return {"role": "system", "content": content}

    @staticmethod
    def format_user_message(content: str) -> Dict:
        return {"role": "user", "content": content}

    @staticmethod
    def format_assistant_message(content: str) -> Dict:
        return {"role": "assistant", "content": content}

    def completion(self, model: str, messages: List[Dict], **kwargs) -> LLMCompletionResponse:
        logger.debug("Requesting completion from %s with %d messages", model, len(messages))
        response = self.client.chat.completions.create(
            model=model, messages=messages, **kwargs
        )

        # The message object from aisuite/openai can be converted to a dict.
        # We exclude unset values to keep the payload clean and compatible.
        message_dict = response.choices[0].message.model_dump(exclude_unset=True)
        return LLMCompletionResponse(assistant_message=message_dict)
