"""
The `ai` package provides the conversation with the model: the agent loop,
the chat history it keeps and the LLM client it talks through.
"""

from .agent import Agent, Environment
from .answer import normalize_answer
from .assistants.do import do
from .conversation import Conversation, Turn


__all__ = [
    "Agent",
    "Environment",
    "Conversation",
    "Turn",
    "normalize_answer",
    "do",
]
