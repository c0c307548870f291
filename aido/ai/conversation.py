from dataclasses import dataclass
from typing import Dict, List, Tuple

from .llm import LLMClient

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One role-tagged message of the conversation."""

    role: str
    content: str


class Conversation:
    """
    The ordered chat history sent to the model on every round.

    The first turn is always the system instruction. Turns are only ever
    appended, so the model sees every earlier answer and every correction.
    """

    def __init__(self, system_instruction: str):
        self._turns: List[Turn] = [Turn(SYSTEM, system_instruction)]

    @classmethod
    def initialize(cls, system_instruction: str, initial_question: str) -> "Conversation":
        conversation = cls(system_instruction)
        conversation.append_user_turn(initial_question)
        return conversation

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def append_user_turn(self, text: str):
        if not text:
            raise ValueError("A user turn needs some text.")
        self._turns.append(Turn(USER, text))

    def append_assistant_turn(self, text: str):
        self._turns.append(Turn(ASSISTANT, text))

    def as_messages(self) -> List[Dict]:
        formatters = {
            SYSTEM: LLMClient.format_system_message,
            USER: LLMClient.format_user_message,
            ASSISTANT: LLMClient.format_assistant_message,
        }
        return [formatters[turn.role](turn.content) for turn in self._turns]
