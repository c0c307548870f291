import logging
from typing import Dict, Optional

from .conversation import Conversation
from .llm import LLMClient, LLMCompletionResponse

try:
    # Gives input() line editing and history where the platform has it.
    import readline  # noqa: F401
except ImportError:
    pass

logger = logging.getLogger(__name__)


class Environment:
    """Where the agent's answers end up. Decides whether the conversation goes on."""

    def read_user_prompt(self, message: str = "> ") -> str:
        return input(message)

    def handle_agent_response(self, agent_response: LLMCompletionResponse) -> Optional[str]:
        # By default, let the agent finish without further user prompts
        return None


class Agent:
    def __init__(
        self,
        config: Dict,
        env: Environment,
        system_prompt: str,
        model: Optional[str] = None,
    ):
        self.config = config
        self.env = env
        self.system_prompt = system_prompt
        self.model = model or f"{config['provider']}:{config['model']}"
        self.llm = LLMClient(self.config["provider_configs"])
        self.conversation: Optional[Conversation] = None

    def run(self, user_task: str, **kwargs) -> LLMCompletionResponse:
        """
        Talks to the model until the environment has no further instructions,
        returning the last completion response.

        Every round sends the whole conversation. The raw answer is recorded
        before the environment sees it, and whatever the environment replies
        becomes the next user turn.
        """
        self.conversation = Conversation.initialize(self.system_prompt, user_task)

        while True:
            logger.debug(
                "Round with %d turns sent to %s", len(self.conversation), self.model
            )
            response = self.llm.completion(
                model=self.model,
                messages=self.conversation.as_messages(),
                **kwargs
            )
            self.conversation.append_assistant_turn(response.content or "")

            new_instructions = self.env.handle_agent_response(response)
            if not new_instructions:
                # The agent's turn is over.
                return response

            self.conversation.append_user_turn(new_instructions)
