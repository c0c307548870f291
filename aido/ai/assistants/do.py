import logging
import platform
from typing import Dict, Optional

from rich.console import Console

from ...render import HighlightingUnavailable, render_command
from ...shell import Shell, execute
from ..agent import Agent, Environment
from ..answer import normalize_answer
from ..llm import LLMCompletionResponse

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "Give a {shell} one-liner to answer the question. "
    "The command will run on {os} {arch}. "
    "Do not use a code block or backticks."
)

REFINE_HINT = "Type to refine, Enter to accept, Ctrl+C to bail"
NO_ANSWER = "(no answer)"
INTERRUPTED_EXIT_CODE = 130


def build_system_prompt(template: str, shell: Shell) -> str:
    return template.format(
        shell=shell.label, os=platform.system(), arch=platform.machine()
    )


class CommandEnvironment(Environment):
    """
    Shows every suggested command to the user and asks for a correction.

    An empty reply accepts the current suggestion and ends the conversation,
    anything else is sent back to the model as the next question.
    """

    def __init__(self, shell: Shell, console: Optional[Console] = None):
        super().__init__()
        self.shell = shell
        self.console = console or Console()
        self.command = ""

    def handle_agent_response(self, agent_response: LLMCompletionResponse) -> Optional[str]:
        self.command = normalize_answer(agent_response.content or "")
        self._present(self.command)

        self.console.print(REFINE_HINT)
        refinement = self.read_user_prompt().strip()
        return refinement or None

    def _present(self, command: str):
        if not command:
            self.console.print(f"[dim]{NO_ANSWER}[/]")
            return

        try:
            render_command(command, self.shell.lexer, console=self.console)
        except HighlightingUnavailable as e:
            logger.info("%s Showing the plain command.", e)
            self.console.print(
                command, markup=False, highlight=False, emoji=False, soft_wrap=True
            )


def do(
    config: Dict,
    natural_language_description: str,
    shell: Shell,
    model: Optional[str] = None,
    dry_run: bool = False,
) -> int:
    """
    Asks the AI for a shell command, lets the user refine it and runs the
    accepted one. Returns the exit code for the process.
    """
    console = Console()
    err_console = Console(stderr=True)

    environment = CommandEnvironment(shell, console)
    system_prompt = build_system_prompt(config["system_prompt"], shell)
    agent = Agent(config, environment, system_prompt, model)

    try:
        agent.run(natural_language_description)
    except (KeyboardInterrupt, EOFError):
        err_console.print("\n[bold yellow]Aborted.[/]")
        return INTERRUPTED_EXIT_CODE

    command = environment.command
    if not command:
        console.print("Nothing to run.")
        return 0

    if dry_run:
        # Printed verbatim so it can be piped or copied.
        print(command)
        return 0

    outcome = execute(command, shell)
    if not outcome.success:
        err_console.print(f"[red]Command failed with exit code {outcome.exit_code}[/]")
    return outcome.exit_code
