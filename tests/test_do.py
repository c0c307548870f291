import io
import unittest
from unittest.mock import MagicMock, patch

from rich.console import Console

from aido.ai.assistants import do
from aido.ai.assistants.do import CommandEnvironment
from aido.ai.llm import LLMCompletionResponse
from aido.render import HighlightingUnavailable
from aido.shell import ExecutionOutcome, Shell


def _answer(content):
    return LLMCompletionResponse(assistant_message={"role": "assistant", "content": content})


class TestCommandEnvironment(unittest.TestCase):
    """Tests for presenting suggestions and reading corrections."""

    def setUp(self):
        self.console = Console(file=io.StringIO(), color_system=None, width=200)
        self.env = CommandEnvironment(Shell.BASH, self.console)

    @patch("builtins.input", return_value="")
    def test_empty_reply_accepts_the_command(self, mock_input):
        """Verify Enter on its own ends the conversation with the normalized command."""
        result = self.env.handle_agent_response(_answer("```bash\nls -la\n```"))

        self.assertIsNone(result)
        self.assertEqual(self.env.command, "ls -la")
        mock_input.assert_called_once_with("> ")

        output = self.console.file.getvalue()
        self.assertIn("ls -la", output)
        self.assertIn("╭", output)
        self.assertIn(do.REFINE_HINT, output)

    @patch("builtins.input", return_value="   ")
    def test_whitespace_reply_accepts_the_command(self, mock_input):
        self.assertIsNone(self.env.handle_agent_response(_answer("ls")))

    @patch("builtins.input", return_value="  only show hidden files \n")
    def test_reply_is_returned_trimmed_as_the_next_question(self, mock_input):
        result = self.env.handle_agent_response(_answer("ls -la"))

        self.assertEqual(result, "only show hidden files")

    @patch("builtins.input", return_value="")
    def test_empty_answer_shows_a_placeholder(self, mock_input):
        self.env.handle_agent_response(_answer(None))

        self.assertEqual(self.env.command, "")
        self.assertIn(do.NO_ANSWER, self.console.file.getvalue())
        self.assertNotIn("╭", self.console.file.getvalue())

    @patch("aido.ai.assistants.do.render_command", side_effect=HighlightingUnavailable("bash"))
    @patch("builtins.input", return_value="")
    def test_falls_back_to_plain_text_without_highlighting(self, mock_input, mock_render):
        """Verify a missing syntax definition still shows the command."""
        self.env.handle_agent_response(_answer("echo [done]"))

        mock_render.assert_called_once_with("echo [done]", "bash", console=self.console)
        self.assertIn("echo [done]\n", self.console.file.getvalue())
        self.assertEqual(self.env.command, "echo [done]")

    @patch("aido.ai.assistants.do.render_command", side_effect=HighlightingUnavailable("bash"))
    @patch("builtins.input", return_value="")
    def test_plain_fallback_keeps_emoji_codes(self, mock_input, mock_render):
        """Verify `:name:` sequences in a command are not turned into emoji."""
        self.env.handle_agent_response(_answer("cd :cd: && ls"))

        self.assertIn("cd :cd: && ls\n", self.console.file.getvalue())

    @patch("aido.ai.assistants.do.render_command")
    @patch("builtins.input", return_value="")
    def test_uses_the_shell_lexer(self, mock_input, mock_render):
        env = CommandEnvironment(Shell.POWERSHELL, self.console)

        env.handle_agent_response(_answer("Get-ChildItem"))

        mock_render.assert_called_once_with("Get-ChildItem", "powershell", console=self.console)


class TestBuildSystemPrompt(unittest.TestCase):
    @patch("aido.ai.assistants.do.platform.machine", return_value="x86_64")
    @patch("aido.ai.assistants.do.platform.system", return_value="Linux")
    def test_default_prompt_names_shell_and_platform(self, mock_system, mock_machine):
        prompt = do.build_system_prompt(do.DEFAULT_SYSTEM_PROMPT, Shell.BASH)

        self.assertEqual(
            prompt,
            "Give a bash one-liner to answer the question. "
            "The command will run on Linux x86_64. "
            "Do not use a code block or backticks.",
        )


class TestDoAssistant(unittest.TestCase):
    """Tests for the full synthesis loop of the `do` assistant."""

    def setUp(self):
        self.mock_config = {
            "provider": "test",
            "model": "test-model",
            "provider_configs": {},
            "system_prompt": "Answer with a {shell} command.",
        }

        patcher = patch("aido.ai.agent.LLMClient", autospec=True)
        self.mock_llm_instance = patcher.start().return_value
        self.addCleanup(patcher.stop)

        # Keep the preview and status messages out of the test output.
        console_patcher = patch("aido.ai.assistants.do.Console")
        self.MockConsole = console_patcher.start()
        self.addCleanup(console_patcher.stop)

    @patch("aido.ai.assistants.do.execute")
    @patch("builtins.input", side_effect=["use find instead", "only python files", ""])
    def test_two_refinements_then_accept(self, mock_input, mock_execute):
        """Verify one model call per round and a single execution at the end."""
        # Arrange
        self.mock_llm_instance.completion.side_effect = [
            _answer("ls -R"),
            _answer("find ."),
            _answer("```bash\nfind . -name '*.py'\n```"),
        ]
        mock_execute.return_value = ExecutionOutcome(0)

        # Action
        exit_code = do.do(self.mock_config, "list files recursively", Shell.BASH)

        # Assert
        self.assertEqual(self.mock_llm_instance.completion.call_count, 3)
        mock_execute.assert_called_once_with("find . -name '*.py'", Shell.BASH)
        self.assertEqual(exit_code, 0)

        # The last round carried the whole conversation.
        messages = self.mock_llm_instance.completion.call_args.kwargs["messages"]
        self.assertEqual(
            messages,
            [
                {"role": "system", "content": "Answer with a bash command."},
                {"role": "user", "content": "list files recursively"},
                {"role": "assistant", "content": "ls -R"},
                {"role": "user", "content": "use find instead"},
                {"role": "assistant", "content": "find ."},
                {"role": "user", "content": "only python files"},
            ],
        )

    @patch("aido.ai.assistants.do.execute")
    @patch("builtins.input", return_value="")
    def test_uses_the_given_model(self, mock_input, mock_execute):
        self.mock_llm_instance.completion.return_value = _answer("ls")
        mock_execute.return_value = ExecutionOutcome(0)

        do.do(self.mock_config, "list files", Shell.BASH, model="openai:gpt-4o")

        call_kwargs = self.mock_llm_instance.completion.call_args.kwargs
        self.assertEqual(call_kwargs["model"], "openai:gpt-4o")

    @patch("aido.ai.assistants.do.execute")
    @patch("builtins.input", return_value="")
    @patch("sys.stdout", new_callable=io.StringIO)
    def test_dry_run_prints_instead_of_executing(self, mock_stdout, mock_input, mock_execute):
        self.mock_llm_instance.completion.return_value = _answer("```sh\nrm -rf ./build\n```")

        exit_code = do.do(self.mock_config, "clean build", Shell.BASH, dry_run=True)

        mock_execute.assert_not_called()
        self.assertEqual(mock_stdout.getvalue(), "rm -rf ./build\n")
        self.assertEqual(exit_code, 0)

    @patch("aido.ai.assistants.do.execute")
    @patch("builtins.input", return_value="")
    def test_failed_command_is_reported_with_its_exit_code(self, mock_input, mock_execute):
        """Verify a command failing on its own is reported, not raised."""
        self.mock_llm_instance.completion.return_value = _answer("grep needle haystack.txt")
        mock_execute.return_value = ExecutionOutcome(7)

        exit_code = do.do(self.mock_config, "find the needle", Shell.BASH)

        self.assertEqual(exit_code, 7)
        self.MockConsole.return_value.print.assert_any_call(
            "[red]Command failed with exit code 7[/]"
        )

    @patch("aido.ai.assistants.do.execute")
    @patch("builtins.input", return_value="")
    def test_empty_answer_is_never_executed(self, mock_input, mock_execute):
        self.mock_llm_instance.completion.return_value = _answer("")

        exit_code = do.do(self.mock_config, "do nothing", Shell.BASH)

        mock_execute.assert_not_called()
        self.assertEqual(exit_code, 0)
        self.MockConsole.return_value.print.assert_any_call("Nothing to run.")

    @patch("aido.ai.assistants.do.execute")
    @patch("builtins.input", return_value="")
    @patch("sys.stdout", new_callable=io.StringIO)
    def test_empty_answer_in_dry_run_prints_nothing_to_run(
        self, mock_stdout, mock_input, mock_execute
    ):
        self.mock_llm_instance.completion.return_value = _answer("```\n```")

        exit_code = do.do(self.mock_config, "do nothing", Shell.BASH, dry_run=True)

        mock_execute.assert_not_called()
        self.assertEqual(exit_code, 0)
        self.assertEqual(mock_stdout.getvalue(), "")
        self.MockConsole.return_value.print.assert_any_call("Nothing to run.")

    @patch("aido.ai.assistants.do.execute")
    @patch("builtins.input", side_effect=KeyboardInterrupt)
    def test_interrupt_while_waiting_for_input_aborts(self, mock_input, mock_execute):
        self.mock_llm_instance.completion.return_value = _answer("rm -rf /")

        exit_code = do.do(self.mock_config, "delete everything", Shell.BASH)

        mock_execute.assert_not_called()
        self.assertEqual(exit_code, do.INTERRUPTED_EXIT_CODE)

    @patch("aido.ai.assistants.do.execute")
    @patch("builtins.input", side_effect=EOFError)
    def test_end_of_input_aborts(self, mock_input, mock_execute):
        self.mock_llm_instance.completion.return_value = _answer("ls")

        exit_code = do.do(self.mock_config, "list files", Shell.BASH)

        mock_execute.assert_not_called()
        self.assertEqual(exit_code, do.INTERRUPTED_EXIT_CODE)

    @patch("aido.ai.assistants.do.execute")
    def test_model_error_propagates_and_nothing_runs(self, mock_execute):
        self.mock_llm_instance.completion.side_effect = RuntimeError("quota exceeded")

        with self.assertRaises(RuntimeError):
            do.do(self.mock_config, "list files", Shell.BASH)

        mock_execute.assert_not_called()


if __name__ == "__main__":
    unittest.main()
