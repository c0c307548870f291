#!/usr/bin/env python3

import argparse
import argcomplete
import json
import logging
import os
import subprocess
import sys

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .ai import do
from .ai.assistants.do import DEFAULT_SYSTEM_PROMPT
from .shell import Shell


logger = logging.getLogger(__name__)

_ai_config: Dict = {}

CONFIG_PATH_ENV_VAR = "AIDO_CONFIG"
# Environment variables aisuite reads the API key from, per provider. Any one
# of them is enough. Providers missing here (aws, google, lmstudio, ollama, ...)
# authenticate some other way or not at all and are not checked up front.
PROVIDER_API_KEY_ENV_VARS = {
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "mistral": ("MISTRAL_API_KEY",),
    "groq": ("GROQ_API_KEY",),
    "huggingface": ("HF_TOKEN", "HUGGINGFACE_API_KEY"),
    "cohere": ("CO_API_KEY",),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "fireworks": ("FIREWORKS_API_KEY",),
    "together": ("TOGETHER_API_KEY",),
    "xai": ("XAI_API_KEY",),
    "deepseek": ("DEEPSEEK_API_KEY",),
    "sambanova": ("SAMBANOVA_API_KEY",),
    "cerebras": ("CEREBRAS_API_KEY",),
    "nebius": ("NEBIUS_API_KEY",),
    "openrouter": ("OPENROUTER_API_KEY",),
    "azure": ("AZURE_API_KEY",),
}


class Argument(ABC):
    def __init__(self, help: str, kwargs: Optional[dict] = None):
        self.help = help
        self.kwargs = kwargs if kwargs is not None else {}

    @abstractmethod
    def add_to_parser(self, parser: argparse.ArgumentParser):
        pass


class OptionalArg(Argument):
    def __init__(
        self,
        short_option: str,
        long_option: str,
        help: str,
        kwargs: Optional[dict] = None,
    ):
        super().__init__(help=help, kwargs=kwargs)
        self.short_option = short_option
        self.long_option = long_option

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(
            self.short_option, self.long_option, help=self.help, **self.kwargs
        )


class PositionalArg(Argument):
    def __init__(self, name: str, help: str, kwargs: Optional[dict] = None):
        super().__init__(help=help, kwargs=kwargs)
        self.name = name

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(self.name, help=self.help, **self.kwargs)


ARGUMENTS: List[Argument] = [
    PositionalArg(
        name="prompt",
        help="The natural language text to translate into a shell command.",
        kwargs={"nargs": "+"},
    ),
    OptionalArg(
        short_option="-m",
        long_option="--model",
        help="Which model to call, e.g. 'openai:gpt-4o'. Overrides the config file.",
    ),
    OptionalArg(
        short_option="-s",
        long_option="--shell",
        help="Shell to generate and run the command for. Overrides the config file.",
        kwargs={"choices": Shell.names()},
    ),
    OptionalArg(
        short_option="-n",
        long_option="--dry-run",
        help="Print the accepted command instead of running it.",
        kwargs={"action": "store_true"},
    ),
    OptionalArg(
        short_option="-v",
        long_option="--verbose",
        help="Log what the assistant is doing to stderr.",
        kwargs={"action": "store_true"},
    ),
    OptionalArg(
        short_option="-V",
        long_option="--version",
        help="Show the version and exit.",
        kwargs={"action": "version", "version": f"%(prog)s {__version__}"},
    ),
]


def _default_config() -> Dict:
    return {
        "provider": "openai",
        "model": "gpt-4o-mini",
        # aisuite falls back to the provider's API key environment variable
        # when no "api_key" is given here.
        "provider_configs": {"openai": {}},
        "shell": Shell.default().label,
        "system_prompt": DEFAULT_SYSTEM_PROMPT,
    }


def _config_path() -> str:
    return os.environ.get(CONFIG_PATH_ENV_VAR) or os.path.join(
        os.path.expanduser("~"), ".config", "aido", "config.json"
    )


def _create_config(config_path: str):
    print(f"Configuration file not found at '{config_path}'.")
    confirm = input("Do you want to create one now? [y/N] ")
    if confirm.lower() != "y":
        print("Configuration is required to talk to the AI. Aborting.", file=sys.stderr)
        sys.exit(1)

    os.makedirs(os.path.dirname(config_path), exist_ok=True)
    with open(config_path, "w") as config_file:
        json.dump(_default_config(), config_file, indent=2)

    editor = os.getenv("EDITOR") or ("notepad" if os.name == "nt" else "vi")
    print(f"Opening '{config_path}' with {editor}. Save and close it to continue.")
    try:
        subprocess.run([editor, config_path])
    except FileNotFoundError:
        print(
            f"Could not find editor '{editor}'. Edit '{config_path}' and try again.",
            file=sys.stderr,
        )
        sys.exit(1)


def _validate_ai_config():
    global _ai_config
    if _ai_config:
        return

    config_path = _config_path()
    if not os.path.exists(config_path):
        _create_config(config_path)

    try:
        with open(config_path, "r") as config_file:
            loaded = json.load(config_file)
        if not isinstance(loaded, dict):
            raise ValueError("the configuration must be a JSON object")
    except (OSError, ValueError) as e:
        print(f"Error reading or parsing '{config_path}': {e}", file=sys.stderr)
        sys.exit(1)

    logger.debug("Loaded configuration from %s", config_path)
    _ai_config = {**_default_config(), **loaded}


def _resolve_model(config: Dict, override: Optional[str]) -> str:
    model = override or config["model"]
    if ":" in model:
        return model
    return f"{config['provider']}:{model}"


def _validate_credentials(config: Dict, model: str):
    provider = model.split(":", 1)[0]
    env_vars = PROVIDER_API_KEY_ENV_VARS.get(provider)
    if env_vars is None:
        logger.debug("Not checking credentials of provider %s", provider)
        return

    provider_config = (config.get("provider_configs") or {}).get(provider) or {}
    api_key = provider_config.get("api_key")
    if not api_key and not any(os.environ.get(env_var) for env_var in env_vars):
        names = " or ".join(env_vars)
        print(
            f"Error: {names} not set. Please set it in your environment "
            "or in the config file.",
            file=sys.stderr,
        )
        sys.exit(1)


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aido",
        description="AI-powered one-liners for your shell. Describe what you want, "
        "refine the suggestion and run it.",
    )
    for arg in ARGUMENTS:
        arg.add_to_parser(parser)
    return parser


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    Parses command-line arguments, loads the configuration and runs the
    assistant. Returns the exit code for the process.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used automatically by `parse_args`.
    """
    parser = _build_parser()

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        _validate_ai_config()
        model = _resolve_model(_ai_config, args.model)
        _validate_credentials(_ai_config, model)
        shell = Shell.from_name(args.shell or _ai_config["shell"])

        return do(
            _ai_config,
            " ".join(args.prompt),
            shell,
            model=model,
            dry_run=args.dry_run,
        )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main():
    """The main entry point for the command-line interface, called by the `aido` script."""
    try:
        sys.exit(run_cli())
    except KeyboardInterrupt:
        print(file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
