import logging
import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

logger = logging.getLogger(__name__)

# Used when the platform can't tell us how the child exited (e.g. it was
# killed by a signal).
GENERIC_FAILURE_CODE = 1


class Shell(Enum):
    """The shells a generated command can be run with."""

    BASH = ("bash", "bash", ("-c",), "bash")
    POWERSHELL = ("powershell", "powershell", ("-NoProfile", "-Command"), "powershell")
    CMD = ("cmd", "cmd", ("/C",), "batch")

    def __init__(self, label: str, binary: str, flags: Tuple[str, ...], lexer: str):
        self.label = label
        self.binary = binary
        self.flags = flags
        self.lexer = lexer

    @classmethod
    def from_name(cls, name: str) -> "Shell":
        for shell in cls:
            if shell.label == name.lower():
                return shell
        raise ValueError(
            f"Unknown shell '{name}'. Choose one of: {', '.join(cls.names())}."
        )

    @classmethod
    def names(cls) -> List[str]:
        return [shell.label for shell in cls]

    @classmethod
    def default(cls) -> "Shell":
        return cls.POWERSHELL if os.name == "nt" else cls.BASH

    def argv(self, command: str) -> List[str]:
        return [self.binary, *self.flags, command]


@dataclass
class ExecutionOutcome:
    """How the child process running the command finished."""

    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def execute(command: str, shell: Shell) -> ExecutionOutcome:
    """
    Runs `command` as a single command line of `shell` and waits for it.

    The child shares our stdin, stdout and stderr, so its output goes straight
    to the user. Failing to start the shell at all raises OSError.
    """
    argv = shell.argv(command)
    logger.debug("Executing %s", argv)

    result = subprocess.run(argv, check=False)

    exit_code = result.returncode
    if exit_code is None or exit_code < 0:
        exit_code = GENERIC_FAILURE_CODE
    logger.debug("Command exited with %s (reported as %d)", result.returncode, exit_code)
    return ExecutionOutcome(exit_code)
