"""Utilities for CLI."""
import copy
from typing import Any

from certgate._internal import constants

COMMAND_SEPARATOR = "--"


def flag_default(name: str) -> Any:
    """Default value for CLI flag."""
    return copy.deepcopy(constants.CLI_DEFAULTS[name])


def split_command(args: list[str]) -> tuple[list[str], list[str]]:
    """Separate certgate options from the wrapped command.

    Everything after the first ``--`` is the command to run once the
    checks are done.

    :returns: certgate arguments and wrapped command
    :rtype: tuple

    """
    if COMMAND_SEPARATOR not in args:
        return list(args), []
    index = args.index(COMMAND_SEPARATOR)
    return list(args[:index]), list(args[index + 1:])
