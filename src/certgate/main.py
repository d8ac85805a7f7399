"""Certgate main public entry point."""
from typing import Optional
from typing import Union

from certgate._internal import main as internal_main


def main(cli_args: Optional[list[str]] = None) -> Optional[Union[str, int]]:
    """Run the pre-flight checks, then the wrapped command.

    :param cli_args: command line to certgate, defaults to ``sys.argv[1:]``
    :type cli_args: `list` of `str`

    :returns: value for `sys.exit` about the exit status of certgate
    :rtype: `str` or `int` or `None`

    """
    return internal_main.main(cli_args)
