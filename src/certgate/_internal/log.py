"""Logging utilities for certgate.

The best way to use this module is through `pre_arg_parse_setup` and
`post_arg_parse_setup`. `pre_arg_parse_setup` configures a minimal
terminal logger and an exception hook so errors raised while parsing
the command line are still reported. `post_arg_parse_setup` relies on
the parsed configuration to set the verbosity requested by the user.

Certgate runs as a container entrypoint, so everything goes to the
terminal and ends up in the container logs. There is no log file.

"""
import functools
import logging
import sys
import traceback
from types import TracebackType
from typing import IO
from typing import Optional
from typing import Type

from certgate import configuration
from certgate import errors
from certgate import util
from certgate._internal import constants

# Logging format
CLI_FMT = "%(levelname)s: %(message)s"


logger = logging.getLogger(__name__)


def pre_arg_parse_setup() -> None:
    """Setup logging before command line arguments are parsed.

    Terminal logging is setup using
    `certgate._internal.constants.QUIET_LOGGING_LEVEL` so certgate is as
    quiet as possible until the configuration is known. `sys.excepthook`
    is set to properly log fatal exceptions.

    """
    stream_handler = ColoredStreamHandler()
    stream_handler.setFormatter(logging.Formatter(CLI_FMT))
    stream_handler.setLevel(constants.QUIET_LOGGING_LEVEL)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # send all records to handlers
    root_logger.addHandler(stream_handler)

    sys.excepthook = functools.partial(
        post_arg_parse_except_hook, debug='--debug' in sys.argv)


def post_arg_parse_setup(config: configuration.NamespaceConfig) -> None:
    """Setup logging after command line arguments are parsed.

    This function assumes `pre_arg_parse_setup` was called earlier and
    the root logging configuration has not been modified.

    :param certgate.configuration.NamespaceConfig config: Configuration object

    """
    root_logger = logging.getLogger()
    stderr_handler = None
    for handler in root_logger.handlers:
        if isinstance(handler, ColoredStreamHandler):
            stderr_handler = handler
    msg = 'Previously configured logging handlers have been removed!'
    assert stderr_handler is not None, msg

    level = logging.DEBUG if config.debug else constants.DEFAULT_LOGGING_LEVEL
    stderr_handler.setLevel(level)
    logger.debug('Root logging level set at %d', level)

    sys.excepthook = functools.partial(post_arg_parse_except_hook, debug=config.debug)


class ColoredStreamHandler(logging.StreamHandler):
    """Sends colored logging output to a stream.

    If the specified stream is not a tty, the class works like the
    standard `logging.StreamHandler`. Default red_level is
    `logging.WARNING`.

    :ivar bool colored: True if output should be colored
    :ivar bool red_level: The level at which to output

    """
    def __init__(self, stream: Optional[IO] = None) -> None:
        super().__init__(stream)
        self.colored = (sys.stderr.isatty() if stream is None else
                        stream.isatty())
        self.red_level = logging.WARNING

    def format(self, record: logging.LogRecord) -> str:
        """Formats the string representation of record.

        :param logging.LogRecord record: Record to be formatted

        :returns: Formatted, string representation of record
        :rtype: str

        """
        out = super().format(record)
        if self.colored and record.levelno >= self.red_level:
            return ''.join((util.ANSI_SGR_RED, out, util.ANSI_SGR_RESET))
        return out


def post_arg_parse_except_hook(exc_type: Type[BaseException], exc_value: BaseException,
                               trace: TracebackType, debug: bool) -> None:
    """Logs fatal exceptions and exits.

    If debug is True, the full exception and traceback is shown to the
    user, otherwise, it is suppressed. sys.exit is always called with
    status 1.

    :param type exc_type: type of the raised exception
    :param BaseException exc_value: raised exception
    :param traceback trace: traceback of where the exception was raised
    :param bool debug: True if the traceback should be shown to the user

    """
    exc_info = (exc_type, exc_value, trace)
    if debug or not issubclass(exc_type, Exception):
        if exc_type is KeyboardInterrupt:
            logger.error('Exiting due to user request.')
            sys.exit(1)
        logger.error('Exiting abnormally:', exc_info=exc_info)
    else:
        logger.debug('Exiting abnormally:', exc_info=exc_info)
        if issubclass(exc_type, errors.Error):
            logger.error(str(exc_value))
            sys.exit(1)
        logger.error('An unexpected error occurred:')
        output = traceback.format_exception_only(exc_type, exc_value)
        # format_exception_only returns a list of strings each
        # terminated by a newline. We combine them into one string
        # and remove the final newline before passing it to
        # logger.error.
        logger.error(''.join(output).rstrip())
    sys.exit(1)
