"""Certgate errors."""


class Error(Exception):
    """Generic certgate error."""


class ConfigurationError(Error):
    """Configuration sanity error."""


class PreconditionError(Error):
    """The container environment does not allow the companion to run.

    :ivar list hints: remediation hints shown to the user after the message

    """
    def __init__(self, message: str, hints: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.hints = hints

    def __str__(self) -> str:
        return "\n".join((super().__str__(),) + tuple(f"\t- {hint}" for hint in self.hints))


class RuntimeApiError(Error):
    """The container runtime API could not be queried."""
