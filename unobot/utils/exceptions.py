"""Custom exception types used across the bot."""


class ConfigurationError(RuntimeError):
    """Required configuration or secrets are missing or malformed."""


class StartupError(RuntimeError):
    """A command module could not be imported or registered."""


class UnknownCommandError(LookupError):
    """An interaction named a command path nobody registered."""

    def __init__(self, path: str):
        super().__init__(f"No handler registered for command '{path}'")
        self.path = path


class ReporterError(Exception):
    """The external stats reporter rejected a request or was unreachable."""


class LobbyError(Exception):
    """Lobby operations that should be presented to the invoking user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
