"""
Exception taxonomy. Only ConfigurationError is allowed to escape the core.
Per-request failures (unknown service/action, failed auth, invalid payload, a hook or
handler that threw) are never raised; they travel as Err results tagged with an ErrorKind.
"""
from nile.core.result import ErrorKind


class NileError(Exception):
    kind: ErrorKind = ErrorKind.EXECUTION_ERROR


class ConfigurationError(NileError):
    """Deployment is broken: bad server config, missing secret, unknown strategy."""


class HookNotFoundError(ConfigurationError):
    def __init__(self, hook_name: str):
        super().__init__(f"Hook action '{hook_name}' not found in registered actions")
        self.hook_name = hook_name


class NoAuthHandlerError(ConfigurationError):
    """A protected action was called but no auth handler could be resolved."""

    kind = ErrorKind.NO_AUTH_HANDLER


class AuthenticationError(NileError):
    kind = ErrorKind.AUTH_FAILED


class MalformedCredentialError(AuthenticationError):
    """A credential is present but unusable, e.g. Authorization without the Bearer scheme."""
