"""
Error taxonomy for the weekly program pipeline.

Fatal errors abort a request: ConfigurationError, GatewayError,
ValidationError, PersistenceError. CacheError is raised by cache backends
and absorbed by the cache adapter.
"""


class ProgramPipelineError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(ProgramPipelineError):
    """Invalid signature inputs or configuration."""


class GatewayError(ProgramPipelineError):
    """The generation call failed or returned nothing usable."""


class ValidationError(ProgramPipelineError):
    """The raw draft failed structural validation."""

    def __init__(self, message, violations=None):
        super().__init__(message)
        self.violations = list(violations or [])

    @property
    def codes(self):
        return {violation["code"] for violation in self.violations}


class PersistenceError(ProgramPipelineError):
    """The history write failed."""


class CacheError(ProgramPipelineError):
    """A cache read or write failed."""
