"""Exception types raised by the SDLC orchestrator."""


class SdlcError(Exception):
    """Base class for orchestrator errors."""


class ConfigurationError(SdlcError, ValueError):
    """Invalid settings or a precondition that makes a run impossible."""


class CollaboratorError(SdlcError, RuntimeError):
    """An external collaborator could not be reached or returned an unusable answer."""


class RunStateError(SdlcError, RuntimeError):
    """Illegal lifecycle transition on a run."""
