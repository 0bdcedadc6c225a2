"""Custom agent-chime exceptions."""


class ChimeError(Exception):
    """Base exception for agent-chime errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class ConfigError(ChimeError):
    """Exception raised for unreadable or invalid configuration."""

    pass


class PayloadError(ChimeError):
    """Exception raised when a hook payload is not valid JSON."""

    pass


class BackendUnavailable(ChimeError):
    """Exception raised when a TTS backend cannot be selected."""

    def __init__(
        self,
        message: str,
        backend: str,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.backend = backend


class UnknownBackend(BackendUnavailable):
    """No backend is registered under the requested name."""

    pass


class BackendDisabled(BackendUnavailable):
    """The backend is registered but its engine is not installed.

    This typically occurs when:
    - The optional extra for the engine was not installed
    - The OS speech command is missing (system backend)
    """

    pass


class ModelLoadFailure(ChimeError):
    """Exception raised when a backend cannot load its model."""

    pass


class SynthesisFailure(ChimeError):
    """Exception raised when a backend reports a synthesis error."""

    pass


class WorkerFailed(SynthesisFailure):
    """The isolated synthesis worker exited with a failure status."""

    def __init__(
        self,
        message: str,
        returncode: int,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.returncode = returncode


class SynthesisTimeout(ChimeError):
    """The isolated synthesis worker exceeded its deadline and was killed."""

    def __init__(self, message: str, timeout_seconds: float) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class WorkerCrashed(ChimeError):
    """The isolation mechanism itself failed while collecting worker output."""

    pass


class CacheWriteFailure(ChimeError):
    """Exception raised when audio cannot be written to the cache."""

    pass


class ManifestError(ChimeError):
    """Exception raised for unreadable or unparseable voicepack manifests."""

    pass


class PathTraversalRejected(ChimeError):
    """A voicepack file reference resolved outside the manifest root."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path
