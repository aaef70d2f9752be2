"""Custom exceptions for imagebuild.

Every error the build pipeline reports derives from ImageBuildError, so
callers can tell pipeline failures apart from programming errors.
"""


class ImageBuildError(Exception):
    """Base exception for errors raised by the build pipeline."""

    pass


class InvalidReferenceError(ImageBuildError, ValueError):
    """Raised when a tag or push reference cannot be parsed or normalized."""

    def __init__(self, reference: str, reason: str):
        """Initialize with the offending reference and the parse failure.

        Args:
            reference: Reference string as supplied by the caller
            reason: Human-readable description of what is wrong with it
        """
        self.reference = reference
        self.reason = reason
        super().__init__(f"invalid reference {reference!r}: {reason}")


class BuildEngineError(ImageBuildError):
    """Raised when the build engine reports a failed build."""

    pass


class SquashError(ImageBuildError):
    """Raised when squashing a built image fails.

    The message carries the operation context; the underlying failure is
    available as ``cause`` and as the chained ``__cause__``.
    """

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"error squashing image: {cause}")


class RegistryResolutionError(ImageBuildError):
    """Raised when a reference cannot be resolved to a registry index."""

    pass


class PushError(ImageBuildError):
    """Raised when the registry push reports a failure."""

    pass


class ImageComponentError(ImageBuildError):
    """Raised when the image store refuses an operation."""

    pass
