from .exceptions import (
    BuildEngineError,
    ImageBuildError,
    ImageComponentError,
    InvalidReferenceError,
    PushError,
    RegistryResolutionError,
    SquashError,
)
from .progress import JSONMessage, ProgressOutput, ProgressWriter, StreamFormatter
from .reference import NamedReference, parse_normalized_named

__all__ = [
    "BuildEngineError",
    "ImageBuildError",
    "ImageComponentError",
    "InvalidReferenceError",
    "JSONMessage",
    "NamedReference",
    "ProgressOutput",
    "ProgressWriter",
    "PushError",
    "RegistryResolutionError",
    "SquashError",
    "StreamFormatter",
    "parse_normalized_named",
]
