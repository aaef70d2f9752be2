"""Helpers for displaying image identifiers."""

SHORT_ID_LENGTH = 12


def truncate_id(image_id: str) -> str:
    """Return the short display form of an image identifier.

    Strips a leading ``<algorithm>:`` prefix and keeps the first 12
    characters, e.g. ``sha256:4c7e...`` becomes ``4c7e1a2b3c4d``.
    """
    if ":" in image_id:
        image_id = image_id.split(":", 1)[1]
    return image_id[:SHORT_ID_LENGTH]
