"""
Applies the requested tags to a finished image.
"""

import logging
from typing import Iterable, List, Optional, TextIO, Union

from ..core.exceptions import InvalidReferenceError
from ..core.progress import StreamFormatter
from ..core.reference import NamedReference, parse_normalized_named
from .models import ImageID
from .protocol import ImageComponent

log = logging.getLogger(__name__)


def sanitize_repo_and_tags(names: Iterable[str]) -> List[NamedReference]:
    """
    Parse tag names into unique, tagged references.

    Empty names are skipped, names without a tag get ``latest``, and names
    that normalize to the same ``name:tag`` are kept once in first-seen order.

    Args:
        names: Tag names as supplied by the user

    Returns:
        Normalized references

    Raises:
        InvalidReferenceError: If a name is malformed or carries a digest
    """
    references: List[NamedReference] = []
    seen = set()
    for name in names:
        if not name:
            continue
        reference = parse_normalized_named(name)
        if reference.digest:
            raise InvalidReferenceError(name, "build tag cannot contain a digest")
        reference = reference.with_default_tag()
        if str(reference) not in seen:
            seen.add(str(reference))
            references.append(reference)
    return references


class Tagger:
    """Tags one image with a fixed set of references."""

    def __init__(
        self,
        image_component: ImageComponent,
        stdout: Union[StreamFormatter, TextIO],
        tags: Iterable[str],
    ):
        """
        Validate the tags up front so a bad name fails before any build work.

        Args:
            image_component: Image store used to apply the tags
            stdout: Sink for "Successfully tagged" lines
            tags: Tag names to apply

        Raises:
            InvalidReferenceError: If any tag is not a valid reference
        """
        self.image_component = image_component
        self.stdout = stdout
        self.repo_and_tags = sanitize_repo_and_tags(tags)

    async def tag_images(self, image_id: ImageID) -> None:
        """
        Apply every reference to image_id, in order.

        All references are attempted even when one fails; the first
        failure is raised once the rest have been tried.
        """
        first_error: Optional[Exception] = None
        for reference in self.repo_and_tags:
            try:
                await self.image_component.tag_image_with_reference(
                    image_id, reference
                )
            except Exception as e:
                log.error(f"Failed to tag {image_id} as {reference}: {e}")
                if first_error is None:
                    first_error = e
                continue
            self.stdout.write(f"Successfully tagged {reference.familiar_string()}\n")

        if first_error is not None:
            raise first_error
