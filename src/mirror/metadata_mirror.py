"""Copy closure units and repository references into a metadata destination."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from core.errors import MirrorError, MirrorRepositoryError
from core.logging_config import get_logger
from core.types import Unit
from store.repository import MetadataRepository

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class MetadataMirrorResult:
    """Counts of mirrored metadata records."""

    unit_count: int
    reference_count: int


def mirror_metadata(
    units: Iterable[Unit],
    source: MetadataRepository,
    destination: MetadataRepository,
    mirror_references: bool = True,
) -> MetadataMirrorResult:
    """Add closure units to the destination as one batch, then references.

    Args:
        units: Closure units to publish.
        source: Source metadata supplying repository references.
        destination: Destination metadata repository.
        mirror_references: Copy the source's repository references.

    Returns:
        Counts of added units and references.

    Raises:
        MirrorRepositoryError: If the destination rejects the batch.
    """
    batch = list(units)
    references = source.references() if mirror_references else ()
    try:
        destination.add_units(batch)
        if references:
            destination.add_references(references)
    except MirrorRepositoryError:
        raise
    except (OSError, MirrorError) as error:
        raise MirrorRepositoryError(
            f"Failed to write metadata to {destination.location}: {error}. "
            "Check the destination repository."
        ) from error
    _LOGGER.info(
        "metadata_mirror_finished",
        destination=destination.location,
        units=len(batch),
        references=len(references),
    )
    return MetadataMirrorResult(unit_count=len(batch), reference_count=len(references))
