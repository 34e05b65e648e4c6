"""
Handles persistence of annotations per document namespace.
"""
import hashlib
import logging
from pathlib import Path
from typing import List, Optional, Union

from ..errors import PersistenceError
from ..storage import JsonFileStore
from ...utils.resource_loader import ResourceManager
from .models import Annotation

logger = logging.getLogger(__name__)

CONTENT_SAMPLE_LENGTH = 2000


def namespace_key(file_path: str, content_sample: str,
                  sample_length: int = CONTENT_SAMPLE_LENGTH) -> str:
    """
    Derive the storage namespace for a document.

    The key hashes the file path together with a fixed-length prefix of the
    document text, so the same file reopened later maps to the same
    namespace while a different file at the same path does not.

    Args:
        file_path: Path the document was opened from
        content_sample: Leading text of the document
        sample_length: Number of characters of the sample that count

    Returns:
        Namespace key such as "annot_3f2a..."
    """
    source = f"{file_path}|{content_sample[:sample_length]}"
    digest = hashlib.md5(source.encode('utf-8')).hexdigest()
    return f"annot_{digest}"


class AnnotationPersistence:
    """Manages saving and loading annotation records to/from disk."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        self._base_dir = base_dir
        self._store: Optional[JsonFileStore] = None

    @property
    def store(self) -> JsonFileStore:
        """Backing file store, created on first use."""
        if self._store is None:
            base_dir = self._base_dir
            if base_dir is None:
                base_dir = ResourceManager().annotations_dir
            self._store = JsonFileStore(base_dir)
        return self._store

    def save(self, namespace: str, annotations: List[Annotation]) -> None:
        """
        Save all annotations of a document namespace.

        Raises:
            PersistenceError: If the write did not complete
        """
        self.store.write(namespace, [ann.to_dict() for ann in annotations])

    def load(self, namespace: str) -> List[Annotation]:
        """
        Load annotations for a namespace.

        Malformed records are skipped and logged; a missing namespace
        yields an empty list.
        """
        records = self.store.read(namespace, default=[])
        if not isinstance(records, list):
            logger.error("Annotation file for %s is not a list; ignoring", namespace)
            return []

        annotations = []
        for record in records:
            try:
                annotations.append(Annotation.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed annotation record %r: %s", record, e)
        return annotations

    def delete(self, namespace: str) -> bool:
        """Delete the stored annotations for a namespace."""
        return self.store.delete(namespace)


__all__ = ["AnnotationPersistence", "PersistenceError", "namespace_key"]
