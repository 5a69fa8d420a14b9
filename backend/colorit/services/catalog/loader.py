"""
JSON catalog loader.

Resolves a CatalogDescriptor to a file and decodes it into NamedColor entries.
Resolution order: external override -> <resource_dir>/<subdirectory>/<file>.json
-> <resource_dir>/<file>.json. Raises CatalogLoadError subclasses; the
registry records them per catalog.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from colorit.config import config
from .errors import CatalogBadEncoding, CatalogDecodeFailed, CatalogNotFound
from .models import CatalogDescriptor, NamedColor

_ENTRIES_ADAPTER = TypeAdapter(List[NamedColor])


class JsonCatalogLoader:
    """Reads catalog JSON arrays from a resource directory."""

    def __init__(self, resource_dir: Optional[Union[str, Path]] = None):
        self.resource_dir = Path(resource_dir or config.RESOURCE_DIR)
        self._overrides: Dict[str, Path] = {}

    def set_external_path(self, catalog_id: str, path: Optional[Union[str, Path]]) -> None:
        """Prefer *path* over bundled resources for *catalog_id*; None removes it."""
        if path is None:
            self._overrides.pop(catalog_id, None)
        else:
            self._overrides[catalog_id] = Path(path)

    def resolve(self, descriptor: CatalogDescriptor) -> Path:
        override = self._overrides.get(descriptor.id)
        if override is not None:
            if override.is_file():
                return override
            raise CatalogNotFound(descriptor.id, descriptor.display_name)

        filename = f"{descriptor.filename}.json"
        candidates = []
        if descriptor.subdirectory:
            candidates.append(self.resource_dir / descriptor.subdirectory / filename)
        candidates.append(self.resource_dir / filename)

        for candidate in candidates:
            if candidate.is_file():
                return candidate

        raise CatalogNotFound(descriptor.id, descriptor.display_name)

    def load(self, descriptor: CatalogDescriptor) -> List[NamedColor]:
        """
        Load and decode one catalog.

        Raises:
            CatalogNotFound: No file for the descriptor
            CatalogBadEncoding: File is not UTF-8
            CatalogDecodeFailed: Invalid JSON or entry schema
        """
        path = self.resolve(descriptor)
        data = path.read_bytes()
        return self.decode(descriptor, data)

    def decode(self, descriptor: CatalogDescriptor, data: bytes) -> List[NamedColor]:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CatalogBadEncoding(descriptor.id, descriptor.display_name, cause=e)

        try:
            entries = _ENTRIES_ADAPTER.validate_json(text)
        except ValidationError as e:
            raise CatalogDecodeFailed(descriptor.id, e, descriptor.display_name)

        logger.debug(f"Decoded {len(entries)} entries for catalog {descriptor.id}")
        return entries


def dump_entries(entries: List[NamedColor]) -> str:
    """Serialize entries in the catalog JSON format."""
    return json.dumps(
        [entry.model_dump(exclude_none=True) for entry in entries],
        ensure_ascii=False,
        indent=2,
    )
