"""Loads and memoizes template documents, one per content category."""

import os
import threading
from typing import Dict, List, Optional

from ..errors import TemplateNotFoundError
from ..logging_config import get_logger
from ..models.document import Document
from ..models.settings import Settings
from ..models.template_type import TemplateType
from . import container_codec

logger = get_logger("template_cache")


class TemplateCache:
    """Template documents keyed by TemplateType.

    Each category is loaded at most once, on first use; concurrent first
    requests wait for the same load and get the same instance. Loaded
    documents are shared and must be treated as read-only. ``reload``
    drops cached entries so they are read again on next use.
    """

    def __init__(self, search_paths: List[str]):
        self.search_paths = [p for p in search_paths if p]
        self._templates: Dict[TemplateType, Document] = {}
        self._sources: Dict[TemplateType, str] = {}
        self._locks: Dict[TemplateType, threading.Lock] = {t: threading.Lock() for t in TemplateType}
        self.load_count = 0

    @classmethod
    def from_settings(cls, settings: Settings, base_path: str = ".") -> "TemplateCache":
        """Search the library folder first, then the default templates folder."""
        paths = []
        library = settings.get_library_path(base_path)
        if library:
            paths.append(library)
        paths.append(settings.get_templates_path(base_path))
        return cls(paths)

    def find_template(self, template_type: TemplateType) -> str:
        """Locate the template file for a category.

        The canonical ``__template_<type>__.pro`` name is tried in every
        search path before the legacy ``__template__<type>.pro`` name.

        Raises:
            TemplateNotFoundError: No file in any search path
        """
        for directory in self.search_paths:
            candidate = os.path.join(directory, template_type.filename)
            if os.path.isfile(candidate):
                return candidate

        for directory in self.search_paths:
            candidate = os.path.join(directory, template_type.legacy_filename)
            if os.path.isfile(candidate):
                logger.warning(
                    f"Using legacy template name {candidate}; "
                    f"rename it to {template_type.filename}"
                )
                return candidate

        raise TemplateNotFoundError(template_type.value, template_type.filename, self.search_paths)

    def has_template(self, template_type: TemplateType) -> bool:
        if template_type in self._templates:
            return True
        try:
            self.find_template(template_type)
        except TemplateNotFoundError:
            return False
        return True

    def get(self, template_type: TemplateType) -> Document:
        """Return the template document for a category, loading it on first use."""
        document = self._templates.get(template_type)
        if document is not None:
            return document

        with self._locks[template_type]:
            document = self._templates.get(template_type)
            if document is None:
                path = self.find_template(template_type)
                logger.info(f"Loading {template_type.value} template from {path}")
                document = container_codec.read_document(path)
                self.load_count += 1
                self._sources[template_type] = path
                self._templates[template_type] = document
        return document

    def load_from_bytes(self, template_type: TemplateType, data: bytes,
                        source: str = "<bytes>") -> Document:
        """Install a template from raw ``.pro`` bytes, replacing any cached one."""
        document = container_codec.decode(data, path=source)
        with self._locks[template_type]:
            self._templates[template_type] = document
            self._sources[template_type] = source
        logger.debug(f"Installed {template_type.value} template from {source}")
        return document

    def source_of(self, template_type: TemplateType) -> Optional[str]:
        return self._sources.get(template_type)

    def reload(self, template_type: Optional[TemplateType] = None) -> None:
        """Forget one category (or all) so the next ``get`` reads from disk."""
        types = [template_type] if template_type is not None else list(TemplateType)
        for t in types:
            with self._locks[t]:
                self._templates.pop(t, None)
                self._sources.pop(t, None)
        logger.debug(f"Template cache cleared for: {', '.join(t.value for t in types)}")

