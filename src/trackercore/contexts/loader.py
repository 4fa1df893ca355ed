"""
YAML loader with per-path caching for context manifests.

Usage::

    from trackercore.contexts.loader import ContextManifestLoader

    loader = ContextManifestLoader()
    manifest = loader.load(Path("contexts.yaml"))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar, Union

import yaml

from trackercore.contexts.manifest import ContextManifest

logger = logging.getLogger(__name__)


class ContextManifestLoader:
    """Loads and caches context manifests from YAML files."""

    _cache: ClassVar[dict[str, ContextManifest]] = {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the manifest cache (useful in tests)."""
        cls._cache.clear()

    def load(self, path: Union[str, Path]) -> ContextManifest:
        """Load a manifest from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            TypeError: If the YAML root is not a mapping.
            yaml.YAMLError: If the file contains invalid YAML.
            pydantic.ValidationError: If the YAML does not match the schema.
        """
        path = Path(path)
        key = str(path.resolve())
        if key in self._cache:
            logger.debug("Context manifest cache hit: %s", key)
            return self._cache[key]

        if not path.exists():
            raise FileNotFoundError(f"Context manifest not found: {path}")

        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        manifest = self._validate(raw, source=str(path))
        self._cache[key] = manifest

        logger.debug(
            "Loaded context manifest: path=%s, contexts=%d",
            path,
            len(manifest.contexts),
        )
        return manifest

    def load_from_string(self, yaml_str: str) -> ContextManifest:
        """Load a manifest from a YAML string (not cached)."""
        return self._validate(yaml.safe_load(yaml_str), source="<string>")

    @staticmethod
    def _validate(raw: object, source: str) -> ContextManifest:
        if not isinstance(raw, dict):
            raise TypeError(
                f"Expected a mapping at the root of {source}, got {type(raw).__name__}"
            )
        return ContextManifest.model_validate(raw)
