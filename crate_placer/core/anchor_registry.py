import json
import os
import logging
from typing import Dict, Iterator, List, Optional, Any, Iterable

from .models import AnchorDefinition
from ..resources import ANCHORS_RESOURCE, load_json_resource
from ..utils.error_handler import RegistryError

logger = logging.getLogger(__name__)


class AnchorRegistry:
    """Read-only lookup of known anchor types and their authored items"""

    def __init__(self, definitions: Iterable[AnchorDefinition] = ()):
        self._definitions: Dict[str, AnchorDefinition] = {}
        for definition in definitions:
            if definition.type_id in self._definitions:
                raise RegistryError(f"Duplicate anchor type in registry: {definition.type_id}")
            if any(definition.original_pose.orientation):
                logger.warning(
                    f"Anchor '{definition.type_id}' has a non-zero original orientation "
                    f"{definition.original_pose.orientation}; item offsets are rotated by the "
                    f"new yaw only"
                )
            self._definitions[definition.type_id] = definition

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnchorRegistry":
        entries = data.get("anchors") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise RegistryError("Registry data must be an object with an 'anchors' list")

        definitions: List[AnchorDefinition] = []
        for index, entry in enumerate(entries):
            try:
                definitions.append(AnchorDefinition.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                raise RegistryError(f"Invalid anchor entry #{index}: {e}") from e

        return cls(definitions)

    @classmethod
    def from_file(cls, file_path: str) -> "AnchorRegistry":
        if not os.path.exists(file_path):
            raise RegistryError(f"Registry file not found: {file_path}")

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RegistryError(f"Cannot read registry file {file_path}: {e}") from e

        registry = cls.from_dict(data)
        logger.info(f"Loaded {len(registry)} anchor types from {file_path}")
        return registry

    @classmethod
    def default(cls) -> "AnchorRegistry":
        """The packaged anchor table"""
        data = load_json_resource(ANCHORS_RESOURCE)
        if data is None:
            raise RegistryError(f"Packaged registry resource is unavailable: {ANCHORS_RESOURCE}")
        return cls.from_dict(data)

    def lookup(self, type_id: str) -> Optional[AnchorDefinition]:
        return self._definitions.get(type_id)

    def type_ids(self) -> List[str]:
        return list(self._definitions)

    def __contains__(self, type_id: str) -> bool:
        return type_id in self._definitions

    def __iter__(self) -> Iterator[AnchorDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)


def load_registry(file_path: Optional[str] = None) -> AnchorRegistry:
    """Load a registry file, or the packaged table when no path is given"""
    if file_path:
        return AnchorRegistry.from_file(file_path)
    return AnchorRegistry.default()
