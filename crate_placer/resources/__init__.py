import json
from pathlib import Path
from typing import Dict, Optional, Any
import logging

logger = logging.getLogger(__name__)

ANCHORS_RESOURCE = "anchors.json"


class ResourceManager:
    """Manages packaged data files"""

    def __init__(self, resource_dir: Optional[str] = None):
        """
        Initialize resource manager

        Args:
            resource_dir: Path to resources directory (defaults to package resources)
        """
        self.resource_dir = Path(resource_dir) if resource_dir else Path(__file__).parent
        self._json_cache: Dict[str, Any] = {}

    def get_resource(self, relative_path: str) -> Optional[Path]:
        """Get any resource by relative path"""
        path = self.resource_dir / relative_path
        return path if path.exists() else None

    def load_json(self, relative_path: str) -> Optional[Dict[str, Any]]:
        """Load a JSON resource file, caching the parsed document"""
        if relative_path in self._json_cache:
            return self._json_cache[relative_path]

        path = self.get_resource(relative_path)
        if path is None:
            logger.error(f"JSON resource not found: {relative_path}")
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load JSON resource {relative_path}: {e}")
            return None

        self._json_cache[relative_path] = data
        return data


_global_resource_manager = None


def get_resource_manager() -> ResourceManager:
    """Get the global resource manager instance"""
    global _global_resource_manager
    if _global_resource_manager is None:
        _global_resource_manager = ResourceManager()
    return _global_resource_manager


def load_json_resource(relative_path: str) -> Optional[Dict[str, Any]]:
    """Load JSON resource (convenience function)"""
    return get_resource_manager().load_json(relative_path)


__all__ = [
    'ANCHORS_RESOURCE',
    'ResourceManager',
    'get_resource_manager',
    'load_json_resource'
]
