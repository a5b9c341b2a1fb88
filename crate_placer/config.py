import json
import os
from pathlib import Path
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Any
import logging

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
OUTPUT_FORMATS = ["fragment", "jsonl"]


@dataclass
class PathConfig:
    """Configuration for file paths"""
    scene_file: str = ""
    output_file: str = "output.json"
    registry_file: str = ""  # empty uses the packaged anchor table
    log_dir: str = ""

    def validate(self) -> List[str]:
        """Validate all paths, return list of errors"""
        errors = []

        if self.scene_file and not os.path.exists(self.scene_file):
            errors.append(f"Scene file does not exist: {self.scene_file}")

        if self.registry_file and not os.path.exists(self.registry_file):
            errors.append(f"Registry file does not exist: {self.registry_file}")

        if not self.output_file:
            errors.append("Output file must be set")

        return errors


@dataclass
class PlacementConfig:
    """Configuration for placement and output rendering"""
    precision: int = 6
    placement_suffix: str = "_Placement"
    fallback_category: str = "CHANGEME"
    output_format: str = "fragment"  # "fragment" or "jsonl"

    def validate(self) -> List[str]:
        errors = []

        if not 0 <= self.precision <= 12:
            errors.append("Precision must be between 0 and 12")

        if not self.fallback_category:
            errors.append("Fallback category cannot be empty")

        if self.output_format not in OUTPUT_FORMATS:
            errors.append(f"Unsupported output format: {self.output_format}")

        return errors


@dataclass
class PerformanceConfig:
    """Configuration for performance settings"""
    use_multithreading: bool = False
    max_threads: int = 4
    log_level: str = "INFO"  # "DEBUG", "INFO", "WARNING", "ERROR"

    def validate(self) -> List[str]:
        errors = []

        if self.max_threads < 1:
            errors.append("Maximum threads must be at least 1")

        if self.log_level not in LOG_LEVELS:
            errors.append("Invalid log level")

        return errors

    def get_thread_count(self) -> int:
        if not self.use_multithreading:
            return 1
        return min(self.max_threads, max(1, (os.cpu_count() or 1)))


class Config:
    """Main configuration manager"""

    SECTIONS = ('paths', 'placement', 'performance')

    def __init__(self, config_file: Optional[str] = None):
        self.paths = PathConfig()
        self.placement = PlacementConfig()
        self.performance = PerformanceConfig()

        self.config_dir = Path.home() / ".config" / "crate_placer"
        self.config_file = Path(config_file) if config_file else self.config_dir / "settings.json"

    def validate_all(self) -> Dict[str, List[str]]:
        """Validate all configuration sections"""
        return {name: getattr(self, name).validate() for name in self.SECTIONS}

    def has_errors(self) -> bool:
        return any(self.validate_all().values())

    def get_error_summary(self) -> str:
        """Get formatted error summary"""
        errors = self.validate_all()

        if not any(errors.values()):
            return "No configuration errors"

        summary = "Configuration Errors:\n"
        for section, section_errors in errors.items():
            if section_errors:
                summary += f"\n{section.upper()}:\n"
                for error in section_errors:
                    summary += f"  - {error}\n"

        return summary

    def load(self, config_path: Optional[str] = None) -> bool:
        """Load configuration from a JSON file; a missing file keeps defaults"""
        path = Path(config_path) if config_path else self.config_file

        if not path.exists():
            logger.debug(f"No configuration file at {path}, using defaults")
            return False

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading config {path}: {e}")
            return False

        self.from_dict(data)
        logger.debug(f"Loaded configuration from {path}")
        return True

    def _load_section(self, data: dict, section_name: str, section_obj):
        """Load a configuration section, ignoring unknown keys"""
        section_data = data.get(section_name)
        if not isinstance(section_data, dict):
            return

        for key, value in section_data.items():
            if hasattr(section_obj, key):
                setattr(section_obj, key, value)
            else:
                logger.warning(f"Unknown configuration key: {section_name}.{key}")

    def save(self, config_path: Optional[str] = None) -> bool:
        """Save configuration to a JSON file"""
        path = Path(config_path) if config_path else self.config_file

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=4)
        except OSError as e:
            logger.error(f"Error saving config {path}: {e}")
            return False

        return True

    def to_dict(self) -> Dict[str, Any]:
        return {name: asdict(getattr(self, name)) for name in self.SECTIONS}

    def from_dict(self, data: Dict[str, Any]):
        for name in self.SECTIONS:
            self._load_section(data, name, getattr(self, name))

    def reset_to_defaults(self):
        self.paths = PathConfig()
        self.placement = PlacementConfig()
        self.performance = PerformanceConfig()


# Singleton instance
_config_instance = None


def get_config() -> Config:
    """Get global configuration instance"""
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
        _config_instance.load()
    return _config_instance
