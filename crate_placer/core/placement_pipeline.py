import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from .anchor_registry import AnchorRegistry, load_registry
from .batch_processor import BatchProcessor, BatchStats
from .classification import ClassificationResolver
from .models import SceneRecord
from ..config import Config
from ..converters.loot_writer import LootWriter
from ..converters.mapgroup_parser import MapGroupParser
from ..utils.error_handler import (
    CratePlacerError, ErrorCategory, ErrorHandler, ErrorSeverity,
    RegistryError, SceneParseError, SinkWriteError,
)
from ..utils.progress_tracker import LoggingProgressCallback, ProgressStage, ProgressTracker

logger = logging.getLogger(__name__)


@dataclass
class PlacementStats:
    """Statistics for a placement run"""
    start_time: float = 0.0
    end_time: float = 0.0
    anchor_types: int = 0
    batch: BatchStats = field(default_factory=BatchStats)
    records_written: int = 0

    parsing_time: float = 0.0
    placement_time: float = 0.0

    def get_duration(self) -> float:
        if self.end_time and self.start_time:
            return self.end_time - self.start_time
        return 0.0

    def get_summary(self) -> Dict[str, Any]:
        summary = {
            "total_time": self.get_duration(),
            "anchor_types": self.anchor_types,
            "records_written": self.records_written,
            "parsing_time": self.parsing_time,
            "placement_time": self.placement_time,
        }
        summary.update(self.batch.get_summary())
        return summary


class PlacementPipeline:
    """Runs registry loading, scene parsing, placement and output in order"""

    # error category for each fatal failure
    _FATAL_CATEGORIES = {
        RegistryError: ErrorCategory.CONFIGURATION,
        SceneParseError: ErrorCategory.PARSING,
        SinkWriteError: ErrorCategory.FILE_IO,
    }

    def __init__(self, config: Config, registry: Optional[AnchorRegistry] = None):
        self.config = config
        self.registry = registry
        self.stats = PlacementStats()
        self.error_handler = ErrorHandler()
        self.progress_tracker = ProgressTracker()
        self.progress_tracker.add_callback(LoggingProgressCallback())
        self.status_callback: Optional[Callable[[str], None]] = None

    def set_status_callback(self, callback: Callable[[str], None]):
        self.status_callback = callback

    def _update_status(self, status: str):
        logger.info(status)
        if self.status_callback:
            self.status_callback(status)

    def run(self, scene_path: Optional[str] = None, output_path: Optional[str] = None,
            truncate: bool = False) -> Tuple[bool, str, str]:
        """
        Place all containers for a scene document

        Args:
            scene_path: Scene document, defaults to ``config.paths.scene_file``
            output_path: Output file, defaults to ``config.paths.output_file``
            truncate: Empty the output file before writing

        Returns:
            Tuple of (success, output_path, message)
        """
        scene_path = scene_path or self.config.paths.scene_file
        output_path = output_path or self.config.paths.output_file
        self.stats = PlacementStats(start_time=time.time())

        try:
            registry = self._load_registry()
            records = self._parse_scene(scene_path)

            writer = LootWriter(
                output_path,
                output_format=self.config.placement.output_format,
                precision=self.config.placement.precision,
            )
            if truncate:
                writer.truncate()

            self._place(records, writer, registry)

        except CratePlacerError as e:
            category = self._FATAL_CATEGORIES.get(type(e), ErrorCategory.UNKNOWN)
            self.error_handler.handle_error(e, severity=ErrorSeverity.FATAL, category=category)
            return False, "", str(e)

        finally:
            self.stats.end_time = time.time()

        batch = self.stats.batch
        message = (
            f"Placed {batch.items_placed} containers for {batch.records_matched} of "
            f"{batch.records_seen} scene records in {self.stats.get_duration():.2f} seconds"
        )
        if batch.unclassified_items:
            message += f" ({batch.unclassified_items} need manual classification)"

        return True, output_path, message

    def _load_registry(self) -> AnchorRegistry:
        self.progress_tracker.begin_stage(ProgressStage.LOADING_REGISTRY)
        if self.registry is None:
            self.registry = load_registry(self.config.paths.registry_file or None)
        self.stats.anchor_types = len(self.registry)
        self.progress_tracker.end_stage(f"{len(self.registry)} anchor types")
        return self.registry

    def _parse_scene(self, scene_path: str) -> List[SceneRecord]:
        if not scene_path:
            raise SceneParseError("No scene file given")

        start_time = time.time()
        self._update_status(f"Parsing scene file {scene_path}...")
        self.progress_tracker.begin_stage(ProgressStage.PARSING_SCENE)

        parser = MapGroupParser(error_handler=self.error_handler)
        records = parser.parse_file(scene_path)

        self.progress_tracker.end_stage(f"{len(records)} records")
        self.stats.parsing_time = time.time() - start_time
        self.stats.batch.skipped_malformed = parser.skipped
        return records

    def _place(self, records: List[SceneRecord], writer: LootWriter, registry: AnchorRegistry):
        start_time = time.time()
        self._update_status(f"Placing containers for {len(records)} scene records...")
        self.progress_tracker.begin_stage(ProgressStage.REANCHORING, total=len(records))

        placement = self.config.placement
        processor = BatchProcessor(
            registry,
            resolver=ClassificationResolver(
                fallback=placement.fallback_category,
                suffix=placement.placement_suffix,
            ),
            precision=placement.precision,
            error_handler=self.error_handler,
            on_record=lambda record: self.progress_tracker.advance(detail=record.type_id),
        )

        threads = self.config.performance.get_thread_count()
        if threads > 1:
            outputs = processor.process_parallel(records, max_workers=threads)
        else:
            outputs = processor.process(records)

        try:
            self.stats.records_written = writer.write_all(outputs)
        finally:
            skipped_malformed = self.stats.batch.skipped_malformed
            self.stats.batch = processor.stats
            self.stats.batch.skipped_malformed += skipped_malformed
            self.stats.batch.records_seen += skipped_malformed
            self.stats.placement_time = time.time() - start_time

        self.progress_tracker.end_stage(f"{self.stats.records_written} containers written")

    def get_stats(self) -> PlacementStats:
        return self.stats
