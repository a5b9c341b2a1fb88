import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from .anchor_registry import AnchorRegistry
from .classification import ClassificationResolver
from .models import OutputRecord, SceneRecord
from .reanchor import ReanchorEngine
from ..utils.error_handler import (
    ErrorCategory, ErrorHandler, ErrorSeverity, MalformedRecordError,
)

logger = logging.getLogger(__name__)

SceneInput = Union[SceneRecord, Mapping[str, str]]


@dataclass
class BatchStats:
    """Counters for one pass over the scene records"""
    records_seen: int = 0
    records_matched: int = 0
    skipped_unknown: int = 0
    skipped_malformed: int = 0
    items_placed: int = 0
    unclassified_items: int = 0

    def get_summary(self) -> Dict[str, Any]:
        return {
            "records_seen": self.records_seen,
            "records_matched": self.records_matched,
            "skipped_unknown": self.skipped_unknown,
            "skipped_malformed": self.skipped_malformed,
            "items_placed": self.items_placed,
            "unclassified_items": self.unclassified_items,
        }


class BatchProcessor:
    """
    Turns scene records into placed container records.

    Each record is matched to its anchor definition by type id; records of
    unknown types produce nothing. Output order follows the record order,
    then the authored item order within each anchor.
    """

    def __init__(self, registry: AnchorRegistry,
                 engine: Optional[ReanchorEngine] = None,
                 resolver: Optional[ClassificationResolver] = None,
                 precision: int = 6,
                 error_handler: Optional[ErrorHandler] = None,
                 on_record: Optional[Callable[[SceneRecord], None]] = None):
        self.registry = registry
        self.engine = engine or ReanchorEngine()
        self.resolver = resolver or ClassificationResolver()
        self.precision = precision
        self.error_handler = error_handler or ErrorHandler()
        self.on_record = on_record
        self.stats = BatchStats()

    def process(self, records: Iterable[SceneInput]) -> Iterator[OutputRecord]:
        """Lazily yield output records for ``records`` in order"""
        self.stats = BatchStats()
        for index, record in enumerate(records, start=1):
            scene_record = self._coerce(record, index)
            if scene_record is None:
                continue
            yield from self._collect(scene_record, self.place(scene_record))

    def process_parallel(self, records: Iterable[SceneInput], max_workers: int = 4) -> Iterator[OutputRecord]:
        """Like ``process`` but places records on a thread pool; order is kept"""
        self.stats = BatchStats()
        scene_records = [
            r for r in (self._coerce(record, index) for index, record in enumerate(records, start=1))
            if r is not None
        ]

        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            for scene_record, placed in zip(scene_records, executor.map(self.place, scene_records)):
                yield from self._collect(scene_record, placed)

    def place(self, record: SceneRecord) -> Optional[List[OutputRecord]]:
        """Place every item of the record's anchor; None when the type is unknown"""
        definition = self.registry.lookup(record.type_id)
        if definition is None:
            return None

        anchor_new = record.anchor_pose()
        new_poses = self.engine.reanchor_many(
            definition.original_pose,
            anchor_new,
            [item.original_pose for item in definition.items],
        )

        output = []
        for item, pose in zip(definition.items, new_poses):
            output.append(OutputRecord.from_pose(
                location_name=definition.type_id,
                container_name=self.resolver.clean(item.type_name),
                loot_table=self.resolver.classify(item.type_name),
                pose=pose,
                precision=self.precision,
            ))
        return output

    def _coerce(self, record: SceneInput, index: int = 0) -> Optional[SceneRecord]:
        self.stats.records_seen += 1
        if isinstance(record, SceneRecord):
            return record

        try:
            return SceneRecord.from_attributes(record, index=index)
        except MalformedRecordError as e:
            self.stats.skipped_malformed += 1
            self.error_handler.handle_error(
                e,
                severity=ErrorSeverity.WARNING,
                category=ErrorCategory.PARSING,
                context={"record": index, "attributes": dict(record)},
            )
            return None

    def _collect(self, record: SceneRecord, placed: Optional[List[OutputRecord]]) -> List[OutputRecord]:
        if self.on_record:
            self.on_record(record)

        if placed is None:
            self.stats.skipped_unknown += 1
            logger.debug(f"Skipping unknown anchor type '{record.type_id}'")
            return []

        self.stats.records_matched += 1
        self.stats.items_placed += len(placed)
        for output in placed:
            if self.resolver.is_unclassified(output.loot_table):
                self.stats.unclassified_items += 1
                logger.info(
                    f"Container '{output.container_name}' in '{output.location_name}' "
                    f"needs manual classification"
                )
        return placed

    def get_summary(self) -> Dict[str, Any]:
        return self.stats.get_summary()


def process(records: Iterable[SceneInput], registry: Optional[AnchorRegistry] = None) -> Iterator[OutputRecord]:
    """Process records against ``registry`` (the packaged table by default)"""
    processor = BatchProcessor(registry if registry is not None else AnchorRegistry.default())
    return processor.process(records)
