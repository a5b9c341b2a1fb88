import os
from typing import Iterator, List, Optional
import logging
import xml.etree.ElementTree as ET

from ..core.models import SceneRecord
from ..utils.error_handler import (
    ErrorCategory, ErrorHandler, ErrorSeverity, MalformedRecordError, SceneParseError,
)

logger = logging.getLogger(__name__)


class MapGroupParser:
    """
    Parser for mapgrouppos.xml scene documents.

    The document is a ``<map>`` root with one ``<group>`` element per placed
    building::

        <map>
            <group name="Land_Workshop2" pos="100 7.3 200" rpy="0 0 90" a="-90"/>
        </map>

    Only ``<group>`` children of the root are read. A broken document is
    fatal; a single bad ``<group>`` is reported and skipped.
    """

    ROOT_TAG = "map"
    GROUP_TAG = "group"

    def __init__(self, error_handler: Optional[ErrorHandler] = None):
        self.error_handler = error_handler or ErrorHandler()
        self.records: List[SceneRecord] = []
        self.skipped = 0
        self.file_path: str = ""

    def parse_file(self, file_path: str) -> List[SceneRecord]:
        """Parse a scene document and return its valid records in document order"""
        return list(self.iter_records(file_path))

    def iter_records(self, file_path: str) -> Iterator[SceneRecord]:
        if not os.path.exists(file_path):
            raise SceneParseError(f"Scene file not found: {file_path}")

        logger.info(f"Parsing scene file: {file_path}")
        self.file_path = file_path

        try:
            root = ET.parse(file_path).getroot()
        except ET.ParseError as e:
            raise SceneParseError(f"Error parsing XML in {file_path}: {e}") from e
        except OSError as e:
            raise SceneParseError(f"Error reading scene file {file_path}: {e}") from e

        yield from self._iter_groups(root)
        logger.info(
            f"Parsed {len(self.records)} scene records from {file_path} "
            f"({self.skipped} skipped)"
        )

    def parse_string(self, text: str) -> List[SceneRecord]:
        self.file_path = "<string>"
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise SceneParseError(f"Error parsing XML: {e}") from e
        return list(self._iter_groups(root))

    def _iter_groups(self, root: ET.Element) -> Iterator[SceneRecord]:
        if root.tag != self.ROOT_TAG:
            raise SceneParseError(
                f"Expected <{self.ROOT_TAG}> root element, found <{root.tag}>"
            )

        self.records = []
        self.skipped = 0

        for index, group in enumerate(root.findall(self.GROUP_TAG), start=1):
            try:
                record = SceneRecord.from_attributes(group.attrib, index=index)
            except MalformedRecordError as e:
                self.skipped += 1
                self.error_handler.handle_error(
                    e,
                    severity=ErrorSeverity.WARNING,
                    category=ErrorCategory.PARSING,
                    context={"file_path": self.file_path, "group": index, "attributes": dict(group.attrib)},
                )
                continue

            self.records.append(record)
            yield record


def parse_scene_file(file_path: str) -> List[SceneRecord]:
    return MapGroupParser().parse_file(file_path)
