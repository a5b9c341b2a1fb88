import os
import json
import logging
from typing import Iterable

from ..core.models import OutputRecord
from ..utils.error_handler import SinkWriteError

logger = logging.getLogger(__name__)

FORMAT_FRAGMENT = "fragment"
FORMAT_JSONL = "jsonl"
OUTPUT_FORMATS = (FORMAT_FRAGMENT, FORMAT_JSONL)


def _fixed_list(values, precision: int) -> str:
    return "[" + ", ".join(f"{value:.{precision}f}" for value in values) + "]"


def render_fragment(record: OutputRecord, precision: int = 6) -> str:
    """Render a record as a pretty object followed by a comma.

    POS and ORI components are written with exactly ``precision`` decimals,
    which ``json.dumps`` cannot do, so the object is laid out by hand.
    """
    lines = []
    for key, value in record.to_dict().items():
        if key in ("POS", "ORI"):
            rendered = _fixed_list(value, precision)
        else:
            rendered = json.dumps(value)
        lines.append(f'  "{key}": {rendered}')
    return "{\n" + ",\n".join(lines) + "\n},"


def render_jsonl(record: OutputRecord, precision: int = 6) -> str:
    return json.dumps(record.to_dict(), separators=(",", ":"))


class LootWriter:
    """Append-only sink writing one rendered record at a time"""

    def __init__(self, output_path: str, output_format: str = FORMAT_FRAGMENT, precision: int = 6):
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {output_format}")
        self.output_path = output_path
        self.output_format = output_format
        self.precision = precision
        self.records_written = 0
        self._render = render_fragment if output_format == FORMAT_FRAGMENT else render_jsonl

    def truncate(self):
        """Empty the output file, creating it and its directory if needed"""
        try:
            directory = os.path.dirname(self.output_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.output_path, "w", encoding="utf-8"):
                pass
        except OSError as e:
            raise SinkWriteError(f"Cannot truncate output file {self.output_path}: {e}") from e

    def write(self, record: OutputRecord):
        self.write_all([record])

    def write_all(self, records: Iterable[OutputRecord]) -> int:
        """Append records in order and return how many were written"""
        count = 0
        try:
            with open(self.output_path, "a", encoding="utf-8") as f:
                for record in records:
                    f.write(self._render(record, self.precision) + "\n")
                    count += 1
        except OSError as e:
            raise SinkWriteError(f"Cannot write to output file {self.output_path}: {e}") from e
        finally:
            self.records_written += count

        logger.debug(f"Appended {count} records to {self.output_path}")
        return count

