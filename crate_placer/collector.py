"""
Crate Placer - Definition Collector
Builds a new anchor definition from in-game position readouts

The collector is a request/response state machine: callers ask it for the
next prompt, show it however they like, and feed the answer back. It never
touches a terminal itself.
"""

import re
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from .core.models import AnchorDefinition, ItemDefinition, Pose
from .utils.error_handler import CollectorInputError

logger = logging.getLogger(__name__)

_COORDINATES = re.compile(r"<([^>]+)>")


class PromptKind(Enum):
    ANCHOR_POSITION = auto()
    ANCHOR_ORIENTATION = auto()
    ANCHOR_TYPE = auto()
    ITEM_POSITION = auto()
    ITEM_ORIENTATION = auto()
    ITEM_TYPE = auto()
    ADD_ANOTHER = auto()


@dataclass(frozen=True)
class Prompt:
    """A question for the operator; ``item_number`` is 1-based for item prompts"""
    kind: PromptKind
    text: str
    item_number: int = 0


def parse_coordinates(text: str) -> Tuple[float, float, float]:
    """Parse ``Position: <x, y, z>`` style readouts"""
    match = _COORDINATES.search(text)
    if not match:
        raise CollectorInputError(f"Expected a value like '<x, y, z>', got {text!r}")

    try:
        values = [float(part) for part in match.group(1).split(",")]
    except ValueError as e:
        raise CollectorInputError(f"Non-numeric coordinate in {text!r}") from e

    if len(values) != 3:
        raise CollectorInputError(f"Expected 3 coordinates, got {len(values)} in {text!r}")
    return values[0], values[1], values[2]


def parse_config_type(text: str) -> str:
    """Parse ``Config-Type: name`` readouts"""
    _, sep, name = text.partition(":")
    name = name.strip()
    if not sep or not name:
        raise CollectorInputError(f"Expected a value like 'Config-Type: name', got {text!r}")
    return name


class DefinitionCollector:
    """Collects one anchor and its items through typed prompts"""

    def __init__(self):
        self._kind: Optional[PromptKind] = PromptKind.ANCHOR_POSITION
        self._anchor_position = None
        self._anchor_orientation = None
        self._anchor_type: Optional[str] = None
        self._item_position = None
        self._item_orientation = None
        self._items: List[ItemDefinition] = []

    @property
    def is_complete(self) -> bool:
        return self._kind is None

    def next_prompt(self) -> Optional[Prompt]:
        if self._kind is None:
            return None

        number = len(self._items) + 1
        texts = {
            PromptKind.ANCHOR_POSITION: "Enter building position (format: Position: <x, y, z>): ",
            PromptKind.ANCHOR_ORIENTATION: "Enter building orientation (format: Orientation: <x, y, z>): ",
            PromptKind.ANCHOR_TYPE: "Enter building config type (format: Config-Type: name): ",
            PromptKind.ITEM_POSITION: f"Enter crate {number} position (format: Position: <x, y, z>): ",
            PromptKind.ITEM_ORIENTATION: f"Enter crate {number} orientation (format: Orientation: <x, y, z>): ",
            PromptKind.ITEM_TYPE: f"Enter crate {number} config type (format: Config-Type: name): ",
            PromptKind.ADD_ANOTHER: "Do you want to add another crate? (yes/no): ",
        }
        item_number = 0 if self._kind in (
            PromptKind.ANCHOR_POSITION, PromptKind.ANCHOR_ORIENTATION, PromptKind.ANCHOR_TYPE
        ) else number
        return Prompt(kind=self._kind, text=texts[self._kind], item_number=item_number)

    def answer(self, text: str):
        """Apply an answer to the current prompt.

        Raises CollectorInputError without changing state if the answer
        cannot be parsed.
        """
        kind = self._kind
        if kind is None:
            raise RuntimeError("Collection is already complete")

        if kind == PromptKind.ANCHOR_POSITION:
            self._anchor_position = parse_coordinates(text)
            self._kind = PromptKind.ANCHOR_ORIENTATION
        elif kind == PromptKind.ANCHOR_ORIENTATION:
            self._anchor_orientation = parse_coordinates(text)
            self._kind = PromptKind.ANCHOR_TYPE
        elif kind == PromptKind.ANCHOR_TYPE:
            self._anchor_type = parse_config_type(text)
            self._kind = PromptKind.ITEM_POSITION
        elif kind == PromptKind.ITEM_POSITION:
            self._item_position = parse_coordinates(text)
            self._kind = PromptKind.ITEM_ORIENTATION
        elif kind == PromptKind.ITEM_ORIENTATION:
            self._item_orientation = parse_coordinates(text)
            self._kind = PromptKind.ITEM_TYPE
        elif kind == PromptKind.ITEM_TYPE:
            self._items.append(ItemDefinition(
                type_name=parse_config_type(text),
                original_pose=Pose(position=self._item_position, orientation=self._item_orientation),
            ))
            self._kind = PromptKind.ADD_ANOTHER
        elif kind == PromptKind.ADD_ANOTHER:
            if text.strip().lower() == "yes":
                self._kind = PromptKind.ITEM_POSITION
            else:
                self._kind = None

    def result(self) -> AnchorDefinition:
        if not self.is_complete:
            raise RuntimeError("Collection is not complete")

        return AnchorDefinition(
            type_id=self._anchor_type,
            original_pose=Pose(position=self._anchor_position, orientation=self._anchor_orientation),
            items=tuple(self._items),
        )


def collect_definition(ask: Callable[[str], str],
                       report: Optional[Callable[[str], None]] = None) -> AnchorDefinition:
    """Drive a collector with ``ask`` until complete, re-asking on bad answers"""
    collector = DefinitionCollector()

    prompt = collector.next_prompt()
    while prompt is not None:
        try:
            collector.answer(ask(prompt.text))
        except CollectorInputError as e:
            logger.debug(f"Rejected answer for {prompt.kind.name}: {e}")
            if report:
                report(str(e))
        prompt = collector.next_prompt()

    definition = collector.result()
    logger.info(f"Collected anchor '{definition.type_id}' with {len(definition.items)} items")
    return definition
