from .mapgroup_parser import MapGroupParser, parse_scene_file
from .loot_writer import LootWriter, render_fragment, render_jsonl, FORMAT_FRAGMENT, FORMAT_JSONL

__all__ = [
    # Scene reader
    'MapGroupParser',
    'parse_scene_file',

    # Output sink
    'LootWriter',
    'render_fragment',
    'render_jsonl',
    'FORMAT_FRAGMENT',
    'FORMAT_JSONL',
]
