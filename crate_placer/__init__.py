"""
Crate Placer
Re-anchor loot containers onto relocated buildings in a DayZ map

This package reads building placements from a mapgrouppos.xml document,
matches them against a table of known building types with authored
container positions, and writes one loot container record per container
with its position and orientation re-derived for the building's new pose.

Modules:
    main: Command line entry point
    config: Configuration management
    collector: Interactive collection of new building definitions
    core: Placement math, registry, classification and batch pipeline
    converters: Scene document reader and output writer
    resources: Packaged anchor table
    utils: Logging, error handling and progress tracking
"""

__version__ = "1.0.0"
__description__ = "Re-anchor loot containers onto relocated map buildings"
