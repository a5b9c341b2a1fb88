import logging
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

PLACEMENT_SUFFIX = "_Placement"
UNCLASSIFIED = "CHANGEME"

# Container type -> loot table
LOOT_TABLES: Dict[str, str] = {
    "Medical_Bag": "MedicalBagLoot",
    "SLC_Ammo_Box": "AmmoCanLoot",
    "SLC_Filing_Cabinet": "FillingCabinetLoot",
    "WeaponCrate": "WeaponCrateLoot",
    "ConsumableCrate": "DuffleLoot",
    "DrugCrate": "DuffleLoot",
    "MilitaryCrate": "MilitaryCrateLoot",
    "Computer_Tower": "Computer_Tower_Loot",
    "MedicalCrate": "MedicalBagLoot",
    "Building": "Building",
    "Safe": "SafeLoot",
    "Toolbox": "ToolBoxLoot",
    "Jacket_SLC": "JacketLoot",
    "Duffle_Bag": "DuffleLoot",
    "SLC_Wooden_Crate": "WoodenCrateLoot",
    "BuildingCrate_HackableCrate": "Locked_Crates",
    "SLC_Hidden_Stash": "Hidden_Stashes_Tisy",
    "SLC_Brief_Case": "BriefCaseLoot",
}


def clean_container_name(type_name: str, suffix: str = PLACEMENT_SUFFIX) -> str:
    """Strip the placement marker from a raw item type name"""
    return type_name.replace(suffix, "", 1) if suffix else type_name


class ClassificationResolver:
    """Maps container type names to loot tables.

    Lookups are exact (case and whitespace sensitive) after the placement
    suffix is stripped. Unknown names resolve to the fallback table, which
    flags the container for manual classification.
    """

    def __init__(self, table: Optional[Mapping[str, str]] = None,
                 fallback: str = UNCLASSIFIED,
                 suffix: str = PLACEMENT_SUFFIX):
        self.table: Dict[str, str] = dict(LOOT_TABLES if table is None else table)
        self.fallback = fallback
        self.suffix = suffix

    def clean(self, type_name: str) -> str:
        return clean_container_name(type_name, self.suffix)

    def classify(self, type_name: str) -> str:
        container_name = self.clean(type_name)
        loot_table = self.table.get(container_name)
        if loot_table is None:
            logger.debug(f"No loot table for container '{container_name}', using {self.fallback}")
            return self.fallback
        return loot_table

    def is_unclassified(self, loot_table: str) -> bool:
        return loot_table == self.fallback


def classify(type_name: str) -> str:
    return ClassificationResolver().classify(type_name)
