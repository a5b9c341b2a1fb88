import math
from typing import Tuple, Dict, Any, Mapping
from dataclasses import dataclass, field

from ..utils.error_handler import MalformedRecordError

Vector3 = Tuple[float, float, float]


def _vector3(values, label: str) -> Vector3:
    items = [float(v) for v in values]
    if len(items) != 3:
        raise ValueError(f"{label} needs 3 components, got {len(items)}")
    return (items[0], items[1], items[2])


@dataclass(frozen=True)
class Pose:
    """Position (x, y, z) plus orientation (yaw, pitch, roll) in degrees.

    ``y`` is the vertical axis; yaw turns about it.
    """
    position: Vector3
    orientation: Vector3 = (0.0, 0.0, 0.0)

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    @property
    def z(self) -> float:
        return self.position[2]

    @property
    def yaw(self) -> float:
        return self.orientation[0]

    def planar_distance_to(self, other: "Pose") -> float:
        """Distance to ``other`` on the horizontal (x, z) plane"""
        return math.hypot(other.x - self.x, other.z - self.z)


@dataclass(frozen=True)
class ItemDefinition:
    """A contained item as authored against the anchor's original pose"""
    type_name: str
    original_pose: Pose

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ItemDefinition":
        return cls(
            type_name=str(data["type_name"]),
            original_pose=Pose(
                position=_vector3(data["position"], "item position"),
                orientation=_vector3(data.get("orientation", (0, 0, 0)), "item orientation"),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_name": self.type_name,
            "position": list(self.original_pose.position),
            "orientation": list(self.original_pose.orientation),
        }


@dataclass(frozen=True)
class AnchorDefinition:
    """An anchor type with its baseline pose and ordered contained items"""
    type_id: str
    original_pose: Pose
    items: Tuple[ItemDefinition, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnchorDefinition":
        return cls(
            type_id=str(data["type_id"]),
            original_pose=Pose(
                position=_vector3(data["position"], "anchor position"),
                orientation=_vector3(data.get("orientation", (0, 0, 0)), "anchor orientation"),
            ),
            items=tuple(ItemDefinition.from_dict(item) for item in data.get("items", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_id": self.type_id,
            "position": list(self.original_pose.position),
            "orientation": list(self.original_pose.orientation),
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class SceneRecord:
    """One anchor instance placed in the world.

    ``orientation_rpy`` keeps the scene document's (roll, pitch, yaw) order.
    """
    type_id: str
    position: Vector3
    orientation_rpy: Vector3
    index: int = 0

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, str], index: int = 0) -> "SceneRecord":
        """Build a record from ``name``/``pos``/``rpy`` string attributes"""
        type_id = attributes.get("name")
        if not type_id:
            raise MalformedRecordError(f"Scene record #{index} has no name")

        fields = {}
        for key in ("pos", "rpy"):
            raw = attributes.get(key)
            if raw is None:
                raise MalformedRecordError(f"Scene record '{type_id}' is missing '{key}'")
            try:
                fields[key] = _vector3(raw.split(), key)
            except ValueError as e:
                raise MalformedRecordError(f"Scene record '{type_id}' has bad '{key}' value {raw!r}: {e}") from e

        return cls(
            type_id=type_id,
            position=fields["pos"],
            orientation_rpy=fields["rpy"],
            index=index,
        )

    def anchor_pose(self) -> Pose:
        """The new anchor pose, with orientation permuted to (yaw, pitch, roll)"""
        roll, pitch, yaw = self.orientation_rpy
        return Pose(position=self.position, orientation=(yaw, pitch, roll))


def _fixed(value: float, precision: int) -> float:
    # adding 0.0 turns -0.0 into 0.0
    return round(value, precision) + 0.0


@dataclass(frozen=True)
class OutputRecord:
    """One placed container, ready for the loot sink"""
    location_name: str
    container_name: str
    loot_table: str
    position: Vector3
    orientation: Vector3

    UNLOCK_TIME = 1
    RESET_TIMER = 1
    KEY_ITEM = ""
    IS_ACTIVE = 1
    RESET_PLAYER_CHECK = 0
    EXACT_PLACING = 1
    CONTAINER_TOGGLEABLE = 1
    ACTION_ID = 0

    @classmethod
    def from_pose(cls, location_name: str, container_name: str, loot_table: str,
                  pose: Pose, precision: int = 6) -> "OutputRecord":
        return cls(
            location_name=location_name,
            container_name=container_name,
            loot_table=loot_table,
            position=tuple(_fixed(v, precision) for v in pose.position),
            orientation=tuple(_fixed(v, precision) for v in pose.orientation),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "LocationName": self.location_name,
            "ContainerName": self.container_name,
            "LootTable": self.loot_table,
            "UnlockTime": self.UNLOCK_TIME,
            "ResetTimer": self.RESET_TIMER,
            "POS": list(self.position),
            "KeyItem": self.KEY_ITEM,
            "IsActive": self.IS_ACTIVE,
            "ORI": list(self.orientation),
            "ResetPlayerCheck": self.RESET_PLAYER_CHECK,
            "ExactPlacing": self.EXACT_PLACING,
            "ContainerToggleable": self.CONTAINER_TOGGLEABLE,
            "ActionID": self.ACTION_ID,
        }
