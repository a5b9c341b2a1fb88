from typing import List, Sequence

import numpy as np

from .models import Pose
from .orientation_math import compose_orientation, rotate_offsets


class ReanchorEngine:
    """
    Re-derives contained item poses after their anchor has moved.

    Items are authored in world coordinates against the anchor's original
    pose. Their planar (x, z) offset from the anchor is rotated by the new
    anchor yaw, the vertical offset is carried over unrotated, and the full
    new anchor orientation is added to the item's own orientation.
    """

    def reanchor(self, anchor_original: Pose, anchor_new: Pose, item_original: Pose) -> Pose:
        """Compute the new pose of one item"""
        return self.reanchor_many(anchor_original, anchor_new, [item_original])[0]

    def reanchor_many(self, anchor_original: Pose, anchor_new: Pose,
                      items_original: Sequence[Pose]) -> List[Pose]:
        """Compute new poses for all items of one anchor, in input order"""
        if not items_original:
            return []

        positions = np.array([item.position for item in items_original], dtype=float)
        anchor_position = np.array(anchor_original.position, dtype=float)

        planar = positions[:, [0, 2]] - anchor_position[[0, 2]]
        vertical = positions[:, 1] - anchor_position[1]
        rotated = rotate_offsets(planar, anchor_new.yaw)

        new_poses = []
        for index, item in enumerate(items_original):
            new_position = (
                anchor_new.x + float(rotated[index, 0]),
                anchor_new.y + float(vertical[index]),
                anchor_new.z + float(rotated[index, 1]),
            )
            new_poses.append(Pose(
                position=new_position,
                orientation=compose_orientation(item.orientation, anchor_new.orientation),
            ))

        return new_poses


def reanchor(anchor_original: Pose, anchor_new: Pose, item_original: Pose) -> Pose:
    return ReanchorEngine().reanchor(anchor_original, anchor_new, item_original)
