import unittest

from crate_placer.core.anchor_registry import AnchorRegistry
from crate_placer.core.batch_processor import BatchProcessor, process
from crate_placer.core.models import OutputRecord, Pose, SceneRecord
from crate_placer.utils.error_handler import ErrorCategory, ErrorHandler, MalformedRecordError

REGISTRY_DATA = {
    "anchors": [
        {
            "type_id": "Land_Shed",
            "position": [10.0, 1.0, 20.0],
            "items": [
                {"type_name": "Toolbox_Placement", "position": [11.0, 0.5, 20.0], "orientation": [0, 0, 0]},
                {"type_name": "Mystery_Box_Placement", "position": [10.0, 0.5, 21.0], "orientation": [45, 0, 0]},
            ],
        },
        {
            "type_id": "Land_Empty",
            "position": [0.0, 0.0, 0.0],
            "items": [],
        },
    ],
}


def shed_at(x, y, z, rpy="0 0 0"):
    return {"name": "Land_Shed", "pos": f"{x} {y} {z}", "rpy": rpy}


class TestSceneRecord(unittest.TestCase):
    def test_from_attributes(self):
        record = SceneRecord.from_attributes({"name": "Land_Shed", "pos": "1 2.5 -3", "rpy": "10 20 30"}, index=4)
        self.assertEqual(record.type_id, "Land_Shed")
        self.assertEqual(record.position, (1.0, 2.5, -3.0))
        self.assertEqual(record.orientation_rpy, (10.0, 20.0, 30.0))
        self.assertEqual(record.index, 4)

    def test_anchor_pose_permutes_to_yaw_pitch_roll(self):
        record = SceneRecord.from_attributes({"name": "Land_Shed", "pos": "0 0 0", "rpy": "10 20 30"})
        self.assertEqual(record.anchor_pose().orientation, (30.0, 20.0, 10.0))

    def test_malformed_attributes(self):
        bad = [
            {"pos": "0 0 0", "rpy": "0 0 0"},
            {"name": "Land_Shed", "rpy": "0 0 0"},
            {"name": "Land_Shed", "pos": "0 0", "rpy": "0 0 0"},
            {"name": "Land_Shed", "pos": "0 0 0", "rpy": "0 zero 0"},
        ]
        for attributes in bad:
            with self.assertRaises(MalformedRecordError, msg=str(attributes)):
                SceneRecord.from_attributes(attributes)


class TestOutputRecord(unittest.TestCase):
    def test_key_order_and_constants(self):
        record = OutputRecord("Land_Shed", "Toolbox", "ToolBoxLoot", (1.0, 2.0, 3.0), (90.0, 0.0, 0.0))
        data = record.to_dict()

        self.assertEqual(list(data), [
            "LocationName", "ContainerName", "LootTable", "UnlockTime", "ResetTimer", "POS",
            "KeyItem", "IsActive", "ORI", "ResetPlayerCheck", "ExactPlacing",
            "ContainerToggleable", "ActionID",
        ])
        self.assertEqual(data["UnlockTime"], 1)
        self.assertEqual(data["ResetTimer"], 1)
        self.assertEqual(data["KeyItem"], "")
        self.assertEqual(data["IsActive"], 1)
        self.assertEqual(data["ResetPlayerCheck"], 0)
        self.assertEqual(data["ExactPlacing"], 1)
        self.assertEqual(data["ContainerToggleable"], 1)
        self.assertEqual(data["ActionID"], 0)

    def test_from_pose_rounds_and_clears_negative_zero(self):
        record = OutputRecord.from_pose(
            "Land_Shed", "Toolbox", "ToolBoxLoot",
            Pose(position=(1.23456789, -0.0000001, 2.0), orientation=(12.3456789, 0.0, 0.0)),
            precision=6,
        )
        self.assertEqual(record.position, (1.234568, 0.0, 2.0))
        self.assertEqual(str(record.position[1]), "0.0")
        self.assertEqual(record.orientation, (12.345679, 0.0, 0.0))


class TestBatchProcessor(unittest.TestCase):
    def setUp(self):
        self.registry = AnchorRegistry.from_dict(REGISTRY_DATA)
        self.processor = BatchProcessor(self.registry)

    def test_unmoved_anchor_keeps_item_positions(self):
        outputs = list(self.processor.process([shed_at(10.0, 1.0, 20.0)]))

        self.assertEqual(len(outputs), 2)
        self.assertEqual(outputs[0].location_name, "Land_Shed")
        self.assertEqual(outputs[0].container_name, "Toolbox")
        self.assertEqual(outputs[0].loot_table, "ToolBoxLoot")
        self.assertEqual(outputs[0].position, (11.0, 0.5, 20.0))
        self.assertEqual(outputs[1].position, (10.0, 0.5, 21.0))
        self.assertEqual(outputs[1].orientation, (45.0, 0.0, 0.0))

    def test_yaw_comes_from_last_rpy_component(self):
        outputs = list(self.processor.process([shed_at(0.0, 0.0, 0.0, rpy="0 0 90")]))

        # offset (1, 0) turned by -90 degrees ends at (0, -1)
        self.assertEqual(outputs[0].position, (0.0, -0.5, -1.0))
        self.assertEqual(outputs[0].orientation, (90.0, 0.0, 0.0))
        self.assertEqual(outputs[1].position, (1.0, -0.5, 0.0))
        self.assertEqual(outputs[1].orientation, (135.0, 0.0, 0.0))

    def test_roll_component_does_not_rotate_offsets(self):
        outputs = list(self.processor.process([shed_at(0.0, 0.0, 0.0, rpy="90 0 0")]))

        self.assertEqual(outputs[0].position, (1.0, -0.5, 0.0))
        self.assertEqual(outputs[0].orientation, (0.0, 0.0, 90.0))

    def test_unknown_types_produce_nothing(self):
        records = [{"name": "Land_Unknown", "pos": "0 0 0", "rpy": "0 0 0"}, shed_at(0, 0, 0)]
        outputs = list(self.processor.process(records))

        self.assertEqual(len(outputs), 2)
        self.assertEqual(self.processor.stats.skipped_unknown, 1)
        self.assertEqual(self.processor.stats.records_matched, 1)
        self.assertEqual(self.processor.stats.records_seen, 2)

    def test_anchor_without_items_matches_but_places_nothing(self):
        outputs = list(self.processor.process([{"name": "Land_Empty", "pos": "1 1 1", "rpy": "0 0 0"}]))

        self.assertEqual(outputs, [])
        self.assertEqual(self.processor.stats.records_matched, 1)

    def test_malformed_mapping_is_skipped_and_reported(self):
        handler = ErrorHandler()
        processor = BatchProcessor(self.registry, error_handler=handler)
        records = [{"name": "Land_Shed", "pos": "1 2", "rpy": "0 0 0"}, shed_at(0, 0, 0)]

        outputs = list(processor.process(records))

        self.assertEqual(len(outputs), 2)
        self.assertEqual(processor.stats.skipped_malformed, 1)
        self.assertEqual(handler.warning_count, 1)
        self.assertEqual(len(handler.errors(category=ErrorCategory.PARSING)), 1)

    def test_nameless_mapping_is_reported_by_position(self):
        handler = ErrorHandler()
        processor = BatchProcessor(self.registry, error_handler=handler)
        records = [shed_at(0, 0, 0), {"pos": "1 2 3", "rpy": "0 0 0"}]

        list(processor.process(records))
        list(processor.process_parallel(records, max_workers=2))

        self.assertEqual([info.message for info in handler.error_log], ["Scene record #2 has no name"] * 2)
        self.assertEqual([info.context["record"] for info in handler.error_log], [2, 2])

    def test_on_record_sees_every_well_formed_record(self):
        seen = []
        processor = BatchProcessor(self.registry, on_record=lambda record: seen.append(record.type_id))
        records = [shed_at(0, 0, 0), {"name": "Land_Shed", "pos": "1 2"}, {"name": "Land_Unknown", "pos": "0 0 0", "rpy": "0 0 0"}]

        list(processor.process(records))

        self.assertEqual(seen, ["Land_Shed", "Land_Unknown"])

    def test_output_order_follows_records_then_items(self):
        records = [shed_at(100, 0, 0), shed_at(200, 0, 0), shed_at(300, 0, 0)]
        outputs = list(self.processor.process(records))

        self.assertEqual(
            [(o.position[0], o.container_name) for o in outputs],
            [
                (101.0, "Toolbox"), (100.0, "Mystery_Box"),
                (201.0, "Toolbox"), (200.0, "Mystery_Box"),
                (301.0, "Toolbox"), (300.0, "Mystery_Box"),
            ],
        )

    def test_unclassified_items_are_counted(self):
        list(self.processor.process([shed_at(0, 0, 0), shed_at(5, 0, 5)]))

        self.assertEqual(self.processor.stats.items_placed, 4)
        self.assertEqual(self.processor.stats.unclassified_items, 2)

    def test_process_is_lazy(self):
        outputs = self.processor.process(iter([shed_at(0, 0, 0)]))
        self.assertEqual(self.processor.stats.records_seen, 0)
        next(outputs)
        self.assertEqual(self.processor.stats.records_seen, 1)

    def test_parallel_matches_sequential(self):
        records = [shed_at(i * 10.0, 0.0, i * 3.0, rpy=f"0 0 {i * 17}") for i in range(25)]
        records.insert(7, {"name": "Land_Unknown", "pos": "0 0 0", "rpy": "0 0 0"})

        sequential = list(self.processor.process(records))
        sequential_stats = self.processor.get_summary()
        parallel = list(self.processor.process_parallel(records, max_workers=4))

        self.assertEqual(parallel, sequential)
        self.assertEqual(self.processor.get_summary(), sequential_stats)

    def test_accepts_scene_records(self):
        record = SceneRecord(type_id="Land_Shed", position=(10.0, 1.0, 20.0), orientation_rpy=(0.0, 0.0, 0.0))
        outputs = list(process([record], registry=self.registry))
        self.assertEqual(outputs[0].position, (11.0, 0.5, 20.0))

    def test_module_process_uses_packaged_table(self):
        records = [{"name": "Land_Workshop2", "pos": "10938.900391 7.30765 2695", "rpy": "0 0 0"}]
        outputs = list(process(records))

        self.assertEqual([o.container_name for o in outputs], ["Medical_Bag", "MedicalCrate", "WeaponCrate"])
        self.assertEqual(outputs[2].orientation, (270.0, 0.0, 0.0))


if __name__ == "__main__":
    unittest.main()
