import json
import os
import tempfile
import unittest

from crate_placer.converters.loot_writer import LootWriter, render_fragment, render_jsonl
from crate_placer.converters.mapgroup_parser import MapGroupParser, parse_scene_file
from crate_placer.core.models import OutputRecord
from crate_placer.utils.error_handler import ErrorHandler, SceneParseError, SinkWriteError

# Sample mapgrouppos.xml content
SCENE_SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<map>
    <group name="Land_Workshop2" pos="100 7.30765 200" rpy="0 0 90" a="-90"/>
    <group name="Land_House_1W02" pos="1.5 2.5 3.5" rpy="-0 0 -45"/>
</map>
"""

SCENE_WITH_BAD_GROUPS = """<map>
    <group name="Land_Workshop2" pos="1 2 3" rpy="0 0 0"/>
    <group name="Land_Workshop2" pos="1 2" rpy="0 0 0"/>
    <group pos="1 2 3" rpy="0 0 0"/>
    <group name="Land_Workshop2" pos="4 5 6"/>
    <group name="Land_House_1W02" pos="7 8 9" rpy="0 0 10"/>
</map>
"""

MEDICAL_BAG = OutputRecord(
    location_name="Land_Workshop2",
    container_name="Medical_Bag",
    loot_table="MedicalBagLoot",
    position=(99.340088, 6.11882, 198.0),
    orientation=(268.740952, 0.0, 0.0),
)

MEDICAL_BAG_FRAGMENT = """{
  "LocationName": "Land_Workshop2",
  "ContainerName": "Medical_Bag",
  "LootTable": "MedicalBagLoot",
  "UnlockTime": 1,
  "ResetTimer": 1,
  "POS": [99.340088, 6.118820, 198.000000],
  "KeyItem": "",
  "IsActive": 1,
  "ORI": [268.740952, 0.000000, 0.000000],
  "ResetPlayerCheck": 0,
  "ExactPlacing": 1,
  "ContainerToggleable": 1,
  "ActionID": 0
},"""


class TestMapGroupParser(unittest.TestCase):
    def test_parse_valid_data(self):
        parser = MapGroupParser()
        records = parser.parse_string(SCENE_SAMPLE)

        self.assertEqual(len(records), 2)
        self.assertEqual(records[0].type_id, "Land_Workshop2")
        self.assertEqual(records[0].position, (100.0, 7.30765, 200.0))
        self.assertEqual(records[0].orientation_rpy, (0.0, 0.0, 90.0))
        self.assertEqual(records[0].index, 1)
        self.assertEqual(records[1].orientation_rpy, (-0.0, 0.0, -45.0))
        self.assertEqual(records[1].index, 2)

    def test_parse_empty_map(self):
        self.assertEqual(MapGroupParser().parse_string("<map/>"), [])

    def test_bad_groups_are_skipped(self):
        handler = ErrorHandler()
        parser = MapGroupParser(error_handler=handler)
        records = parser.parse_string(SCENE_WITH_BAD_GROUPS)

        self.assertEqual([r.position for r in records], [(1.0, 2.0, 3.0), (7.0, 8.0, 9.0)])
        self.assertEqual([r.index for r in records], [1, 5])
        self.assertEqual(parser.skipped, 3)
        self.assertEqual(handler.warning_count, 3)
        self.assertEqual(handler.error_count, 0)

    def test_only_top_level_groups_are_read(self):
        text = """<map>
            <group name="Land_Workshop2" pos="1 2 3" rpy="0 0 0">
                <group name="Land_House_1W02" pos="4 5 6" rpy="0 0 0"/>
            </group>
            <extra><group name="Land_House_1W02" pos="7 8 9" rpy="0 0 0"/></extra>
        </map>"""
        records = MapGroupParser().parse_string(text)

        self.assertEqual([r.type_id for r in records], ["Land_Workshop2"])

    def test_broken_document_is_fatal(self):
        with self.assertRaises(SceneParseError):
            MapGroupParser().parse_string("<map><group name='x'")

    def test_wrong_root_is_fatal(self):
        with self.assertRaises(SceneParseError):
            MapGroupParser().parse_string("<world><group name='x' pos='0 0 0' rpy='0 0 0'/></world>")

    def test_parse_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "mapgrouppos.xml")
            with open(path, "w", encoding="utf-8") as f:
                f.write(SCENE_SAMPLE)

            records = parse_scene_file(path)

        self.assertEqual([r.type_id for r in records], ["Land_Workshop2", "Land_House_1W02"])

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SceneParseError):
                MapGroupParser().parse_file(os.path.join(tmp, "missing.xml"))


class TestLootWriter(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name
        self.output_path = os.path.join(self.tmp, "output.json")

    def tearDown(self):
        self._tmp.cleanup()

    def read_output(self):
        with open(self.output_path, "r", encoding="utf-8") as f:
            return f.read()

    def test_render_fragment(self):
        self.assertEqual(render_fragment(MEDICAL_BAG), MEDICAL_BAG_FRAGMENT)

    def test_render_fragment_precision(self):
        text = render_fragment(MEDICAL_BAG, precision=2)
        self.assertIn('"POS": [99.34, 6.12, 198.00]', text)

    def test_render_jsonl(self):
        data = json.loads(render_jsonl(MEDICAL_BAG))
        self.assertEqual(data, MEDICAL_BAG.to_dict())
        self.assertNotIn("\n", render_jsonl(MEDICAL_BAG))

    def test_write_fragments_in_order(self):
        other = OutputRecord("Land_Workshop2", "WeaponCrate", "WeaponCrateLoot", (1.0, 2.0, 3.0), (0.0, 0.0, 0.0))
        writer = LootWriter(self.output_path)

        self.assertEqual(writer.write_all([MEDICAL_BAG, other]), 2)
        writer.write(MEDICAL_BAG)

        text = self.read_output()
        self.assertTrue(text.startswith(MEDICAL_BAG_FRAGMENT + "\n{"))
        self.assertTrue(text.endswith(MEDICAL_BAG_FRAGMENT + "\n"))
        self.assertEqual(text.count("},\n"), 3)
        self.assertEqual(writer.records_written, 3)

    def test_write_jsonl(self):
        writer = LootWriter(self.output_path, output_format="jsonl")
        writer.write_all([MEDICAL_BAG, MEDICAL_BAG])

        lines = self.read_output().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual(json.loads(lines[1])["ContainerName"], "Medical_Bag")

    def test_appends_across_writers(self):
        LootWriter(self.output_path).write(MEDICAL_BAG)
        LootWriter(self.output_path).write(MEDICAL_BAG)
        self.assertEqual(self.read_output(), (MEDICAL_BAG_FRAGMENT + "\n") * 2)

    def test_truncate(self):
        with open(self.output_path, "w", encoding="utf-8") as f:
            f.write("stale")

        writer = LootWriter(self.output_path)
        writer.truncate()
        self.assertEqual(self.read_output(), "")

    def test_truncate_creates_directory(self):
        nested = os.path.join(self.tmp, "out", "loot.json")
        LootWriter(nested).truncate()
        self.assertTrue(os.path.isfile(nested))

    def test_write_failure_raises_sink_error(self):
        writer = LootWriter(self.tmp)
        with self.assertRaises(SinkWriteError):
            writer.write(MEDICAL_BAG)

    def test_unknown_format_rejected(self):
        with self.assertRaises(ValueError):
            LootWriter(self.output_path, output_format="xml")


if __name__ == "__main__":
    unittest.main()
