import tempfile
import unittest
from pathlib import Path

from seatplan.config import (
    AssignmentOptions,
    LayoutConfig,
    SeatingConfig,
    clamp_partition_count,
    load_config,
    normalize_layout,
    partition_range,
)
from seatplan.errors import WarningKind


class PartitionRangeTests(unittest.TestCase):
    def test_ranges_by_layout(self):
        self.assertEqual(partition_range("single-uniform"), (3, 6))
        self.assertEqual(partition_range("pair-uniform"), (3, 5))
        self.assertEqual(partition_range("group", 4), (3, 4))
        self.assertEqual(partition_range("group", 6), (2, 4))

    def test_clamp_to_nearest_bound(self):
        self.assertEqual(clamp_partition_count("group", 10, 6), 4)
        self.assertEqual(clamp_partition_count("single-uniform", 1), 3)
        self.assertEqual(clamp_partition_count("pair-uniform", 4), 4)

    def test_normalize_reports_clamp(self):
        cfg = LayoutConfig(layout_type="group", partition_count=10, group_size=6)
        fixed, warnings = normalize_layout(cfg)
        self.assertEqual(fixed.partition_count, 4)
        self.assertEqual([w.kind for w in warnings], [WarningKind.INVALID_LAYOUT_CONFIG])
        self.assertEqual(cfg.partition_count, 10)

    def test_normalize_in_range_untouched(self):
        cfg = LayoutConfig(partition_count=4)
        fixed, warnings = normalize_layout(cfg)
        self.assertIs(fixed, cfg)
        self.assertEqual(warnings, [])


class LayoutConfigTests(unittest.TestCase):
    def test_invalid_enum_rejected(self):
        with self.assertRaises(ValueError):
            LayoutConfig(layout_type="circle")
        with self.assertRaises(ValueError):
            LayoutConfig(group_size=7)

    def test_from_dict_accepts_group_alias(self):
        cfg = LayoutConfig.from_dict({"layout_type": "group", "group_size": "group-5", "partition_count": "4"})
        self.assertEqual(cfg.group_size, 5)
        self.assertEqual(cfg.partition_count, 4)
        self.assertEqual(cfg.single_mode, "basic-row")

    def test_options_from_dict(self):
        opts = AssignmentOptions.from_dict({"avoid_prev_seat": 1, "unknown": True})
        self.assertEqual(opts, AssignmentOptions(avoid_prev_seat=True, avoid_prev_partner=False))


class LoadConfigTests(unittest.TestCase):
    def test_missing_file_gives_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_config(str(Path(tmp) / "nope.yaml"))
        self.assertEqual(cfg, SeatingConfig())

    def test_yaml_file(self):
        text = (
            "seed: 5\n"
            "infer_adjacent_partners: false\n"
            "layout:\n"
            "  layout_type: pair-uniform\n"
            "  pair_mode: same-gender-pair\n"
            "  partition_count: 4\n"
            "options:\n"
            "  avoid_prev_partner: true\n"
        )
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text(text, encoding="utf-8")
            cfg = load_config(str(path))
        self.assertEqual(cfg.seed, 5)
        self.assertFalse(cfg.infer_adjacent_partners)
        self.assertEqual(cfg.layout.pair_mode, "same-gender-pair")
        self.assertEqual(cfg.layout.partition_count, 4)
        self.assertTrue(cfg.options.avoid_prev_partner)
        self.assertFalse(cfg.options.avoid_prev_seat)

    def test_non_mapping_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_config(str(path))


if __name__ == "__main__":
    unittest.main()
