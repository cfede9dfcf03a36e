import unittest

from seatplan.assignment import AssignmentEngine
from seatplan.config import LayoutConfig
from seatplan.constraints import (
    ConstraintExtractor,
    extract_constraints,
    record_from_result,
    record_partners,
    snapshot,
    sort_history,
)
from seatplan.model import FEMALE, MALE, HistoryRecord, LayoutEntry, Student
from seatplan.topology import TopologyBuilder


def layout(*entries):
    return tuple(LayoutEntry(seat_id, name, gender) for seat_id, name, gender in entries)


class ExtractionTests(unittest.TestCase):
    def setUp(self):
        self.recent = HistoryRecord(
            date="2024-05-02",
            layout=layout((1, "Ana", FEMALE), (2, "Beto", MALE), (3, "Caro", FEMALE), (4, "Dani", MALE)),
            pair_info=(("Ana", "Beto"), ("Caro", "Dani")),
            timestamp=200.0,
        )
        self.older = HistoryRecord(
            date="2024-04-25",
            layout=layout((1, "Caro", FEMALE), (2, "Eva", FEMALE), (5, "Ana", FEMALE), (6, "Beto", MALE)),
            pair_info=(("Caro", "Eva"), ("Ana", "Beto")),
            timestamp=100.0,
        )

    def test_first_occurrence_wins(self):
        maps = ConstraintExtractor().extract([self.recent, self.older])
        self.assertEqual(maps.last_seat_by_student["Ana"], 1)
        self.assertEqual(maps.last_seat_by_student["Eva"], 2)
        self.assertEqual(maps.last_partner_by_student["Caro"], "Dani")
        self.assertEqual(maps.last_partner_by_student["Eva"], "Caro")

    def test_partner_map_is_symmetric(self):
        maps = ConstraintExtractor().extract([self.recent])
        for a, b in maps.last_partner_by_student.items():
            self.assertEqual(maps.last_partner_by_student[b], a)

    def test_only_requested_maps(self):
        maps = extract_constraints([self.recent], want_seat=False, want_partner=True)
        self.assertEqual(maps.last_seat_by_student, {})
        self.assertEqual(maps.last_partner_by_student["Ana"], "Beto")

    def test_idempotent(self):
        history = [self.recent, self.older]
        self.assertEqual(extract_constraints(history), extract_constraints(history))

    def test_sort_history_most_recent_first(self):
        self.assertEqual(sort_history([self.older, self.recent]), [self.recent, self.older])

    def test_empty_history(self):
        maps = extract_constraints([])
        self.assertEqual(maps.last_seat_by_student, {})
        self.assertEqual(maps.last_partner_by_student, {})


class PartnerInferenceTests(unittest.TestCase):
    def test_empty_pair_info_means_no_pairs(self):
        rec = HistoryRecord("2024-01-01", layout((1, "Ana", FEMALE), (2, "Beto", MALE)), pair_info=())
        self.assertEqual(record_partners(rec), [])

    def test_shared_seat_id_pairs(self):
        rec = HistoryRecord("2024-01-01", layout((1, "Ana", FEMALE), (1, "Beto", MALE), (9, "Caro", FEMALE)))
        self.assertEqual(record_partners(rec, infer_adjacent=False), [("Ana", "Beto")])

    def test_adjacent_ids_inferred(self):
        rec = HistoryRecord(
            "2024-01-01",
            layout((1, "Ana", FEMALE), (2, "Beto", MALE), (5, "Caro", FEMALE), (7, "Dani", MALE), (11, "Eva", FEMALE)),
        )
        self.assertEqual(record_partners(rec), [("Ana", "Beto"), ("Caro", "Dani")])

    def test_adjacency_can_be_disabled(self):
        rec = HistoryRecord("2024-01-01", layout((1, "Ana", FEMALE), (2, "Beto", MALE)))
        self.assertEqual(record_partners(rec, infer_adjacent=False), [])
        maps = ConstraintExtractor(infer_adjacent=False).extract([rec])
        self.assertEqual(maps.last_partner_by_student, {})


class SnapshotTests(unittest.TestCase):
    def test_snapshot_matches_extraction_of_confirmed_record(self):
        students = [Student(i + 1, f"M{i}", MALE) for i in range(3)]
        students += [Student(i + 4, f"F{i}", FEMALE) for i in range(3)]
        cfg = LayoutConfig(layout_type="pair-uniform", partition_count=3)
        slots = TopologyBuilder().build(cfg, 6, male_count=3)
        result = AssignmentEngine(seed=11).assign(slots, students)

        record = record_from_result(result, students, layout=cfg, date="2024-06-01", timestamp=1.0)
        self.assertEqual(record.layout_type, "pair-uniform")
        self.assertEqual(len(record.pair_info), 3)
        self.assertEqual(extract_constraints([record]), snapshot(result))

    def test_record_keeps_student_gender(self):
        students = [Student(1, "Ana", FEMALE)]
        slots = TopologyBuilder().build(LayoutConfig(), 1, male_count=1)
        result = AssignmentEngine(seed=0).assign(slots, students)
        record = record_from_result(result, students)
        self.assertEqual(record.layout, (LayoutEntry(1, "Ana", FEMALE),))
        self.assertEqual(record.pair_info, ())


if __name__ == "__main__":
    unittest.main()
