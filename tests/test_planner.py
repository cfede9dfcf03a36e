import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

import run
from seatplan.config import AssignmentOptions, LayoutConfig, SeatingConfig
from seatplan.data_loader import load_history
from seatplan.errors import WarningKind
from seatplan.evaluation import evaluate
from seatplan.model import FEMALE, MALE, AssignmentResult, ConstraintMaps, HistoryRecord, LayoutEntry, SeatSlot, Student
from seatplan.planner import SeatingPlanner


def make_roster(n_male, n_female):
    students = [Student(i + 1, f"M{i + 1}", MALE) for i in range(n_male)]
    students += [Student(n_male + i + 1, f"F{i + 1}", FEMALE) for i in range(n_female)]
    return students


class PlannerTests(unittest.TestCase):
    def test_run_seats_everyone(self):
        cfg = SeatingConfig(layout=LayoutConfig(layout_type="pair-uniform", partition_count=3), seed=4)
        planner = SeatingPlanner(cfg, make_roster(9, 5))
        result = planner.run()
        self.assertTrue(result.is_complete)
        self.assertEqual(len(planner.slots), 14)
        self.assertEqual(len(result.partners()), 7)

    def test_seed_reproducible(self):
        cfg = SeatingConfig(layout=LayoutConfig(partition_count=4), seed=21)
        r1 = SeatingPlanner(cfg, make_roster(6, 6)).run()
        r2 = SeatingPlanner(cfg, make_roster(6, 6)).run()
        self.assertEqual(r1.seats, r2.seats)

    def test_out_of_range_partitions_reported_first(self):
        cfg = SeatingConfig(layout=LayoutConfig(partition_count=10), seed=0)
        planner = SeatingPlanner(cfg, make_roster(3, 3))
        result = planner.run()
        self.assertEqual(result.warnings[0].kind, WarningKind.INVALID_LAYOUT_CONFIG)
        self.assertEqual(max(s.partition_index for s in planner.slots), 6)

    def test_history_only_read_when_options_enabled(self):
        history = [HistoryRecord("2024-01-01", (LayoutEntry(1, "M1", MALE),), pair_info=())]
        off = SeatingPlanner(SeatingConfig(seed=0), make_roster(2, 2), history)
        off.run()
        self.assertEqual(off.constraints, ConstraintMaps())

        cfg = SeatingConfig(options=AssignmentOptions(avoid_prev_seat=True), seed=0)
        on = SeatingPlanner(cfg, make_roster(2, 2), history)
        result = on.run()
        self.assertEqual(on.constraints.last_seat_by_student, {"M1": 1})
        self.assertNotEqual(result.seat_of("M1"), 1)


class EvaluationTests(unittest.TestCase):
    def test_counts_repeats_and_fill(self):
        slots = [
            SeatSlot(1, 1, 1, MALE, pair_group_id=1),
            SeatSlot(2, 1, 1, FEMALE, pair_group_id=1),
            SeatSlot(3, 2, 1, MALE),
        ]
        result = AssignmentResult(seats={1: "A", 2: "B", 3: None}, slots=slots)
        constraints = ConstraintMaps(
            last_seat_by_student={"A": 1, "B": 3},
            last_partner_by_student={"A": "B", "B": "A"},
        )
        students = [Student(1, "A", MALE), Student(2, "B", FEMALE)]
        res = evaluate(result, constraints, students)
        self.assertEqual(res.repeated_seats, 1)
        self.assertEqual(res.repeated_partners, 1)
        self.assertEqual(res.mixed_pairs, 1)
        self.assertEqual(res.empty_slots, 1)
        self.assertEqual(res.partition_fill.tolist(), [2, 0])
        self.assertEqual(res.partition_capacity.tolist(), [2, 1])
        self.assertEqual(len(res.violations), 2)


class DriverTests(unittest.TestCase):
    def test_main_writes_outputs_and_confirms(self):
        with tempfile.TemporaryDirectory() as tmp:
            tmp = Path(tmp)
            (tmp / "roster.csv").write_text(
                "name,gender,fixed_seat_id\nAna,F,2\nBeto,M,\nCaro,F,\nDani,M,\nEva,F,\n",
                encoding="utf-8",
            )
            (tmp / "config.yaml").write_text(
                "layout:\n  layout_type: pair-uniform\noptions:\n  avoid_prev_partner: true\n",
                encoding="utf-8",
            )
            history = tmp / "history.json"
            out_dir = tmp / "out"
            argv = [
                "--config", str(tmp / "config.yaml"),
                "--roster", str(tmp / "roster.csv"),
                "--history", str(history),
                "--out_dir", str(out_dir),
                "--seed", "3",
                "--confirm",
            ]
            with contextlib.redirect_stdout(io.StringIO()) as buf:
                code = run.main(argv)

            self.assertEqual(code, 0)
            self.assertIn("ACOMODO DE ASIENTOS", buf.getvalue())

            seating = pd.read_csv(out_dir / "seating.csv")
            self.assertEqual(len(seating), 5)
            self.assertEqual(seating.loc[seating["Asiento"] == 2, "Alumno"].item(), "Ana")

            maps = json.loads((out_dir / "constraints.json").read_text(encoding="utf-8"))
            self.assertEqual(maps["lastSeatByStudent"]["Ana"], 2)

            (record,) = load_history(str(history))
            self.assertEqual(len(record.layout), 5)
            self.assertEqual(record.layout_type, "pair-uniform")

            with contextlib.redirect_stdout(io.StringIO()):
                run.main(argv)
            self.assertEqual(len(load_history(str(history))), 2)


if __name__ == "__main__":
    unittest.main()
