# seatplan/evaluation.py
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from .model import AssignmentResult, ConstraintMaps, Student


@dataclass
class EvaluationResult:
    repeated_seats: int
    repeated_partners: int
    mixed_pairs: int
    same_gender_pairs: int
    empty_slots: int
    unassigned: int
    partition_fill: np.ndarray      # asientos ocupados por partición (índice 0 = partición 1)
    partition_capacity: np.ndarray
    violations: List[str]


def evaluate(
    result: AssignmentResult,
    constraints: ConstraintMaps,
    students: Sequence[Student] = (),
) -> EvaluationResult:
    """Cuenta cuántas restricciones blandas no se pudieron respetar, entre otros indicadores."""
    n_partitions = max((s.partition_index for s in result.slots), default=0)
    fill = np.zeros(n_partitions, dtype=int)
    capacity = np.zeros(n_partitions, dtype=int)

    gender_by_name: Dict[str, str] = {s.name: s.gender for s in students}
    violations: List[str] = []
    repeated_seats = 0

    for slot in result.slots:
        capacity[slot.partition_index - 1] += 1
        name = result.seats.get(slot.id)
        if name is None:
            continue
        fill[slot.partition_index - 1] += 1
        if constraints.last_seat_by_student.get(name) == slot.id:
            repeated_seats += 1
            violations.append(f"{name} repite el asiento {slot.id}")

    repeated_partners = mixed = same = 0
    for a, b in result.partners():
        last = constraints.last_partner_by_student
        if last.get(a) == b or last.get(b) == a:
            repeated_partners += 1
            violations.append(f"{a} y {b} repiten como compañeros")
        ga, gb = gender_by_name.get(a), gender_by_name.get(b)
        if ga and gb:
            if ga == gb:
                same += 1
            else:
                mixed += 1

    empty = sum(1 for v in result.seats.values() if v is None)

    return EvaluationResult(
        repeated_seats=repeated_seats,
        repeated_partners=repeated_partners,
        mixed_pairs=mixed,
        same_gender_pairs=same,
        empty_slots=empty,
        unassigned=len(result.unassigned),
        partition_fill=fill,
        partition_capacity=capacity,
        violations=violations,
    )
