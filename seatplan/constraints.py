# seatplan/constraints.py
"""
Extracción de restricciones blandas a partir del historial de acomodos.

Para cada alumno se obtiene el último asiento ocupado y el último compañero de
pupitre. Gana la PRIMERA aparición encontrada, por lo que el historial debe
venir ordenado del más reciente al más antiguo (ver `sort_history`).
"""
import logging
import time
from datetime import date as _date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import LayoutConfig
from .model import (
    AssignmentResult,
    ConstraintMaps,
    HistoryRecord,
    LayoutEntry,
    Student,
)

LOG = logging.getLogger(__name__)

# Diferencia máxima de ids para considerar "vecinos" a dos asientos.
ADJACENCY_MAX_GAP = 2


def sort_history(history: Iterable[HistoryRecord]) -> List[HistoryRecord]:
    """Más reciente primero (por timestamp); el orden original desempata."""
    return sorted(history, key=lambda r: r.timestamp or 0, reverse=True)


def _shared_seat_pairs(layout: Sequence[LayoutEntry]) -> List[Tuple[str, str]]:
    by_seat: Dict[int, List[str]] = {}
    for e in layout:
        if e.student_name:
            by_seat.setdefault(e.seat_id, []).append(e.student_name)
    return [(names[0], names[1]) for names in by_seat.values() if len(names) >= 2]


def _adjacent_pairs(layout: Sequence[LayoutEntry], exclude: set) -> List[Tuple[str, str]]:
    entries = sorted(
        (e for e in layout if e.student_name and e.student_name not in exclude),
        key=lambda e: e.seat_id,
    )
    pairs: List[Tuple[str, str]] = []
    i = 0
    while i < len(entries) - 1:
        a, b = entries[i], entries[i + 1]
        if abs(b.seat_id - a.seat_id) <= ADJACENCY_MAX_GAP and a.student_name != b.student_name:
            pairs.append((a.student_name, b.student_name))
            i += 2
        else:
            i += 1
    return pairs


def record_partners(record: HistoryRecord, infer_adjacent: bool = True) -> List[Tuple[str, str]]:
    """
    Pares de compañeros de un registro.

    Usa `pair_info` si existe (una tupla vacía significa "sin pares"). Si no,
    infiere pares de alumnos que comparten id de asiento y, como respaldo
    aproximado (obsoleto), de ids consecutivos con diferencia <= 2.
    """
    if record.pair_info is not None:
        return [(a, b) for a, b in record.pair_info if a and b]

    pairs = _shared_seat_pairs(record.layout)
    if infer_adjacent:
        paired = {name for pair in pairs for name in pair}
        adjacent = _adjacent_pairs(record.layout, paired)
        if adjacent:
            LOG.info(
                "Registro %s sin pair_info: %d pares inferidos por cercanía de asientos",
                record.date, len(adjacent),
            )
        pairs.extend(adjacent)
    return pairs


class ConstraintExtractor:
    def __init__(self, infer_adjacent: bool = True):
        self.infer_adjacent = infer_adjacent

    def extract(
        self,
        history: Sequence[HistoryRecord],
        want_seat: bool = True,
        want_partner: bool = True,
    ) -> ConstraintMaps:
        last_seat: Dict[str, int] = {}
        last_partner: Dict[str, str] = {}

        for record in history:
            if want_seat:
                for e in record.layout:
                    if e.student_name and e.student_name not in last_seat:
                        last_seat[e.student_name] = int(e.seat_id)
            if want_partner:
                for a, b in record_partners(record, self.infer_adjacent):
                    last_partner.setdefault(a, b)
                    last_partner.setdefault(b, a)

        return ConstraintMaps(last_seat_by_student=last_seat, last_partner_by_student=last_partner)


def extract_constraints(
    history: Sequence[HistoryRecord],
    want_seat: bool = True,
    want_partner: bool = True,
    infer_adjacent: bool = True,
) -> ConstraintMaps:
    return ConstraintExtractor(infer_adjacent).extract(history, want_seat, want_partner)


def snapshot(result: AssignmentResult) -> ConstraintMaps:
    """Mapas "último asiento / último compañero" a partir de un resultado terminado."""
    last_seat = {name: slot_id for slot_id, name in result.seats.items() if name}
    last_partner: Dict[str, str] = {}
    for a, b in result.partners():
        last_partner[a] = b
        last_partner[b] = a
    return ConstraintMaps(last_seat_by_student=last_seat, last_partner_by_student=last_partner)


def record_from_result(
    result: AssignmentResult,
    students: Sequence[Student] = (),
    layout: Optional[LayoutConfig] = None,
    date: Optional[str] = None,
    timestamp: Optional[float] = None,
) -> HistoryRecord:
    """Registro de historial para un acomodo confirmado."""
    gender_by_name = {s.name: s.gender for s in students}
    entries = tuple(
        LayoutEntry(seat_id=slot.id, student_name=name, gender=gender_by_name.get(name, slot.gender))
        for slot in result.slots
        for name in [result.seats.get(slot.id)]
        if name
    )
    return HistoryRecord(
        date=date or _date.today().isoformat(),
        layout=entries,
        pair_info=tuple(result.partners()),
        timestamp=time.time() if timestamp is None else timestamp,
        layout_type=layout.layout_type if layout else None,
        single_mode=layout.single_mode if layout else None,
        pair_mode=layout.pair_mode if layout else None,
        partition_count=layout.partition_count if layout else None,
        group_size=layout.group_size if layout else None,
    )
