# seatplan/model.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .errors import AssignmentWarning

MALE = "M"
FEMALE = "F"
GENDERS = (MALE, FEMALE)

SlotId = int


def other_gender(gender: str) -> str:
    return FEMALE if gender == MALE else MALE


@dataclass(frozen=True)
class Student:
    id: int
    name: str
    gender: str                       # "M" / "F"
    fixed_seat_id: Optional[int] = None

    def __post_init__(self):
        if self.gender not in GENDERS:
            raise ValueError(f"Género inválido para {self.name!r}: {self.gender!r}")


@dataclass(frozen=True)
class SeatSlot:
    # Un "slot" = posición abstracta de asiento (sin coordenadas de pantalla)
    id: SlotId
    partition_index: int              # 1-based
    row: int                          # 1-based dentro de la partición
    gender: str                       # flujo de género que generó el slot
    pair_group_id: Optional[int] = None
    group_id: Optional[int] = None
    group_row: Optional[int] = None
    group_col: Optional[int] = None
    assigned_student_id: Optional[int] = None

    @property
    def is_linked(self) -> bool:
        return self.pair_group_id is not None or self.group_id is not None


@dataclass(frozen=True)
class LayoutEntry:
    seat_id: SlotId
    student_name: str
    gender: str


@dataclass(frozen=True)
class HistoryRecord:
    """Un acomodo confirmado en una ejecución anterior."""

    date: str
    layout: Tuple[LayoutEntry, ...]
    pair_info: Optional[Tuple[Tuple[str, str], ...]] = None
    timestamp: float = 0.0
    layout_type: Optional[str] = None
    single_mode: Optional[str] = None
    pair_mode: Optional[str] = None
    partition_count: Optional[int] = None
    group_size: Optional[int] = None


@dataclass(frozen=True)
class ConstraintMaps:
    last_seat_by_student: Dict[str, SlotId] = field(default_factory=dict)
    last_partner_by_student: Dict[str, str] = field(default_factory=dict)


@dataclass
class AssignmentResult:
    """
    Resultado de una ejecución.

    `seats` mapea cada id de slot al nombre asignado (None si quedó vacío).
    `slots` son copias de la topología con `assigned_student_id` completado.
    `unassigned` lista los alumnos que se quedaron sin asiento.
    """

    seats: Dict[SlotId, Optional[str]]
    slots: List[SeatSlot]
    unassigned: List[str] = field(default_factory=list)
    warnings: List[AssignmentWarning] = field(default_factory=list)

    def seat_of(self, name: str) -> Optional[SlotId]:
        for slot_id, occupant in self.seats.items():
            if occupant == name:
                return slot_id
        return None

    def partners(self) -> List[Tuple[str, str]]:
        """Dúos ocupados como pares (primer slot, segundo slot), en orden de slot."""
        by_pair: Dict[int, List[SeatSlot]] = {}
        for s in self.slots:
            if s.pair_group_id is not None:
                by_pair.setdefault(s.pair_group_id, []).append(s)
        out: List[Tuple[str, str]] = []
        for pair_id in sorted(by_pair, key=lambda k: min(s.id for s in by_pair[k])):
            a, b = sorted(by_pair[pair_id], key=lambda s: s.id)[:2]
            name_a, name_b = self.seats.get(a.id), self.seats.get(b.id)
            if name_a and name_b:
                out.append((name_a, name_b))
        return out

    @property
    def is_complete(self) -> bool:
        return not self.unassigned and all(v is not None for v in self.seats.values())
