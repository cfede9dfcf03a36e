# seatplan/assignment.py
"""
Asignación de alumnos a slots.

Orden del algoritmo:
  1. Asientos fijos (pins) primero, sin condiciones.
  2. Resto de alumnos separados por género en dos pools barajados.
  3. Slots vinculados (dúos / grupos) antes que los individuales, para poder
     revisar la restricción de compañero en ambos sentidos.
  4. Slots individuales.
  5. Sobrantes (asientos o alumnos) reportados como avisos.

Las restricciones blandas (evitar asiento / compañero anterior) nunca bloquean
una asignación: si ningún candidato las cumple se toma el primero del pool.
"""
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import AssignmentOptions
from .errors import AssignmentWarning, WarningKind
from .model import (
    FEMALE,
    MALE,
    AssignmentResult,
    ConstraintMaps,
    SeatSlot,
    Student,
    other_gender,
)

LOG = logging.getLogger(__name__)


def mix_group_genders(slots: Sequence[SeatSlot]) -> List[SeatSlot]:
    """
    Re-etiqueta el género de los slots de grupo para repartir M/F de forma pareja.

    Se arma un flujo de cuotas por grupo (floor(m / grupos) hombres y
    floor(f / grupos) mujeres, uno extra de los restos para los primeros grupos)
    y luego se corta en orden según el tamaño real de cada grupo. Si el último
    grupo es más chico, recibe solo la cola del flujo, no su cuota. Dentro de
    cada grupo las etiquetas se alternan M/F. Los slots sin grupo no cambian.
    """
    groups: Dict[int, List[SeatSlot]] = {}
    for s in slots:
        if s.group_id is not None:
            groups.setdefault(s.group_id, []).append(s)
    if not groups:
        return list(slots)

    ordered = [sorted(groups[g], key=lambda s: s.id) for g in sorted(groups)]
    n_groups = len(ordered)
    n_male = sum(1 for grp in ordered for s in grp if s.gender == MALE)
    n_female = sum(len(grp) for grp in ordered) - n_male

    stream: List[str] = []
    for gi in range(n_groups):
        stream += [MALE] * (n_male // n_groups + (1 if gi < n_male % n_groups else 0))
        stream += [FEMALE] * (n_female // n_groups + (1 if gi < n_female % n_groups else 0))

    new_gender: Dict[int, str] = {}
    start = 0
    for grp in ordered:
        chunk = stream[start:start + len(grp)]
        start += len(grp)
        males = [g for g in chunk if g == MALE]
        females = [g for g in chunk if g == FEMALE]
        mixed: List[str] = []
        while males or females:
            if males:
                mixed.append(males.pop())
            if females:
                mixed.append(females.pop())
        for s, g in zip(grp, mixed):
            new_gender[s.id] = g

    return [replace(s, gender=new_gender[s.id]) if s.id in new_gender else s for s in slots]


class AssignmentEngine:
    """
    Motor de asignación.

    La única fuente de aleatoriedad es el barajado de los pools, que pasa por un
    `numpy.random.Generator` inyectable para poder reproducir ejecuciones.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def shuffle(self, students: Sequence[Student]) -> List[Student]:
        order = self.rng.permutation(len(students))
        return [students[int(i)] for i in order]

    def assign(
        self,
        slots: Sequence[SeatSlot],
        students: Sequence[Student],
        options: AssignmentOptions = AssignmentOptions(),
        constraints: ConstraintMaps = ConstraintMaps(),
        group_gender_mix: bool = False,
    ) -> AssignmentResult:
        names = [s.name for s in students]
        if len(set(names)) != len(names):
            raise ValueError("Los nombres de los alumnos deben ser únicos")

        if group_gender_mix:
            slots = mix_group_genders(slots)
        slots = list(slots)

        warnings: List[AssignmentWarning] = []
        unassigned: List[str] = []
        dangling = 0
        if not students:
            warnings.append(AssignmentWarning(WarningKind.EMPTY_ROSTER, "No hay alumnos para acomodar"))

        slot_by_id = {s.id: s for s in slots}
        seats: Dict[int, Optional[Student]] = {s.id: None for s in slots}

        # 1. Asientos fijos
        free: List[Student] = []
        for st in students:
            if st.fixed_seat_id is None:
                free.append(st)
                continue
            sid = st.fixed_seat_id
            if sid not in slot_by_id:
                reason = "no existe en la topología"
            elif seats[sid] is not None:
                reason = f"ya está fijado para {seats[sid].name}"
            else:
                seats[sid] = st
                continue
            LOG.warning("Asiento fijo %s de %s ignorado: %s", sid, st.name, reason)
            warnings.append(AssignmentWarning(
                WarningKind.DANGLING_FIXED_PIN,
                f"El asiento fijo {sid} de {st.name} {reason}; el alumno queda sin asignar",
                {"student": st.name, "seat_id": sid},
            ))
            unassigned.append(st.name)
            dangling += 1

        # 2. Pools barajados por género
        pools: Dict[str, List[Student]] = {
            MALE: self.shuffle([s for s in free if s.gender == MALE]),
            FEMALE: self.shuffle([s for s in free if s.gender == FEMALE]),
        }
        LOG.debug("Pools: M=%s F=%s", [s.name for s in pools[MALE]], [s.name for s in pools[FEMALE]])

        mate: Dict[int, int] = {}
        by_pair: Dict[int, List[int]] = {}
        for s in slots:
            if s.pair_group_id is not None:
                by_pair.setdefault(s.pair_group_id, []).append(s.id)
        for ids in by_pair.values():
            if len(ids) == 2:
                mate[ids[0]], mate[ids[1]] = ids[1], ids[0]

        # 3. Vinculados primero, 4. luego individuales (cada bloque en orden de id)
        linked = sorted((s for s in slots if s.is_linked), key=lambda s: s.id)
        singles = sorted((s for s in slots if not s.is_linked), key=lambda s: s.id)
        for slot in linked + singles:
            if seats[slot.id] is not None:
                continue
            partner = seats.get(mate[slot.id]) if slot.id in mate else None
            chosen = self._pick(slot, pools, partner, options, constraints)
            if chosen is None:
                continue
            seats[slot.id] = chosen

        # 5. Sobrantes
        leftover = pools[MALE] + pools[FEMALE]
        if leftover:
            unassigned.extend(s.name for s in leftover)
            warnings.append(AssignmentWarning(
                WarningKind.INSUFFICIENT_SLOTS,
                f"{len(leftover)} alumno(s) sin asiento: hay {len(slots)} slots para {len(students)} alumnos",
                {"students": [s.name for s in leftover]},
            ))
        empty = [sid for sid, st in seats.items() if st is None]
        # Los asientos que dejan los pins inválidos ya se reportaron arriba
        if len(empty) > dangling and students:
            warnings.append(AssignmentWarning(
                WarningKind.INSUFFICIENT_STUDENTS,
                f"{len(empty)} asiento(s) vacío(s)",
                {"slots": empty},
            ))

        out_slots = [
            replace(s, assigned_student_id=seats[s.id].id if seats[s.id] is not None else None)
            for s in slots
        ]
        return AssignmentResult(
            seats={sid: (st.name if st is not None else None) for sid, st in seats.items()},
            slots=out_slots,
            unassigned=unassigned,
            warnings=warnings,
        )

    def _pick(
        self,
        slot: SeatSlot,
        pools: Dict[str, List[Student]],
        partner: Optional[Student],
        options: AssignmentOptions,
        constraints: ConstraintMaps,
    ) -> Optional[Student]:
        pool = pools[slot.gender] or pools[other_gender(slot.gender)]
        if not pool:
            return None

        check_partner = options.avoid_prev_partner and partner is not None
        if not (options.avoid_prev_seat or check_partner):
            return pool.pop(0)

        last_seat = constraints.last_seat_by_student
        last_partner = constraints.last_partner_by_student
        for idx, cand in enumerate(pool):
            seat_ok = not options.avoid_prev_seat or last_seat.get(cand.name) != slot.id
            partner_ok = not check_partner or (
                last_partner.get(partner.name) != cand.name
                and last_partner.get(cand.name) != partner.name
            )
            if seat_ok and partner_ok:
                return pool.pop(idx)

        # Ningún candidato cumple: asignación forzada con el primero del pool
        LOG.debug("Slot %d: sin candidato que cumpla las restricciones, se usa %s", slot.id, pool[0].name)
        return pool.pop(0)


def assign_seats(
    slots: Sequence[SeatSlot],
    students: Sequence[Student],
    options: AssignmentOptions = AssignmentOptions(),
    constraints: ConstraintMaps = ConstraintMaps(),
    rng: Optional[np.random.Generator] = None,
    group_gender_mix: bool = False,
) -> AssignmentResult:
    return AssignmentEngine(rng=rng).assign(slots, students, options, constraints, group_gender_mix)
