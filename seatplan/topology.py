# seatplan/topology.py
"""
Generación de la topología de asientos.

A partir del tipo de acomodo, el número de particiones y la cantidad de alumnos
(por género) se produce una secuencia ordenada de slots abstractos. Cada slot
lleva la partición, la fila dentro de la partición, el género del flujo que lo
generó y, si corresponde, el id de dúo o de grupo.

Regla de bordes: cuando los alumnos no llenan filas/particiones/grupos completos,
el sobrante queda SIEMPRE en la última fila/partición/grupo.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import (
    BASIC_ROW,
    GENDER_PAIR,
    GENDER_ROW,
    GENDER_SYMMETRIC_ROW,
    GROUP,
    PAIR_UNIFORM,
    SAME_GENDER_PAIR,
    SINGLE_UNIFORM,
    LayoutConfig,
    normalize_layout,
)
from .model import FEMALE, MALE, SeatSlot, other_gender

LOG = logging.getLogger(__name__)


class _GenderStreams:
    """Flujos M/F que se van consumiendo mientras se trazan los slots."""

    def __init__(self, n_male: int, n_female: int):
        self.left: Dict[str, int] = {MALE: n_male, FEMALE: n_female}

    def total(self) -> int:
        return self.left[MALE] + self.left[FEMALE]

    def take(self, preferred: str) -> Optional[str]:
        # Si el flujo preferido se agotó, el slot toma el otro género.
        for g in (preferred, other_gender(preferred)):
            if self.left[g] > 0:
                self.left[g] -= 1
                return g
        return None

    def take_many(self, gender: str, count: int) -> int:
        n = min(count, self.left[gender])
        self.left[gender] -= n
        return n


class _SlotSequence:
    """Asigna ids 1-based en el orden de generación."""

    def __init__(self):
        self.slots: List[SeatSlot] = []
        self._next_pair_id = 1

    def add(self, partition: int, row: int, gender: str, **links) -> SeatSlot:
        slot = SeatSlot(
            id=len(self.slots) + 1,
            partition_index=partition,
            row=row,
            gender=gender,
            **links,
        )
        self.slots.append(slot)
        return slot

    def add_duo(self, partition: int, row: int, first: str, second: Optional[str]) -> None:
        if second is None:
            # Alumno solo: un único slot sin vínculo, en la posición del pupitre.
            self.add(partition, row, first)
            return
        pair_id = self._next_pair_id
        self._next_pair_id += 1
        self.add(partition, row, first, pair_group_id=pair_id)
        self.add(partition, row, second, pair_group_id=pair_id)


def _primary_secondary(reverse: bool) -> Tuple[str, str]:
    return (FEMALE, MALE) if reverse else (MALE, FEMALE)


def _build_basic_row(n_male: int, n_female: int, partitions: int, reverse: bool) -> List[SeatSlot]:
    primary, secondary = _primary_secondary(reverse)
    streams = _GenderStreams(n_male, n_female)
    seq = _SlotSequence()
    n = streams.total()
    rows = math.ceil(n / partitions)
    for row in range(1, rows + 1):
        for p in range(1, partitions + 1):
            if streams.total() == 0:
                break
            # particiones impares: primario en filas impares; pares al revés
            preferred = primary if (p % 2) == (row % 2) else secondary
            seq.add(p, row, streams.take(preferred))
    return seq.slots


def _build_gender_row(n_male: int, n_female: int, partitions: int, reverse: bool) -> List[SeatSlot]:
    primary, secondary = _primary_secondary(reverse)
    streams = _GenderStreams(n_male, n_female)
    seq = _SlotSequence()
    capacity = math.ceil(streams.total() / partitions)

    for p in range(1, partitions):
        own = primary if p % 2 == 1 else secondary
        taken = streams.take_many(own, capacity)
        for row in range(1, taken + 1):
            seq.add(p, row, own)

    # La última partición absorbe lo que quede de ambos flujos, en vertical.
    order = (primary, secondary) if partitions % 2 == 1 else (secondary, primary)
    row = 0
    for g in order:
        while streams.left[g] > 0:
            streams.left[g] -= 1
            row += 1
            seq.add(partitions, row, g)
    return seq.slots


def _build_gender_symmetric_row(n_male: int, n_female: int, partitions: int, reverse: bool) -> List[SeatSlot]:
    primary, secondary = _primary_secondary(reverse)
    counts = {MALE: n_male, FEMALE: n_female}
    seq = _SlotSequence()
    capacity = math.ceil((n_male + n_female) / partitions)
    p, row = 1, 0
    for g in (primary, secondary):
        for _ in range(counts[g]):
            if row == capacity:
                p, row = p + 1, 0
            row += 1
            seq.add(p, row, g)
    return seq.slots


def _build_gender_pairs(n_male: int, n_female: int, partitions: int, reverse: bool) -> List[SeatSlot]:
    first, second = _primary_secondary(reverse)
    mixed = min(n_male, n_female)
    duos: List[Tuple[str, Optional[str]]] = [(first, second)] * mixed

    # Sobrantes del mismo género: en pares, y a lo sumo uno solo.
    for g, count in ((MALE, n_male), (FEMALE, n_female)):
        leftover = count - mixed
        duos.extend([(g, g)] * (leftover // 2))
        if leftover % 2:
            duos.append((g, None))

    seq = _SlotSequence()
    for idx, (a, b) in enumerate(duos):
        row, p = divmod(idx, partitions)
        seq.add_duo(p + 1, row + 1, a, b)
    return seq.slots


def _build_same_gender_pairs(n_male: int, n_female: int, partitions: int, reverse: bool) -> List[SeatSlot]:
    primary, secondary = _primary_secondary(reverse)
    left = {MALE: n_male, FEMALE: n_female}
    seq = _SlotSequence()
    idx = 0
    while left[MALE] + left[FEMALE] > 0:
        row, p = divmod(idx, partitions)
        # fila 1: M M | F F | M M ... ; fila 2: F F | M M | F F ...
        preferred = primary if (row + p) % 2 == 0 else secondary
        g = preferred if left[preferred] > 0 else other_gender(preferred)
        if left[g] >= 2:
            left[g] -= 2
            seq.add_duo(p + 1, row + 1, g, g)
        else:
            left[g] -= 1
            seq.add_duo(p + 1, row + 1, g, None)
        idx += 1
    return seq.slots


def group_shape(group_size: int) -> Tuple[int, int]:
    """(columnas, filas) del bloque: 3/4 -> 2x2, 5/6 -> 2x3."""
    return (2, 2) if group_size in (3, 4) else (2, 3)


def _build_groups(n_male: int, n_female: int, partitions: int, group_size: int, reverse: bool) -> List[SeatSlot]:
    primary, secondary = _primary_secondary(reverse)
    counts = {MALE: n_male, FEMALE: n_female}
    tags = [primary] * counts[primary] + [secondary] * counts[secondary]
    n = len(tags)

    cols, _ = group_shape(group_size)
    group_count = math.ceil(n / group_size)
    groups_per_partition = math.ceil(group_count / partitions)

    seq = _SlotSequence()
    for p_idx in range(partitions):
        start_group = p_idx * groups_per_partition
        end_group = min(start_group + groups_per_partition, group_count)
        for gi in range(start_group, end_group):
            first = gi * group_size
            for i in range(first, min(first + group_size, n)):
                pos = i - first
                seq.add(
                    p_idx + 1,
                    gi - start_group + 1,
                    tags[i],
                    group_id=gi + 1,
                    group_row=pos // cols + 1,
                    group_col=pos % cols + 1,
                )
    return seq.slots


class TopologyBuilder:
    """
    Construye la secuencia de slots para un acomodo.

    Es determinista: las mismas entradas producen siempre los mismos slots.
    """

    def build(self, config: LayoutConfig, student_count: int, male_count: Optional[int] = None) -> List[SeatSlot]:
        if student_count <= 0:
            return []
        if male_count is None:
            male_count = math.ceil(student_count / 2)
        n_male = max(0, min(int(male_count), student_count))
        n_female = student_count - n_male

        cfg, warnings = normalize_layout(config)
        for w in warnings:
            LOG.warning("%s", w)
        p = cfg.partition_count
        rev = cfg.reverse_gender_order

        if cfg.layout_type == SINGLE_UNIFORM:
            builders = {
                BASIC_ROW: _build_basic_row,
                GENDER_ROW: _build_gender_row,
                GENDER_SYMMETRIC_ROW: _build_gender_symmetric_row,
            }
            slots = builders[cfg.single_mode](n_male, n_female, p, rev)
        elif cfg.layout_type == PAIR_UNIFORM:
            if cfg.pair_mode == SAME_GENDER_PAIR:
                slots = _build_same_gender_pairs(n_male, n_female, p, rev)
            else:
                slots = _build_gender_pairs(n_male, n_female, p, rev)
        elif cfg.layout_type == GROUP:
            slots = _build_groups(n_male, n_female, p, cfg.group_size, rev)
        else:  # pragma: no cover - LayoutConfig ya lo valida
            raise ValueError(f"Tipo de acomodo desconocido: {cfg.layout_type}")

        LOG.debug(
            "Topología %s: %d slots en %d particiones (M=%d F=%d)",
            cfg.layout_type, len(slots), p, n_male, n_female,
        )
        return slots


@dataclass
class TopologySummary:
    total_slots: int
    duos: int
    mixed_duos: int
    same_gender_duos: int
    single_slots: int
    groups: int
    slots_per_partition: Dict[int, int] = field(default_factory=dict)


def summarize(slots: List[SeatSlot]) -> TopologySummary:
    pairs: Dict[int, List[SeatSlot]] = {}
    groups = set()
    per_partition: Dict[int, int] = {}
    single = 0
    for s in slots:
        per_partition[s.partition_index] = per_partition.get(s.partition_index, 0) + 1
        if s.pair_group_id is not None:
            pairs.setdefault(s.pair_group_id, []).append(s)
        elif s.group_id is not None:
            groups.add(s.group_id)
        else:
            single += 1
    mixed = sum(1 for duo in pairs.values() if len({s.gender for s in duo}) == 2)
    return TopologySummary(
        total_slots=len(slots),
        duos=len(pairs),
        mixed_duos=mixed,
        same_gender_duos=len(pairs) - mixed,
        single_slots=single,
        groups=len(groups),
        slots_per_partition=per_partition,
    )
