# seatplan/planner.py
import logging
from typing import List, Optional, Sequence

import numpy as np

from .assignment import AssignmentEngine
from .config import SeatingConfig, normalize_layout
from .constraints import ConstraintExtractor
from .model import MALE, AssignmentResult, ConstraintMaps, HistoryRecord, SeatSlot, Student
from .topology import TopologyBuilder

LOG = logging.getLogger(__name__)


class SeatingPlanner:
    """Topología -> restricciones del historial -> asignación, para una ejecución."""

    def __init__(
        self,
        cfg: SeatingConfig,
        students: Sequence[Student],
        history: Sequence[HistoryRecord] = (),
        rng: Optional[np.random.Generator] = None,
    ):
        self.cfg = cfg
        self.students = list(students)
        self.history = list(history)
        self.rng = rng if rng is not None else np.random.default_rng(cfg.seed)
        self.slots: List[SeatSlot] = []
        self.constraints = ConstraintMaps()

    def run(self) -> AssignmentResult:
        layout, warnings = normalize_layout(self.cfg.layout)
        n_male = sum(1 for s in self.students if s.gender == MALE)

        self.slots = TopologyBuilder().build(layout, len(self.students), male_count=n_male)

        opts = self.cfg.options
        if opts.avoid_prev_seat or opts.avoid_prev_partner:
            extractor = ConstraintExtractor(infer_adjacent=self.cfg.infer_adjacent_partners)
            self.constraints = extractor.extract(
                self.history,
                want_seat=opts.avoid_prev_seat,
                want_partner=opts.avoid_prev_partner,
            )

        engine = AssignmentEngine(rng=self.rng)
        result = engine.assign(
            self.slots,
            self.students,
            opts,
            self.constraints,
            group_gender_mix=layout.group_gender_mix,
        )
        result.warnings[:0] = warnings
        LOG.info(
            "Acomodo %s: %d slots, %d alumnos, %d avisos",
            layout.layout_type, len(self.slots), len(self.students), len(result.warnings),
        )
        return result
