"""
Avisos estructurados del planificador.

Ninguna de estas condiciones es fatal: cada una tiene un comportamiento de
respaldo definido y se reporta al llamador junto con el resultado.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class WarningKind(str, Enum):
    INVALID_LAYOUT_CONFIG = "INVALID_LAYOUT_CONFIG"   # número de particiones fuera de rango (se ajusta)
    EMPTY_ROSTER = "EMPTY_ROSTER"
    INSUFFICIENT_SLOTS = "INSUFFICIENT_SLOTS"         # sobran alumnos
    INSUFFICIENT_STUDENTS = "INSUFFICIENT_STUDENTS"   # sobran asientos
    DANGLING_FIXED_PIN = "DANGLING_FIXED_PIN"         # asiento fijo inexistente u ocupado


@dataclass(frozen=True)
class AssignmentWarning:
    kind: WarningKind
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"
