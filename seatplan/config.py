"""
Configuración del acomodo de asientos.

Incluye un cargador desde YAML (o JSON, que YAML también lee) para dejar los
parámetros reproducibles y configurables por archivo.
"""
from dataclasses import dataclass, field, asdict, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import AssignmentWarning, WarningKind

SINGLE_UNIFORM = "single-uniform"
PAIR_UNIFORM = "pair-uniform"
GROUP = "group"
LAYOUT_TYPES = (SINGLE_UNIFORM, PAIR_UNIFORM, GROUP)

BASIC_ROW = "basic-row"
GENDER_ROW = "gender-row"
GENDER_SYMMETRIC_ROW = "gender-symmetric-row"
SINGLE_MODES = (BASIC_ROW, GENDER_ROW, GENDER_SYMMETRIC_ROW)

GENDER_PAIR = "gender-pair"
SAME_GENDER_PAIR = "same-gender-pair"
PAIR_MODES = (GENDER_PAIR, SAME_GENDER_PAIR)

GROUP_SIZES = (3, 4, 5, 6)

# Rango legal (min, max) de particiones por tipo de acomodo.
PARTITION_RANGES: Dict[str, Tuple[int, int]] = {
    SINGLE_UNIFORM: (3, 6),
    PAIR_UNIFORM: (3, 5),
    "group-3": (3, 5),
    "group-4": (3, 4),
    "group-5": (3, 5),
    "group-6": (2, 4),
}


def partition_range(layout_type: str, group_size: int = 4) -> Tuple[int, int]:
    if layout_type == GROUP:
        return PARTITION_RANGES[f"group-{group_size}"]
    return PARTITION_RANGES[layout_type]


def clamp_partition_count(layout_type: str, partition_count: int, group_size: int = 4) -> int:
    """Ajusta al límite legal más cercano; nunca rechaza el valor."""
    low, high = partition_range(layout_type, group_size)
    return max(low, min(high, int(partition_count)))


@dataclass(frozen=True)
class LayoutConfig:
    layout_type: str = SINGLE_UNIFORM
    partition_count: int = 3
    single_mode: str = BASIC_ROW
    reverse_gender_order: bool = False
    pair_mode: str = GENDER_PAIR
    group_size: int = 4
    group_gender_mix: bool = False

    def __post_init__(self):
        if self.layout_type not in LAYOUT_TYPES:
            raise ValueError(f"layout_type debe ser uno de {LAYOUT_TYPES}, se recibió {self.layout_type!r}")
        if self.single_mode not in SINGLE_MODES:
            raise ValueError(f"single_mode debe ser uno de {SINGLE_MODES}, se recibió {self.single_mode!r}")
        if self.pair_mode not in PAIR_MODES:
            raise ValueError(f"pair_mode debe ser uno de {PAIR_MODES}, se recibió {self.pair_mode!r}")
        if self.group_size not in GROUP_SIZES:
            raise ValueError(f"group_size debe ser uno de {GROUP_SIZES}, se recibió {self.group_size!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        # Alias de la interfaz original ("group-4" -> 4)
        if isinstance(merged["group_size"], str):
            merged["group_size"] = int(str(merged["group_size"]).replace("group-", ""))
        merged["partition_count"] = int(merged["partition_count"])
        return cls(**merged)

    @property
    def legal_partition_range(self) -> Tuple[int, int]:
        return partition_range(self.layout_type, self.group_size)


def normalize_layout(cfg: LayoutConfig) -> Tuple[LayoutConfig, List[AssignmentWarning]]:
    """
    Devuelve una copia con `partition_count` dentro del rango legal y los avisos
    generados al ajustarlo.
    """
    clamped = clamp_partition_count(cfg.layout_type, cfg.partition_count, cfg.group_size)
    if clamped == cfg.partition_count:
        return cfg, []
    low, high = cfg.legal_partition_range
    warning = AssignmentWarning(
        kind=WarningKind.INVALID_LAYOUT_CONFIG,
        message=(
            f"partition_count={cfg.partition_count} fuera de rango [{low}, {high}] "
            f"para {cfg.layout_type}; se usa {clamped}"
        ),
        context={"requested": cfg.partition_count, "used": clamped, "range": (low, high)},
    )
    return replace(cfg, partition_count=clamped), [warning]


@dataclass(frozen=True)
class AssignmentOptions:
    avoid_prev_seat: bool = False
    avoid_prev_partner: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssignmentOptions":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = bool(v)
        return cls(**merged)


@dataclass
class SeatingConfig:
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    options: AssignmentOptions = field(default_factory=AssignmentOptions)
    seed: Optional[int] = None
    # Inferir compañeros por cercanía de ids cuando el historial no trae pair_info
    infer_adjacent_partners: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SeatingConfig":
        layout = LayoutConfig.from_dict(data.get("layout") or {})
        options = AssignmentOptions.from_dict(data.get("options") or {})
        seed = data.get("seed")
        return cls(
            layout=layout,
            options=options,
            seed=int(seed) if seed is not None else None,
            infer_adjacent_partners=bool(data.get("infer_adjacent_partners", True)),
        )


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def load_config(path: str = "config.yaml") -> SeatingConfig:
    cfg_path = Path(path)
    data = _load_yaml(cfg_path)
    if not isinstance(data, dict):
        raise ValueError("config.yaml debe contener un objeto mapeo")
    return SeatingConfig.from_dict(data)
