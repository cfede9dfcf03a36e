# seatplan/data_loader.py
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .model import FEMALE, MALE, HistoryRecord, LayoutEntry, Student

# Grafías aceptadas para el género en la lista de alumnos
GENDER_ALIASES: Dict[str, str] = {
    "m": MALE, "male": MALE, "h": MALE, "hombre": MALE, "남": MALE, "남자": MALE,
    "f": FEMALE, "female": FEMALE, "mujer": FEMALE, "여": FEMALE, "여자": FEMALE,
}


@dataclass(frozen=True)
class DataBundle:
    roster: pd.DataFrame
    students: List[Student]
    history: List[HistoryRecord]


def normalize_gender(value: Any) -> str:
    key = str(value).strip().lower()
    if key not in GENDER_ALIASES:
        raise ValueError(f"Género no reconocido: {value!r}")
    return GENDER_ALIASES[key]


def students_from_dataframe(df: pd.DataFrame) -> List[Student]:
    required = {"name", "gender"}
    if not required.issubset(df.columns):
        raise ValueError(f"La lista de alumnos debe incluir las columnas {sorted(required)}")

    students: List[Student] = []
    for pos, r in enumerate(df.itertuples(index=False), start=1):
        row = r._asdict()
        name = "" if pd.isna(row["name"]) else str(row["name"]).strip()
        if not name:
            continue
        sid = row.get("id")
        fixed = row.get("fixed_seat_id")
        students.append(
            Student(
                id=int(sid) if sid is not None and pd.notna(sid) else pos,
                name=name,
                gender=normalize_gender(row["gender"]),
                fixed_seat_id=int(fixed) if fixed is not None and pd.notna(fixed) else None,
            )
        )
    return students


def load_roster(path: str) -> List[Student]:
    return students_from_dataframe(pd.read_csv(path))


def _entry_from_json(e: Dict[str, Any], date: str) -> LayoutEntry:
    seat_id = e.get("seatId", e.get("seat_id"))
    if seat_id is None:
        raise ValueError(f"Registro de historial {date!r}: entrada sin seatId ({e!r})")
    if e.get("gender") is None:
        raise ValueError(f"Registro de historial {date!r}: entrada sin género ({e!r})")
    return LayoutEntry(
        seat_id=int(seat_id),
        student_name=str(e.get("studentName", e.get("student_name", ""))),
        gender=normalize_gender(e["gender"]),
    )


def _record_from_json(item: Dict[str, Any]) -> HistoryRecord:
    date = str(item.get("date", ""))
    layout = tuple(_entry_from_json(e, date) for e in item.get("layout", []))
    raw_pairs = item.get("pairInfo", item.get("pair_info"))
    pair_info = None
    if raw_pairs is not None:
        pair_info = tuple(
            (str(p["student1"]), str(p["student2"])) if isinstance(p, dict) else (str(p[0]), str(p[1]))
            for p in raw_pairs
        )
    group_size = item.get("groupSize", item.get("group_size"))
    if isinstance(group_size, str):
        group_size = int(group_size.replace("group-", ""))
    partition_count = item.get("partitionCount", item.get("partition_count"))
    return HistoryRecord(
        date=date,
        layout=layout,
        pair_info=pair_info,
        timestamp=float(item.get("timestamp") or 0),
        layout_type=item.get("layoutType", item.get("layout_type")),
        single_mode=item.get("singleMode", item.get("single_mode")),
        pair_mode=item.get("pairMode", item.get("pair_mode")),
        partition_count=int(partition_count) if partition_count is not None else None,
        group_size=group_size,
    )


def _record_to_json(rec: HistoryRecord) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "date": rec.date,
        "layout": [
            {"seatId": e.seat_id, "studentName": e.student_name, "gender": e.gender}
            for e in rec.layout
        ],
        "timestamp": rec.timestamp,
    }
    if rec.pair_info is not None:
        out["pairInfo"] = [{"student1": a, "student2": b} for a, b in rec.pair_info]
    optional = {
        "layoutType": rec.layout_type,
        "singleMode": rec.single_mode,
        "pairMode": rec.pair_mode,
        "partitionCount": rec.partition_count,
        "groupSize": rec.group_size,
    }
    out.update({k: v for k, v in optional.items() if v is not None})
    return out


def load_history(path: str) -> List[HistoryRecord]:
    p = Path(path)
    if not p.exists():
        return []
    data = json.loads(p.read_text(encoding="utf-8") or "[]")
    if not isinstance(data, list):
        raise ValueError("El historial debe ser una lista JSON de registros")
    return [_record_from_json(item) for item in data]


def save_history(path: str, records: List[HistoryRecord]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = [_record_to_json(r) for r in records]
    p.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def load_data(roster_path: str, history_path: Optional[str] = None) -> DataBundle:
    roster = pd.read_csv(roster_path)
    return DataBundle(
        roster=roster,
        students=students_from_dataframe(roster),
        history=load_history(history_path) if history_path else [],
    )
