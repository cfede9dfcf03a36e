import argparse
import json
import logging
import time
from pathlib import Path
from typing import List, Sequence

import pandas as pd

from seatplan.config import load_config
from seatplan.constraints import record_from_result, snapshot, sort_history
from seatplan.data_loader import load_data, save_history
from seatplan.evaluation import EvaluationResult, evaluate
from seatplan.model import AssignmentResult, Student
from seatplan.planner import SeatingPlanner
from seatplan.topology import summarize


def result_to_dataframe(result: AssignmentResult, students: Sequence[Student]) -> pd.DataFrame:
    gender_by_name = {s.name: s.gender for s in students}
    fixed = {s.fixed_seat_id for s in students if s.fixed_seat_id is not None}
    data = []
    for slot in result.slots:
        name = result.seats.get(slot.id)
        data.append(
            {
                "Asiento": slot.id,
                "Particion": slot.partition_index,
                "Fila": slot.row,
                "Pupitre": slot.pair_group_id,
                "Grupo": slot.group_id,
                "Genero_Slot": slot.gender,
                "Alumno": name or "",
                "Genero": gender_by_name.get(name, "") if name else "",
                "Fijo": slot.id in fixed,
            }
        )
    return pd.DataFrame(data)


def partition_grid(df: pd.DataFrame) -> pd.DataFrame:
    """Vista fila x partición; los dúos se muestran juntos en la misma celda."""
    if df.empty:
        return df
    cells = df.assign(Etiqueta=df["Alumno"].where(df["Alumno"] != "", "-") + " #" + df["Asiento"].astype(str))
    grid = cells.groupby(["Fila", "Particion"])["Etiqueta"].agg(" | ".join).unstack("Particion")
    grid.columns = [f"{c}ª partición" for c in grid.columns]
    return grid.fillna("")


def print_result(df: pd.DataFrame, result: AssignmentResult, eval_res: EvaluationResult):
    print("\n" + "=" * 80)
    print("ACOMODO DE ASIENTOS")
    print("=" * 80)
    print(partition_grid(df).to_string())
    print("=" * 80)
    print(
        f"Ocupación por partición: {eval_res.partition_fill.tolist()} / {eval_res.partition_capacity.tolist()}"
        f" | Vacíos: {eval_res.empty_slots} | Sin asiento: {eval_res.unassigned}"
    )
    print(
        f"Repiten asiento: {eval_res.repeated_seats} | Repiten compañero: {eval_res.repeated_partners}"
        f" | Dúos mixtos: {eval_res.mixed_pairs} | Dúos mismo género: {eval_res.same_gender_pairs}"
    )
    for w in result.warnings:
        print(f"AVISO {w}")


def export_outputs(df: pd.DataFrame, result: AssignmentResult, out_dir: Path):
    out_dir.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_dir / "seating.csv", index=False)
    maps = snapshot(result)
    payload = {
        "lastSeatByStudent": maps.last_seat_by_student,
        "lastPartnerByStudent": maps.last_partner_by_student,
    }
    (out_dir / "constraints.json").write_text(
        json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
    )
    if result.warnings:
        pd.DataFrame(
            [{"tipo": w.kind.value, "mensaje": w.message} for w in result.warnings]
        ).to_csv(out_dir / "warnings.csv", index=False)


def main(argv: List[str] = None):
    parser = argparse.ArgumentParser(description="Acomodo de alumnos en asientos del aula")
    parser.add_argument("--config", default="config.yaml", help="Ruta al archivo de configuración")
    parser.add_argument("--roster", default="data/roster.csv", help="CSV con columnas name,gender[,id,fixed_seat_id]")
    parser.add_argument("--history", default=None, help="JSON con acomodos confirmados anteriores")
    parser.add_argument("--seed", type=int, default=None, help="Semilla (sobrescribe la del config)")
    parser.add_argument("--out_dir", default="outputs", help="Directorio de salida")
    parser.add_argument("--confirm", action="store_true", help="Agregar este acomodo al historial")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Nivel de logging",
    )
    args = parser.parse_args(argv)
    if args.confirm and not args.history:
        parser.error("--confirm requiere --history")

    logging.basicConfig(level=getattr(logging, args.log_level))

    cfg = load_config(args.config)
    if args.seed is not None:
        cfg.seed = args.seed

    print("Cargando datos...")
    bundle = load_data(args.roster, args.history)
    history = sort_history(bundle.history)
    print(f"Alumnos: {len(bundle.students)} | Registros de historial: {len(history)}")

    start = time.perf_counter()
    planner = SeatingPlanner(cfg, bundle.students, history)
    result = planner.run()
    elapsed = time.perf_counter() - start

    topo = summarize(planner.slots)
    print(
        f"Acomodo: {cfg.layout.layout_type} | Slots: {topo.total_slots} | Dúos: {topo.duos}"
        f" (mixtos {topo.mixed_duos}) | Grupos: {topo.groups} | Tiempo: {elapsed * 1000:.1f} ms"
    )

    df = result_to_dataframe(result, bundle.students)
    eval_res = evaluate(result, planner.constraints, bundle.students)
    print_result(df, result, eval_res)

    out_dir = Path(args.out_dir)
    export_outputs(df, result, out_dir)
    print(f"Se guardaron resultados en {out_dir / 'seating.csv'} y {out_dir / 'constraints.json'}")

    if args.confirm:
        record = record_from_result(result, bundle.students, layout=cfg.layout)
        save_history(args.history, [record] + history)
        print(f"Acomodo confirmado y agregado a {args.history}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
