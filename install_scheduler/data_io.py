from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from .services.conflicts import ExistingAssignments, ExistingSlice
from .services.slicing import Slice

ASSIGNMENT_COLUMNS = ["schedule_id", "installer_id", "start", "duration_hours"]
SLICE_COLUMNS = [
    "schedule_id",
    "installer_id",
    "slice_index",
    "part_index",
    "parts_total",
    "start",
    "end",
    "duration_hours",
    "remaining_man_hours",
]


def read_existing_assignments(path: str | Path) -> ExistingAssignments:
    df = pd.read_csv(path)
    df.columns = df.columns.str.lower().str.strip()
    missing = [c for c in ASSIGNMENT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Assignments CSV {path} is missing columns: {missing}")
    return frame_to_existing(df)


def frame_to_existing(df: pd.DataFrame) -> ExistingAssignments:
    if df.empty:
        return ExistingAssignments()
    # Parsed per value so mixed UTC offsets survive; ExistingSlice keeps wall-clock time
    return ExistingAssignments.from_slices(
        ExistingSlice(
            schedule_id=int(row.schedule_id),
            installer_id=int(row.installer_id),
            start=pd.Timestamp(row.start).to_pydatetime(),
            duration_hours=float(row.duration_hours),
        )
        for row in df.itertuples(index=False)
    )


def slices_to_frame(slices: Sequence[Slice], installer_ids: Iterable[int]) -> pd.DataFrame:
    # One row per slice per installer; every installer shares the slice's clock window
    ids = list(installer_ids)
    rows = []
    for s in slices:
        for installer_id in ids:
            rows.append(
                {
                    "schedule_id": s.schedule_id,
                    "installer_id": installer_id,
                    "slice_index": s.slice_index,
                    "part_index": s.part_index,
                    "parts_total": s.parts_total,
                    "start": s.start,
                    "end": s.end,
                    "duration_hours": s.duration_hours,
                    "remaining_man_hours": s.remaining_man_hours,
                }
            )
    return pd.DataFrame(rows, columns=SLICE_COLUMNS)


def write_slices(path: str | Path, slices_df: pd.DataFrame) -> None:
    out = slices_df.copy()
    for col in ("start", "end"):
        out[col] = pd.to_datetime(out[col]).map(lambda ts: ts.isoformat())
    out[SLICE_COLUMNS].to_csv(path, index=False)


def read_slices(path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(path)
    df["start"] = pd.to_datetime(df["start"])
    if "end" in df.columns:
        df["end"] = pd.to_datetime(df["end"])
    else:
        df["end"] = df["start"] + pd.to_timedelta(df["duration_hours"], unit="h")
    return df


def daily_load(slices_df: pd.DataFrame) -> pd.DataFrame:
    """Clock hours per installer per calendar day."""
    if slices_df.empty:
        return pd.DataFrame()
    ts = slices_df.copy()
    ts["date"] = pd.to_datetime(ts["start"]).dt.strftime("%Y-%m-%d")
    return ts.pivot_table(
        index="date",
        columns="installer_id",
        values="duration_hours",
        aggfunc="sum",
        fill_value=0.0,
    )


def summarize_daily_load(slices_df: pd.DataFrame, daily_cap: float = 8.0) -> str:
    if slices_df.empty:
        return "No slices."
    load = daily_load(slices_df)

    parts = (
        slices_df.drop_duplicates(subset=["schedule_id", "slice_index"])
        .sort_values(["schedule_id", "slice_index"])
    )

    lines = ["Clock hours per installer per day:"]
    lines.append(load.round(2).to_string())
    over = load[(load > daily_cap + 1e-6).any(axis=1)]
    if not over.empty:
        lines.append("")
        lines.append(f"Days over the {daily_cap:g}h cap: {', '.join(over.index)}")
    lines.append("")
    lines.append("Parts:")
    for row in parts.itertuples(index=False):
        start = pd.Timestamp(row.start)
        lines.append(
            f"  Part {row.part_index}/{row.parts_total} | {start:%a %Y-%m-%d %H:%M} | "
            f"Slice {row.duration_hours:.2f}h | Remaining {row.remaining_man_hours:.2f} man-hours"
        )
    return "\n".join(lines)
