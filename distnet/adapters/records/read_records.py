from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from distnet.core.build.config import DEFAULT_KIND_CONFIG, KindConfig, as_instant, is_missing
from distnet.core.build.errors import DanglingReferenceError
from distnet.core.models.network import Network
from distnet.core.models.pipe import Pipe
from distnet.core.models.types import LATERAL, SUBMAIN, TOOL, PipeKind

logger = logging.getLogger(__name__)


# -----------------------------
# Record contract
# -----------------------------
# Required columns (camelCase, as the data API returns them)
REQ_RECORD = {"id", "name"}

# Aliases: API -> canonical
COLUMN_ALIASES = {
    "parentComponentId": "parentId",
    "parent_id": "parentId",
    "avgLoad": "averageLoad",
    "average_load": "averageLoad",
    "installationDate": "installAt",
    "install_at": "installAt",
    "deinstallDate": "removeAt",
    "remove_at": "removeAt",
}

FALLBACK_LOAD_RANGE = (5.0, 15.0)


class RandomLoad:
    """
    Fallback tool load for records without a positive averageLoad:
    uniform in [low, high), rounded to 2 decimals. Seeded, so fixtures repeat.
    """
    def __init__(self, seed: Optional[int] = 0, low: float = FALLBACK_LOAD_RANGE[0], high: float = FALLBACK_LOAD_RANGE[1]):
        if high <= low:
            raise ValueError(f"RandomLoad needs high > low (got {low}, {high})")
        self._rng = np.random.default_rng(seed)
        self.low = low
        self.high = high

    def __call__(self) -> float:
        return round(float(self._rng.uniform(self.low, self.high)), 2)


@dataclass
class IngestionResult:
    roots: List[Pipe]
    pipes_by_id: Dict[str, Pipe]
    issues: List[DanglingReferenceError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


def _norm_str(x: Any) -> str:
    if is_missing(x):
        return ""
    return str(x).strip()


def _norm_id(x: Any) -> str:
    # numeric id columns with gaps come back as float64: 1.0 -> "1"
    if isinstance(x, float) and not is_missing(x) and x.is_integer():
        return str(int(x))
    return _norm_str(x)


def _maybe_float(x: Any) -> Optional[float]:
    try:
        if is_missing(x) or (isinstance(x, str) and x.strip() == ""):
            return None
        return float(x)
    except (TypeError, ValueError):
        return None


def _require_columns(df: pd.DataFrame, required: set[str], source: str) -> None:
    missing = sorted(list(required - set(df.columns)))
    if missing:
        raise ValueError(f"Records from {source} are missing required columns: {missing}")


def normalize_records(records: Union[pd.DataFrame, Iterable[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Accepts a DataFrame or an iterable of mappings and returns plain dicts with
    canonical keys: id, name, parentId, averageLoad, installAt, removeAt.
    """
    # object dtype keeps ids as given (no 1 -> 1.0 when a parentId column has gaps)
    df = records.astype(object) if isinstance(records, pd.DataFrame) else pd.DataFrame(list(records), dtype=object)
    df = df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if k in df.columns and v not in df.columns})
    if df.empty:
        return []
    _require_columns(df, REQ_RECORD, "input")

    out: List[Dict[str, Any]] = []
    for _, r in df.iterrows():
        rid = _norm_id(r["id"])
        if not rid:
            raise ValueError(f"Record with empty id: {dict(r)!r}")
        out.append({
            "id": rid,
            "name": _norm_str(r["name"]) or rid,
            "parentId": _norm_id(r.get("parentId", None)) or None,
            "averageLoad": _maybe_float(r.get("averageLoad", None)),
            "installAt": as_instant(r.get("installAt", None)),
            "removeAt": as_instant(r.get("removeAt", None)),
        })

    ids = [r["id"] for r in out]
    dups = sorted({x for x in ids if ids.count(x) > 1})
    if dups:
        raise ValueError(f"Duplicate record id: {dups}")
    return out


def classify_record(record: Mapping[str, Any], referenced_parents: set[str]) -> PipeKind:
    """Root -> submain; never referenced as a parent -> tool; else lateral."""
    if not record.get("parentId"):
        return SUBMAIN
    if record["id"] not in referenced_parents:
        return TOOL
    return LATERAL


def build_tree_from_records(
    records: Union[pd.DataFrame, Iterable[Mapping[str, Any]]],
    *,
    kinds: KindConfig = DEFAULT_KIND_CONFIG,
    fallback_load: Optional[Callable[[], float]] = None,
) -> IngestionResult:
    """
    Build the pipe forest from flat records.

    Records whose parentId does not resolve, or that cannot be reached from a
    root (e.g. a parent cycle), are left out and reported in `issues`.
    """
    rows = normalize_records(records)
    if fallback_load is None:
        fallback_load = RandomLoad()

    referenced = {r["parentId"] for r in rows if r["parentId"]}

    pipes_by_id: Dict[str, Pipe] = {}
    for r in rows:
        kind = classify_record(r, referenced)
        pipe = Pipe(
            id=r["id"],
            kind=kind,
            name=r["name"],
            axis="x" if kind == SUBMAIN else None,
            capacity=kinds.capacity(kind),
        )
        if kind == TOOL:
            avg = r["averageLoad"]
            pipe.assigned_load = avg if avg is not None and avg > 0 else fallback_load()
            pipe.install_at = r["installAt"]
            pipe.remove_at = r["removeAt"]
        pipes_by_id[pipe.id] = pipe

    children_of: Dict[str, List[str]] = {}
    for r in rows:
        if r["parentId"]:
            children_of.setdefault(r["parentId"], []).append(r["id"])

    roots = [pipes_by_id[r["id"]] for r in rows if not r["parentId"]]

    # attach breadth-first from the roots so only reachable records join the tree
    attached = {p.id for p in roots}
    frontier = list(roots)
    while frontier:
        nxt: List[Pipe] = []
        for parent in frontier:
            for cid in children_of.get(parent.id, []):
                child = pipes_by_id[cid]
                parent.add_child(child)
                attached.add(cid)
                nxt.append(child)
        frontier = nxt

    issues: List[DanglingReferenceError] = []
    for r in rows:
        if r["id"] in attached:
            continue
        issue = DanglingReferenceError(r["id"], r["parentId"] or "")
        logger.warning("Skipping record: %s", issue)
        issues.append(issue)
        pipes_by_id.pop(r["id"], None)

    return IngestionResult(roots=roots, pipes_by_id=pipes_by_id, issues=issues)


def build_network_from_records(
    records: Union[pd.DataFrame, Iterable[Mapping[str, Any]]],
    *,
    query_date: Optional[datetime] = None,
    kinds: KindConfig = DEFAULT_KIND_CONFIG,
    fallback_load: Optional[Callable[[], float]] = None,
) -> Tuple[Network, IngestionResult]:
    """
    Records -> initialised Network (intervals, statuses, segments, loads),
    plus the ingestion result with any skipped records.
    """
    result = build_tree_from_records(records, kinds=kinds, fallback_load=fallback_load)
    network = Network(
        roots=result.roots,
        query_date=query_date or datetime.now(),
        kinds=kinds,
    )
    network.initialize()
    return network, result


def read_records_csv(path: str) -> List[Dict[str, Any]]:
    # everything as text: ids must not turn into floats, numbers/dates are parsed per field
    df = pd.read_csv(path, dtype=str)
    return normalize_records(df)


def read_records_excel(path: str, sheet_name: Union[str, int] = 0) -> List[Dict[str, Any]]:
    df = pd.read_excel(path, sheet_name=sheet_name, engine="openpyxl", dtype=str)
    return normalize_records(df)
