from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from distnet.core.build.config import RenderSettings
from distnet.core.models.network import Network

GRID_COLUMNS = [
    "id", "name", "kind", "axis", "load", "capacity",
    "install_at", "remove_at", "status", "path",
]


def build_grid_rows(network: Network) -> List[Dict[str, Any]]:
    """
    One row per pipe in tree pre-order, for tree-grid consumers.
    `path` is the list of ids from the root down to the pipe.
    """
    rows = []
    for p in network.iter_pipes():
        rows.append({
            "id": p.id,
            "name": p.name,
            "kind": p.kind,
            "axis": p.axis,
            "load": round(float(p.load), 2),
            "capacity": p.capacity,
            "install_at": p.install_at,
            "remove_at": p.remove_at,
            "status": p.status,
            "path": p.path_ids,
        })
    return rows


def grid_dataframe(network: Network) -> pd.DataFrame:
    return pd.DataFrame(build_grid_rows(network), columns=GRID_COLUMNS)


def _flat(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df["path"] = df["path"].map(lambda ids: "/".join(ids))
    return df


def export_grid_csv(network: Network, path_csv: str) -> None:
    """
    Export the tree grid to CSV. Path is written as 'S01/S01-L1/...'.
    """
    _flat(grid_dataframe(network)).to_csv(path_csv, index=False)


def export_grid_excel(network: Network, path_xlsx: str, sheet_name: str = "network") -> None:
    df = _flat(grid_dataframe(network))
    with pd.ExcelWriter(path_xlsx, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)


class GridExporter:
    """Render collaborator that rewrites the grid CSV on every render."""
    def __init__(self, path_csv: str):
        self.path_csv = path_csv
        self.last_frame: pd.DataFrame | None = None

    def render(self, network: Network, settings: RenderSettings) -> None:
        self.last_frame = grid_dataframe(network)
        _flat(self.last_frame).to_csv(self.path_csv, index=False)
