# distnet/core/build/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Literal, Optional

import pandas as pd

from distnet.core.models.types import PIPE_KINDS, PipeKind


# ============================================================
# KindConfig (constantes por tipo de tubería)
# ============================================================

@dataclass(frozen=True)
class KindSpec:
    span_length: float
    capacity: Optional[float]


DEFAULT_KIND_SPECS: Dict[str, KindSpec] = {
    "submain": KindSpec(span_length=1500.0, capacity=300.0),
    "lateral": KindSpec(span_length=300.0, capacity=50.0),
    "tool": KindSpec(span_length=50.0, capacity=10.0),
}


@dataclass(frozen=True)
class KindConfig:
    """
    Single table of per-kind constants (span length for the segment layout,
    capacity ceiling). Every component reads kinds from here.
    """
    specs: Dict[str, KindSpec] = field(default_factory=lambda: dict(DEFAULT_KIND_SPECS))
    submain_spacing_buffer: float = 100.0

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "KindConfig":
        """
        Accepts flat keys like 'submain_length', 'lateral_capacity',
        'tool_span_length' or nested {'submain': {'length': .., 'capacity': ..}}.
        Missing entries fall back to the defaults.
        """
        specs: Dict[str, KindSpec] = {}
        for kind in PIPE_KINDS:
            base = DEFAULT_KIND_SPECS[kind]
            nested = cfg.get(kind) if isinstance(cfg.get(kind), dict) else {}

            length = nested.get("span_length", nested.get("length",
                     cfg.get(f"{kind}_span_length", cfg.get(f"{kind}_length", base.span_length))))
            capacity = nested.get("capacity", cfg.get(f"{kind}_capacity", base.capacity))

            specs[kind] = KindSpec(
                span_length=float(length),
                capacity=None if capacity is None else float(capacity),
            )

        buffer = cfg.get("submain_spacing_buffer", cfg.get("spacing_buffer", 100.0))

        out = KindConfig(specs=specs, submain_spacing_buffer=float(buffer))
        out.validate()
        return out

    def validate(self) -> None:
        missing = sorted(set(PIPE_KINDS) - set(self.specs))
        if missing:
            raise ValueError(f"KindConfig is missing kinds: {missing}")
        for kind, spec in self.specs.items():
            if spec.span_length <= 0:
                raise ValueError(f"KindConfig.{kind}.span_length must be > 0 (got {spec.span_length})")
            if spec.capacity is not None and spec.capacity <= 0:
                raise ValueError(f"KindConfig.{kind}.capacity must be > 0 or None (got {spec.capacity})")
        if self.submain_spacing_buffer < 0:
            raise ValueError(f"KindConfig.submain_spacing_buffer must be >= 0 (got {self.submain_spacing_buffer})")

    def span_length(self, kind: PipeKind) -> float:
        return self.specs[kind].span_length

    def capacity(self, kind: PipeKind) -> Optional[float]:
        return self.specs[kind].capacity

    @property
    def submain_spacing(self) -> float:
        """Vertical distance between consecutive root anchors."""
        return self.span_length("lateral") + self.submain_spacing_buffer


DEFAULT_KIND_CONFIG = KindConfig()


# ============================================================
# RenderSettings (opciones de visualización)
# ============================================================

ColorMode = Literal["loadScale", "capacityWarning"]


def _as_bool(x: Any) -> bool:
    if isinstance(x, str):
        return x.strip().lower() in ("1", "true", "yes", "si", "sí", "y")
    return bool(x)


def is_missing(x: Any) -> bool:
    """None, NaN, NaT or pd.NA (scalars only)."""
    if x is None:
        return True
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        return False


def as_instant(x: Any) -> Optional[datetime]:
    """
    Coerce str / date / Timestamp into a naive datetime. Empty -> None.
    Instants with an offset (e.g. a trailing "Z") are converted to UTC first.
    """
    if is_missing(x):
        return None
    if isinstance(x, str) and x.strip() == "":
        return None
    ts = pd.Timestamp(x)
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


@dataclass(frozen=True)
class RenderSettings:
    """
    Options handed to render collaborators. Only current_date has an effect on
    the model (status and aggregates); the other two are visual.
    """
    use_load_width: bool = True
    color_mode: ColorMode = "loadScale"
    current_date: Optional[datetime] = None

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "RenderSettings":
        use_load_width = cfg.get("useLoadWidth", cfg.get("use_load_width", True))
        color_mode = str(cfg.get("colorMode", cfg.get("color_mode", "loadScale"))).strip()
        current_date = cfg.get("currentDate", cfg.get("current_date"))

        out = RenderSettings(
            use_load_width=_as_bool(use_load_width),
            color_mode=color_mode,  # type: ignore[arg-type]
            current_date=as_instant(current_date),
        )
        out.validate()
        return out

    def validate(self) -> None:
        if self.color_mode not in ("loadScale", "capacityWarning"):
            raise ValueError(f"RenderSettings.color_mode invalid: {self.color_mode!r}")
