from __future__ import annotations

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Tuple

from distnet.core.build.errors import IdSpaceExhaustedError, PatternMismatchError
from distnet.core.models.pipe import Pipe
from distnet.core.models.types import KIND_MARKER, InsertSide, PipeKind

logger = logging.getLogger(__name__)

# prefix ends in a kind marker letter; number is an integer or has a decimal part
SIBLING_ID_RE = re.compile(r"^(.*[SLT])(\d+(?:\.\d+)?)$")

# One decimal digit leaves room for about three repeated insertions at the
# same boundary inside a unit gap (1 -> 1.5 -> 1.3 -> 1.4) before the next
# midpoint rounds onto an existing id and IdSpaceExhaustedError is raised.
MAX_FRACTIONAL_DEPTH = 3

_STEP = Decimal("0.1")


def parse_sibling_id(pipe_id: str) -> Tuple[str, Decimal]:
    m = SIBLING_ID_RE.match(pipe_id)
    if not m:
        raise PatternMismatchError(pipe_id)
    return m.group(1), Decimal(m.group(2))


def _try_parse(pipe_id: str) -> Optional[Tuple[str, Decimal]]:
    m = SIBLING_ID_RE.match(pipe_id)
    if not m:
        return None
    return m.group(1), Decimal(m.group(2))


def format_number(value: Decimal) -> str:
    """Integer when whole, otherwise exactly one decimal digit (half-up)."""
    q = value.quantize(_STEP, rounding=ROUND_HALF_UP)
    if q == q.to_integral_value():
        return str(int(q))
    return f"{q:.1f}"


def allocate_sibling_id(reference_id: str, sibling_ids: Iterable[str], side: InsertSide) -> str:
    """
    New id that sorts strictly between reference_id and its neighbour on
    `side` among siblings sharing the same prefix. No sibling is renumbered.

    - with a neighbour: midpoint of the two numbers
    - nothing before: half the reference number
    - nothing after: reference number + 1

    Raises PatternMismatchError for a malformed reference and
    IdSpaceExhaustedError when rounding to one decimal would collide.
    """
    if side not in ("before", "after"):
        raise ValueError(f"side must be 'before' or 'after', got {side!r}")

    prefix, ref = parse_sibling_id(reference_id)

    numbers: List[Decimal] = []
    for sid in sibling_ids:
        parsed = _try_parse(sid)
        if parsed is not None and parsed[0] == prefix:
            numbers.append(parsed[1])

    if side == "before":
        lower = max((n for n in numbers if n < ref), default=None)
        new = (lower + ref) / 2 if lower is not None else ref / 2
        low_bound, high_bound = lower, ref
    else:
        upper = min((n for n in numbers if n > ref), default=None)
        new = (ref + upper) / 2 if upper is not None else ref + 1
        low_bound, high_bound = ref, upper

    text = format_number(new)
    rendered = Decimal(text)
    too_low = low_bound is not None and rendered <= low_bound
    too_high = high_bound is not None and rendered >= high_bound
    if too_low or too_high:
        raise IdSpaceExhaustedError(reference_id, f"{prefix}{text}")

    new_id = f"{prefix}{text}"
    logger.debug("Allocated %s %s %s", new_id, side, reference_id)
    return new_id


def next_child_id(parent: Pipe, kind: PipeKind) -> str:
    """
    Id for a child appended after the last one: highest existing number of
    that kind's marker + 1, or '<parent>-<marker>1' for the first child.
    """
    marker = KIND_MARKER[kind]
    best: Optional[Tuple[str, Decimal]] = None
    for child in parent.children:
        if child.kind != kind:
            continue
        parsed = _try_parse(child.id)
        if parsed is None or not parsed[0].endswith(marker):
            continue
        if best is None or parsed[1] > best[1]:
            best = parsed

    if best is None:
        return f"{parent.id}-{marker}1"

    prefix, highest = best
    return f"{prefix}{format_number(highest + 1)}"
