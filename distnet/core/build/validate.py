from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Literal, Optional

if TYPE_CHECKING:
    from distnet.core.models.network import Network

IssueLevel = Literal["error", "warning"]


@dataclass(frozen=True)
class ValidationIssue:
    level: IssueLevel
    message: str
    hint: Optional[str] = None
    pipe_id: Optional[str] = None    # offending pipe, when there is one


class NetworkValidationError(ValueError):
    """Pipe forest or segment graph is inconsistent; `issues` holds the errors."""
    def __init__(self, issues: List[ValidationIssue]):
        self.issues = issues
        errors = [it for it in issues if it.level == "error"]
        lines = [f"Pipe network has {len(errors)} consistency error(s):"]
        for it in errors:
            where = f"[{it.pipe_id}] " if it.pipe_id else ""
            lines.append(f"- {where}{it.message}" + (f" (fix: {it.hint})" if it.hint else ""))
        super().__init__("\n".join(lines))


def validate_network(network: "Network", *, check_segments: bool = True) -> List[ValidationIssue]:
    """
    Validate the pipe forest and its derived segment graph.
    Nothing is repaired here; hand the result to raise_on_errors() to fail on errors.
    """
    issues: List[ValidationIssue] = []

    if not network.roots:
        issues.append(ValidationIssue(
            level="warning",
            message="Network has zero root pipes.",
            hint="Ingest at least one record without parentId."
        ))

    seen: Dict[str, int] = {}
    for root in network.roots:
        if root.parent is not None:
            issues.append(ValidationIssue("error", f"Root {root.id!r} has a parent ({root.parent.id!r}).", pipe_id=root.id))

        for p in root.walk():
            seen[p.id] = seen.get(p.id, 0) + 1

            if p.is_tool and p.children:
                issues.append(ValidationIssue(
                    "error",
                    f"Tool {p.id!r} has {len(p.children)} children.",
                    "Tools are leaves; attach to a lateral instead.",
                    pipe_id=p.id,
                ))

            for c in p.children:
                if c.parent is not p:
                    issues.append(ValidationIssue(
                        "error", f"Pipe {c.id!r} listed under {p.id!r} but its parent differs.", pipe_id=c.id,
                    ))

            expected = [] if p.parent is None else [*p.parent.ancestry, p.parent]
            if len(expected) != len(p.ancestry) or any(a is not b for a, b in zip(expected, p.ancestry)):
                issues.append(ValidationIssue(
                    "error",
                    f"Pipe {p.id!r} ancestry {[a.id for a in p.ancestry]} does not match its parent chain "
                    f"{[a.id for a in expected]}.",
                    pipe_id=p.id,
                ))

            if p.install_at is not None and p.remove_at is not None and p.remove_at < p.install_at:
                issues.append(ValidationIssue(
                    "warning",
                    f"Pipe {p.id!r} has remove_at < install_at ({p.remove_at} < {p.install_at}).",
                    "Accepted as-is: the pipe never reads INSTALLED.",
                    pipe_id=p.id,
                ))

            if check_segments and network.segments:
                n_expected = len(p.children) + 1 if p.children else 1
                if len(p.segments) != n_expected:
                    issues.append(ValidationIssue(
                        "error",
                        f"Pipe {p.id!r} owns {len(p.segments)} segments, expected {n_expected}.",
                        "Call Network.refresh() after topology changes.",
                        pipe_id=p.id,
                    ))

    dups = sorted(k for k, n in seen.items() if n > 1)
    if dups:
        issues.append(ValidationIssue("error", f"Duplicate pipe ids in network: {dups}"))

    return issues


def raise_on_errors(issues: List[ValidationIssue]) -> None:
    errors = [i for i in issues if i.level == "error"]
    if errors:
        raise NetworkValidationError(errors)
