from __future__ import annotations


class DistnetError(ValueError):
    """Base class for model failures."""


class PatternMismatchError(DistnetError):
    """Sibling id does not match '<prefix><number>'; caller must not insert."""
    def __init__(self, pipe_id: str):
        self.pipe_id = pipe_id
        super().__init__(f"Pipe id {pipe_id!r} does not match '<prefix><number>' (prefix ending in S/L/T).")


class IdSpaceExhaustedError(DistnetError):
    """No one-decimal id is left between the reference and its neighbour."""
    def __init__(self, reference_id: str, candidate: str):
        self.reference_id = reference_id
        self.candidate = candidate
        super().__init__(
            f"No free sibling id next to {reference_id!r} (candidate {candidate!r} collides). "
            f"Renumber the siblings before inserting here."
        )


class InvalidAttachmentError(DistnetError):
    """Tools are always leaves."""
    def __init__(self, parent_id: str, child_id: str):
        self.parent_id = parent_id
        self.child_id = child_id
        super().__init__(f"Cannot attach {child_id!r} to tool {parent_id!r}: tools are leaves.")


class DanglingReferenceError(DistnetError):
    """Record whose parent does not resolve to a constructed pipe."""
    def __init__(self, record_id: str, parent_id: str):
        self.record_id = record_id
        self.parent_id = parent_id
        super().__init__(f"Record {record_id!r} references parent {parent_id!r}, which is not in the tree.")


class DuplicatePipeIdError(DistnetError):
    def __init__(self, pipe_id: str):
        self.pipe_id = pipe_id
        super().__init__(f"Pipe id {pipe_id!r} already exists in the network.")


class UnknownPipeError(DistnetError, KeyError):
    def __init__(self, pipe_id: str):
        self.pipe_id = pipe_id
        super().__init__(f"Unknown pipe id {pipe_id!r}.")

    def __str__(self) -> str:
        return self.args[0]
