from render.assembler import EmitSegment, StreamAssembler, assemble, merge_segments
from render.boundary_scanner import BoundaryScanner, PendingMarker, ScanResult
from render.chunk_buffer import ChunkBuffer
from render.errors import AssemblerError, RangeError, StreamClosedError
from render.fence_state import (
    INLINE_CODE,
    PLAIN,
    FenceState,
    FenceStateMachine,
    Transition,
    in_fence,
    inline_code,
)

__all__ = [
    "AssemblerError",
    "BoundaryScanner",
    "ChunkBuffer",
    "EmitSegment",
    "FenceState",
    "FenceStateMachine",
    "INLINE_CODE",
    "PLAIN",
    "PendingMarker",
    "RangeError",
    "ScanResult",
    "StreamAssembler",
    "StreamClosedError",
    "Transition",
    "assemble",
    "in_fence",
    "inline_code",
    "merge_segments",
]
