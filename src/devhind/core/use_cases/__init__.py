from devhind.core.use_cases.index_block import (
    DispatchContext,
    IndexBlockService,
    build_dump_record,
    build_proposal_snapshot,
    dispatch_operation,
)

__all__ = [
    "DispatchContext",
    "IndexBlockService",
    "build_dump_record",
    "build_proposal_snapshot",
    "dispatch_operation",
]
