"""Extraction of proposal-mutating calls from a block's actions."""

from __future__ import annotations

from devhind.constants import DEVHUB_CONTRACT, EDIT_METHODS, SET_BLOCK_HEIGHT_CALLBACK
from devhind.core.models import Block, ExtractedOperation, FunctionCall
from devhind.decoding.codec import decode_base64_json


def is_indexed_call(method_name: str, caller: str, *, contract: str = DEVHUB_CONTRACT) -> bool:
    """Return True for the calls whose effects get indexed.

    `set_block_height_callback` only counts when the contract calls itself
    (the tail of `add_proposal`); a user calling it directly is ignored.
    """
    if method_name in EDIT_METHODS:
        return True
    return method_name == SET_BLOCK_HEIGHT_CALLBACK and caller == contract


def extract_operations(block: Block, *, contract: str = DEVHUB_CONTRACT) -> list[ExtractedOperation]:
    """Return the qualifying contract calls of `block`, in action order.

    Raises DecodeError if a qualifying call carries undecodable arguments.
    """
    out: list[ExtractedOperation] = []
    for action in block.actions:
        if action.receiver_id != contract:
            continue
        for op in action.operations:
            if not isinstance(op, FunctionCall):
                continue
            if not is_indexed_call(op.method_name, action.predecessor_id, contract=contract):
                continue
            out.append(
                ExtractedOperation(
                    method_name=op.method_name,
                    args=decode_base64_json(op.args_base64),
                    caller=action.predecessor_id,
                    receipt_id=action.receipt_id,
                )
            )
    return out
