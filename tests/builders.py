"""Builders for blocks, state diffs and streamer messages used across tests."""

from __future__ import annotations

import base64
import json
from typing import Any

from devhind.core.models import Block, FunctionCall, RawAction, RawStateChange

CONTRACT = "devhub.near"
TS = 1_714_000_000_000_000_000


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64_json(value: Any) -> str:
    return b64(json.dumps(value).encode("utf-8"))


def encode_author_index_entry(author: str, proposal_id: int, *, trailer: bytes = b"\x01\x00") -> tuple[bytes, bytes]:
    """Inverse of decode_author_proposal_entry over the author-index layout."""
    key = b"\x0e" + proposal_id.to_bytes(8, "little")
    author_bytes = author.encode("utf-8")
    value = b"\x00\x07\x00\x00\x00" + len(author_bytes).to_bytes(4, "little") + author_bytes + trailer
    return key, value


def author_index_change(
    author: str,
    proposal_id: int,
    *,
    account: str = CONTRACT,
    kind: str = "data_update",
) -> RawStateChange:
    key, value = encode_author_index_entry(author, proposal_id)
    return RawStateChange(kind=kind, account_id=account, key_base64=b64(key), value_base64=b64(value))


def call_action(
    method_name: str,
    args: Any,
    *,
    caller: str = "alice.near",
    receiver: str = CONTRACT,
    receipt_id: str = "receipt-1",
) -> RawAction:
    return RawAction(
        receipt_id=receipt_id,
        receiver_id=receiver,
        predecessor_id=caller,
        operations=(FunctionCall(method_name=method_name, args_base64=b64_json(args)),),
    )


def make_block(
    actions: tuple[RawAction, ...] = (),
    changes: tuple[RawStateChange, ...] = (),
    *,
    height: int = 100,
    ts: int = TS,
) -> Block:
    return Block(height=height, timestamp_nanosec=ts, actions=actions, state_changes=changes)


def edit_args(**body_overrides: Any) -> dict[str, Any]:
    body = {
        "name": "N",
        "category": "C",
        "summary": "S",
        "description": "D",
        "linked_proposals": [1, 2],
        "requested_sponsorship_usd_amount": 100,
        "requested_sponsorship_paid_in_currency": "USD",
        "requested_sponsor": "s.near",
        "receiver_account": "r.near",
        "supervisor": None,
        "timeline": {"status": "Draft"},
    }
    body.update(body_overrides)
    return {"labels": ["x"], "body": body}


def streamer_message(
    *,
    height: int,
    receipts: tuple[dict[str, Any], ...] = (),
    state_changes: tuple[dict[str, Any], ...] = (),
    ts: int | str = TS,
) -> dict[str, Any]:
    """A minimal NEAR Lake streamer message in snake_case."""
    return {
        "block": {"author": "node.near", "header": {"height": height, "timestamp_nanosec": str(ts)}},
        "shards": [
            {
                "shard_id": 0,
                "receipt_execution_outcomes": [{"receipt": r, "execution_outcome": {}} for r in receipts],
                "state_changes": list(state_changes),
            }
        ],
    }


def function_call_receipt(
    method_name: str,
    args: Any,
    *,
    caller: str = "alice.near",
    receiver: str = CONTRACT,
    receipt_id: str = "receipt-1",
) -> dict[str, Any]:
    return {
        "receipt_id": receipt_id,
        "receiver_id": receiver,
        "predecessor_id": caller,
        "receipt": {
            "Action": {
                "signer_id": caller,
                "actions": [
                    {
                        "FunctionCall": {
                            "method_name": method_name,
                            "args": b64_json(args),
                            "gas": 100_000_000_000_000,
                            "deposit": "0",
                        }
                    }
                ],
            }
        },
    }


def author_index_state_change(author: str, proposal_id: int, *, account: str = CONTRACT) -> dict[str, Any]:
    key, value = encode_author_index_entry(author, proposal_id)
    return {
        "cause": {"type": "receipt_processing", "receipt_hash": "h"},
        "type": "data_update",
        "change": {"account_id": account, "key_base64": b64(key), "value_base64": b64(value)},
    }


__all__ = [
    "CONTRACT",
    "TS",
    "author_index_change",
    "author_index_state_change",
    "b64",
    "b64_json",
    "call_action",
    "edit_args",
    "encode_author_index_entry",
    "function_call_receipt",
    "make_block",
    "streamer_message",
]
