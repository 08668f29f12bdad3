"""NEAR Lake streamer-message parsing and a file-backed block source.

This module provides:
- Pydantic views of the streamer message (`StreamerMessage` and friends),
  accepting snake_case and camelCase field spellings.
- `parse_streamer_message`: validate one message into a domain `Block`.
- `FileBlockSource`: yield blocks from JSON files on disk, one file at a
  time in file-name order.

Actions are derived from the receipts of each shard's execution outcomes,
keeping only `Action` receipts. Function calls prefer `methodName` over the
older `method_name` spelling when both are present.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from devhind.core.errors import BlockParseError
from devhind.core.models import Block, FunctionCall, OtherOperation, Operation, RawAction, RawStateChange


class LakeModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        alias_generator=AliasGenerator(validation_alias=lambda name: AliasChoices(to_camel(name), name)),
    )


class FunctionCallView(LakeModel):
    method_name: str
    args: str = ""
    gas: int = 0
    deposit: int = 0

    def to_domain(self) -> FunctionCall:
        return FunctionCall(
            method_name=self.method_name,
            args_base64=self.args,
            gas=self.gas,
            deposit=self.deposit,
        )


def parse_operation(raw: dict[str, Any] | str) -> Operation:
    """Map one action entry ({"FunctionCall": {...}}, "CreateAccount", ...)."""
    if isinstance(raw, str):
        return OtherOperation(kind=raw)
    if "FunctionCall" in raw:
        return FunctionCallView.model_validate(raw["FunctionCall"]).to_domain()
    return OtherOperation(kind=next(iter(raw), "Unknown"))


class ReceiptView(LakeModel):
    receipt_id: str
    receiver_id: str
    predecessor_id: str
    receipt: dict[str, Any]

    def to_action(self) -> RawAction | None:
        """Return the receipt as an action, or None for data receipts."""
        action = self.receipt.get("Action")
        if action is None:
            return None
        return RawAction(
            receipt_id=self.receipt_id,
            receiver_id=self.receiver_id,
            predecessor_id=self.predecessor_id,
            operations=tuple(parse_operation(op) for op in action.get("actions", [])),
        )


class ExecutionOutcomeView(LakeModel):
    receipt: ReceiptView


class StateChangeValueView(LakeModel):
    account_id: str
    key_base64: str | None = None
    value_base64: str | None = None


class StateChangeView(LakeModel):
    type: str
    change: StateChangeValueView

    def to_domain(self) -> RawStateChange:
        return RawStateChange(
            kind=self.type,
            account_id=self.change.account_id,
            key_base64=self.change.key_base64,
            value_base64=self.change.value_base64,
        )


class ShardView(LakeModel):
    receipt_execution_outcomes: list[ExecutionOutcomeView] = []
    state_changes: list[StateChangeView] = []


class HeaderView(LakeModel):
    height: int
    timestamp_nanosec: int


class BlockView(LakeModel):
    header: HeaderView


class StreamerMessage(LakeModel):
    block: BlockView
    shards: list[ShardView] = []

    def to_domain(self) -> Block:
        actions: list[RawAction] = []
        changes: list[RawStateChange] = []
        for shard in self.shards:
            for outcome in shard.receipt_execution_outcomes:
                action = outcome.receipt.to_action()
                if action is not None:
                    actions.append(action)
            changes.extend(sc.to_domain() for sc in shard.state_changes)
        return Block(
            height=self.block.header.height,
            timestamp_nanosec=self.block.header.timestamp_nanosec,
            actions=tuple(actions),
            state_changes=tuple(changes),
        )


def parse_streamer_message(data: dict[str, Any]) -> Block:
    """Validate a streamer message into a `Block`.

    Raises BlockParseError when the document does not have the expected shape.
    """
    try:
        return StreamerMessage.model_validate(data).to_domain()
    except ValidationError as e:
        raise BlockParseError(f"invalid streamer message: {e}") from e


def _natural_key(path: Path) -> tuple[tuple[int, int | str], ...]:
    """Order file names with embedded numbers numerically (9.json < 10.json)."""
    return tuple((0, int(t)) if t.isdigit() else (1, t) for t in re.split(r"(\d+)", path.as_posix()) if t)


class FileBlockSource:
    """Block source reading streamer messages from `*.json` files.

    Files are read one at a time in natural file-name order, so a replay
    holds a single block in memory. A file that cannot be parsed is yielded
    as its `BlockParseError` in place of the block, letting the caller
    journal it and carry on.

    Parameters
    ----------
    path : Path
        A single JSON file, or a directory searched recursively.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def files(self) -> list[Path]:
        if self.path.is_file():
            return [self.path]
        return sorted(self.path.rglob("*.json"), key=lambda p: _natural_key(p.relative_to(self.path)))

    @staticmethod
    def _load(path: Path) -> Block:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise BlockParseError(f"{path}: cannot read: {e}", source=str(path)) from e
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise BlockParseError(f"{path}: not valid JSON: {e}", source=str(path)) from e
        try:
            return parse_streamer_message(data)
        except BlockParseError as e:
            raise BlockParseError(f"{path}: {e}", source=str(path)) from e

    async def blocks(self) -> AsyncIterator[Block | BlockParseError]:
        for path in self.files():
            try:
                block = await asyncio.to_thread(self._load, path)
            except BlockParseError as e:
                yield e
            else:
                yield block
