import json

import pytest

from builders import (
    TS,
    author_index_state_change,
    b64_json,
    edit_args,
    function_call_receipt,
    streamer_message,
)
from devhind.clients.lake import FileBlockSource, parse_operation, parse_streamer_message
from devhind.core.errors import BlockParseError, DecodeError
from devhind.core.models import FunctionCall, OtherOperation
from devhind.decoding import build_author_proposal_map, extract_operations


def test_parse_snake_case_message() -> None:
    msg = streamer_message(
        height=77,
        receipts=(function_call_receipt("edit_proposal", edit_args(), receipt_id="r1"),),
        state_changes=(author_index_state_change("alice.near", 42),),
    )

    block = parse_streamer_message(msg)

    assert block.height == 77
    assert block.timestamp_nanosec == TS
    assert len(block.actions) == 1
    action = block.actions[0]
    assert (action.receipt_id, action.receiver_id, action.predecessor_id) == ("r1", "devhub.near", "alice.near")
    assert isinstance(action.operations[0], FunctionCall)
    assert action.operations[0].gas == 100_000_000_000_000
    assert [op.method_name for op in extract_operations(block)] == ["edit_proposal"]
    assert dict(build_author_proposal_map(block)) == {"alice.near": 42}


def test_parse_camel_case_message() -> None:
    msg = {
        "block": {"header": {"height": 5, "timestampNanosec": str(TS)}},
        "shards": [
            {
                "receiptExecutionOutcomes": [
                    {
                        "receipt": {
                            "receiptId": "r9",
                            "receiverId": "devhub.near",
                            "predecessorId": "bob.near",
                            "receipt": {
                                "Action": {
                                    "actions": [
                                        {"FunctionCall": {"methodName": "edit_proposal", "args": b64_json({"a": 1})}}
                                    ]
                                }
                            },
                        }
                    }
                ],
                "stateChanges": [
                    {
                        "type": "data_update",
                        "change": {"accountId": "devhub.near", "keyBase64": "AA==", "valueBase64": "AA=="},
                    }
                ],
            }
        ],
    }

    block = parse_streamer_message(msg)

    assert block.height == 5
    assert block.actions[0].receipt_id == "r9"
    assert block.actions[0].operations[0].method_name == "edit_proposal"
    assert block.state_changes[0].account_id == "devhub.near"
    assert block.state_changes[0].key_base64 == "AA=="


def test_method_name_prefers_camel_case_spelling() -> None:
    op = parse_operation({"FunctionCall": {"methodName": "edit_proposal", "method_name": "add_post", "args": ""}})
    assert op == FunctionCall(method_name="edit_proposal", args_base64="")


@pytest.mark.parametrize(
    "raw, kind",
    [
        ("CreateAccount", "CreateAccount"),
        ({"Transfer": {"deposit": "1"}}, "Transfer"),
        ({"AddKey": {}}, "AddKey"),
    ],
)
def test_non_function_call_entries(raw, kind: str) -> None:
    assert parse_operation(raw) == OtherOperation(kind=kind)


def test_data_receipts_are_skipped() -> None:
    data_receipt = {
        "receipt_id": "d1",
        "receiver_id": "devhub.near",
        "predecessor_id": "system",
        "receipt": {"Data": {"data_id": "x", "data": None}},
    }
    msg = streamer_message(
        height=1,
        receipts=(data_receipt, function_call_receipt("edit_proposal", {}, receipt_id="a1")),
    )

    block = parse_streamer_message(msg)

    assert [a.receipt_id for a in block.actions] == ["a1"]


def test_actions_and_changes_span_all_shards() -> None:
    msg = streamer_message(height=3, receipts=(function_call_receipt("edit_proposal", {}, receipt_id="s0"),))
    msg["shards"].append(
        {
            "shard_id": 1,
            "receipt_execution_outcomes": [
                {"receipt": function_call_receipt("edit_proposal_timeline", {}, receipt_id="s1")}
            ],
            "state_changes": [author_index_state_change("alice.near", 1)],
        }
    )

    block = parse_streamer_message(msg)

    assert [a.receipt_id for a in block.actions] == ["s0", "s1"]
    assert len(block.state_changes) == 1


def test_invalid_message_raises_block_parse_error() -> None:
    with pytest.raises(BlockParseError, match="invalid streamer message"):
        parse_streamer_message({"block": {"header": {"height": "not a number"}}})


def test_block_parse_error_is_a_decode_error() -> None:
    with pytest.raises(DecodeError):
        parse_streamer_message({"shards": []})


@pytest.mark.asyncio
async def test_file_block_source_uses_natural_file_order(tmp_path) -> None:
    for height in (100, 9, 10):
        (tmp_path / f"{height}.json").write_text(json.dumps(streamer_message(height=height)))
    (tmp_path / "notes.txt").write_text("ignored")

    heights = [b.height async for b in FileBlockSource(tmp_path).blocks()]

    assert heights == [9, 10, 100]


@pytest.mark.asyncio
async def test_file_block_source_searches_subdirectories(tmp_path) -> None:
    for height in (11, 2):
        (tmp_path / f"{height:012d}").mkdir()
        (tmp_path / f"{height:012d}" / "block.json").write_text(json.dumps(streamer_message(height=height)))

    assert [b.height async for b in FileBlockSource(tmp_path).blocks()] == [2, 11]


@pytest.mark.asyncio
async def test_file_block_source_reads_one_file_per_step(tmp_path) -> None:
    (tmp_path / "1.json").write_text(json.dumps(streamer_message(height=1)))
    (tmp_path / "2.json").write_text(json.dumps(streamer_message(height=2)))
    blocks = FileBlockSource(tmp_path).blocks()

    first = await anext(blocks)
    (tmp_path / "2.json").write_text(json.dumps(streamer_message(height=22)))
    second = await anext(blocks)
    await blocks.aclose()

    assert (first.height, second.height) == (1, 22)


@pytest.mark.asyncio
async def test_file_block_source_single_file(tmp_path) -> None:
    path = tmp_path / "block.json"
    path.write_text(json.dumps(streamer_message(height=4)))

    source = FileBlockSource(path)

    assert source.files() == [path]
    assert [b.height async for b in source.blocks()] == [4]


@pytest.mark.asyncio
async def test_file_block_source_yields_parse_errors_in_place(tmp_path) -> None:
    (tmp_path / "1.json").write_text(json.dumps(streamer_message(height=1)))
    (tmp_path / "2.json").write_text("{broken")
    (tmp_path / "3.json").write_text(json.dumps({"shards": []}))
    (tmp_path / "4.json").write_text(json.dumps(streamer_message(height=4)))

    items = [item async for item in FileBlockSource(tmp_path).blocks()]

    assert items[0].height == 1
    assert isinstance(items[1], BlockParseError)
    assert "not valid JSON" in str(items[1])
    assert items[1].source == str(tmp_path / "2.json")
    assert isinstance(items[2], BlockParseError)
    assert "invalid streamer message" in str(items[2])
    assert items[2].source == str(tmp_path / "3.json")
    assert items[3].height == 4
