import pytest

from builders import CONTRACT, b64, call_action, edit_args, make_block
from devhind.core.errors import DecodeError
from devhind.core.models import FunctionCall, OtherOperation, RawAction
from devhind.decoding.operations import extract_operations, is_indexed_call


@pytest.mark.parametrize("method", ["edit_proposal", "edit_proposal_internal", "edit_proposal_timeline"])
def test_edit_methods_are_extracted(method: str) -> None:
    block = make_block((call_action(method, edit_args(), caller="alice.near", receipt_id="r1"),))

    ops = extract_operations(block)

    assert len(ops) == 1
    assert ops[0].method_name == method
    assert ops[0].caller == "alice.near"
    assert ops[0].receipt_id == "r1"
    assert ops[0].args == edit_args()


@pytest.mark.parametrize("method", ["add_proposal", "get_proposal", "add_post", "set_block_height"])
def test_other_methods_are_dropped(method: str) -> None:
    block = make_block((call_action(method, {"x": 1}),))
    assert extract_operations(block) == []


def test_callback_requires_contract_as_caller() -> None:
    block = make_block(
        (
            call_action("set_block_height_callback", edit_args(), caller="mallory.near", receipt_id="r-user"),
            call_action("set_block_height_callback", edit_args(), caller=CONTRACT, receipt_id="r-self"),
        )
    )

    ops = extract_operations(block)

    assert [op.receipt_id for op in ops] == ["r-self"]
    assert not is_indexed_call("set_block_height_callback", "mallory.near")
    assert is_indexed_call("set_block_height_callback", CONTRACT)


def test_calls_to_other_receivers_are_ignored() -> None:
    block = make_block((call_action("edit_proposal", edit_args(), receiver="other.near"),))
    assert extract_operations(block) == []


def test_non_function_call_operations_are_ignored() -> None:
    action = RawAction(
        receipt_id="r1",
        receiver_id=CONTRACT,
        predecessor_id="alice.near",
        operations=(
            OtherOperation(kind="Transfer"),
            FunctionCall(method_name="edit_proposal_timeline", args_base64=b64(b'{"id":1}')),
            OtherOperation(kind="AddKey"),
        ),
    )

    ops = extract_operations(make_block((action,)))

    assert [(op.method_name, op.args) for op in ops] == [("edit_proposal_timeline", {"id": 1})]


def test_output_follows_action_order() -> None:
    block = make_block(
        (
            call_action("edit_proposal_timeline", {"n": 1}, receipt_id="a"),
            call_action("add_proposal", {"n": 2}, receipt_id="b"),
            call_action("edit_proposal", {"n": 3}, receipt_id="c"),
            call_action("edit_proposal_internal", {"n": 4}, receipt_id="d"),
        )
    )
    assert [op.receipt_id for op in extract_operations(block)] == ["a", "c", "d"]


def test_undecodable_arguments_raise() -> None:
    action = RawAction(
        receipt_id="r1",
        receiver_id=CONTRACT,
        predecessor_id="alice.near",
        operations=(FunctionCall(method_name="edit_proposal", args_base64=b64(b"{broken")),),
    )
    with pytest.raises(DecodeError):
        extract_operations(make_block((action,)))


def test_undecodable_arguments_of_ignored_calls_are_not_decoded() -> None:
    action = RawAction(
        receipt_id="r1",
        receiver_id=CONTRACT,
        predecessor_id="alice.near",
        operations=(FunctionCall(method_name="add_post", args_base64=b64(b"\xff")),),
    )
    assert extract_operations(make_block((action,))) == []


def test_contract_is_configurable() -> None:
    block = make_block(
        (
            call_action("edit_proposal", edit_args(), receiver="devhub.testnet", receipt_id="t"),
            call_action("edit_proposal", edit_args(), receiver=CONTRACT, receipt_id="m"),
        )
    )
    assert [op.receipt_id for op in extract_operations(block, contract="devhub.testnet")] == ["t"]
