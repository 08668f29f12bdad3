"""Author -> proposal id correlation from a block's storage diffs.

Edit calls never carry the proposal id: the contract assigns or looks it up
internally. The only trace of "which proposal did this author touch" is the
author-index record the contract rewrites as a side effect, so the map is
rebuilt from `data_update` diffs on the contract account.
"""

from __future__ import annotations

from collections.abc import Iterator

from devhind.constants import AUTHOR_INDEX_KEY_PREFIX, DATA_UPDATE, DEVHUB_CONTRACT
from devhind.core.models import AuthorProposalMap, Block, RawStateChange
from devhind.decoding.codec import base64_to_bytes, base64_to_hex, decode_author_proposal_entry


def iter_author_index_changes(
    block: Block,
    *,
    contract: str = DEVHUB_CONTRACT,
    key_prefix: str = AUTHOR_INDEX_KEY_PREFIX,
) -> Iterator[RawStateChange]:
    """Yield the contract's `data_update` diffs whose key starts with `key_prefix`."""
    for change in block.state_changes:
        if change.kind != DATA_UPDATE or change.account_id != contract:
            continue
        if change.key_base64 is None or change.value_base64 is None:
            continue
        if base64_to_hex(change.key_base64).startswith(key_prefix):
            yield change


def build_author_proposal_map(
    block: Block,
    *,
    contract: str = DEVHUB_CONTRACT,
    key_prefix: str = AUTHOR_INDEX_KEY_PREFIX,
) -> AuthorProposalMap:
    """Decode every author-index diff of `block` into one read-only map.

    Later diffs for the same author overwrite earlier ones.
    Raises DecodeError if a qualifying diff does not fit the layout.
    """
    return AuthorProposalMap(
        decode_author_proposal_entry(
            base64_to_bytes(change.key_base64),  # type: ignore[arg-type]
            base64_to_bytes(change.value_base64),  # type: ignore[arg-type]
        )
        for change in iter_author_index_changes(block, contract=contract, key_prefix=key_prefix)
    )
