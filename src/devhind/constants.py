from __future__ import annotations

# Target contract and the calls that mutate proposals
DEVHUB_CONTRACT = "devhub.near"

EDIT_PROPOSAL = "edit_proposal"
EDIT_PROPOSAL_INTERNAL = "edit_proposal_internal"
EDIT_PROPOSAL_TIMELINE = "edit_proposal_timeline"
SET_BLOCK_HEIGHT_CALLBACK = "set_block_height_callback"  # self-callback of add_proposal

EDIT_METHODS = frozenset({EDIT_PROPOSAL, EDIT_PROPOSAL_INTERNAL, EDIT_PROPOSAL_TIMELINE})
SNAPSHOT_METHODS = EDIT_METHODS | {SET_BLOCK_HEIGHT_CALLBACK}

# Storage prefix byte of the contract's author-index records (hex)
AUTHOR_INDEX_KEY_PREFIX = "0e"

DATA_UPDATE = "data_update"

DEFAULT_SCHEMA_PREFIX = "thomasguntenaar_near_devhub_proposals_echo"
