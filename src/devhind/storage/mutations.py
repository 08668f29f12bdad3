"""
mutations.py
------------

GraphQL insert mutations for the three record tables.

Each template takes the schema prefix of the target database
(`{schema}_dumps`, `{schema}_proposals`, `{schema}_proposal_snapshots`) and
is rendered once per sink by `render_mutations`.
"""

from __future__ import annotations

# =====================================================================
# DUMPS
# =====================================================================

CREATE_DUMP_MUTATION = """
mutation CreateDump($dump: {schema}_dumps_insert_input!) {{
  insert_{schema}_dumps_one(object: $dump) {{
    receipt_id
  }}
}}
"""


# =====================================================================
# PROPOSALS
# =====================================================================

CREATE_PROPOSAL_MUTATION = """
mutation CreateProposal($proposal: {schema}_proposals_insert_input!) {{
  insert_{schema}_proposals_one(object: $proposal) {{
    id
  }}
}}
"""


# =====================================================================
# PROPOSAL SNAPSHOTS
# =====================================================================

CREATE_PROPOSAL_SNAPSHOT_MUTATION = """
mutation CreateProposalSnapshot($proposal_snapshot: {schema}_proposal_snapshots_insert_input!) {{
  insert_{schema}_proposal_snapshots_one(object: $proposal_snapshot) {{
    proposal_id
    block_height
  }}
}}
"""


def render_mutations(schema: str) -> dict[str, str]:
    """Return the three mutations keyed by record table name."""
    return {
        "dumps": CREATE_DUMP_MUTATION.format(schema=schema),
        "proposals": CREATE_PROPOSAL_MUTATION.format(schema=schema),
        "proposal_snapshots": CREATE_PROPOSAL_SNAPSHOT_MUTATION.format(schema=schema),
    }
