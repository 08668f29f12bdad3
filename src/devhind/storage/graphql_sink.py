from __future__ import annotations

from devhind.constants import DEFAULT_SCHEMA_PREFIX
from devhind.core.errors import PersistenceError
from devhind.core.interfaces import IMutationGateway, IRecordSink
from devhind.core.models import DumpRecord, ProposalRecord, ProposalSnapshotRecord
from devhind.storage.mutations import render_mutations


class GraphQLRecordSink(IRecordSink):
    """Record sink issuing one insert mutation per record.

    The mutation variable names (`dump`, `proposal`, `proposal_snapshot`)
    match the templates in `devhind.storage.mutations`.
    """

    def __init__(self, gateway: IMutationGateway, *, schema_prefix: str = DEFAULT_SCHEMA_PREFIX) -> None:
        self._gateway = gateway
        self._mutations = render_mutations(schema_prefix)

    async def _insert(self, table: str, variable: str, row: dict) -> None:
        try:
            await self._gateway.execute(self._mutations[table], {variable: row})
        except PersistenceError as e:
            e.table = e.table or table
            raise

    async def create_dump(self, record: DumpRecord) -> None:
        await self._insert(record.table, "dump", record.to_dict())

    async def create_proposal(self, record: ProposalRecord) -> None:
        await self._insert(record.table, "proposal", record.to_dict())

    async def create_proposal_snapshot(self, record: ProposalSnapshotRecord) -> None:
        await self._insert(record.table, "proposal_snapshot", record.to_dict())
