import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from devhind.constants import AUTHOR_INDEX_KEY_PREFIX, DEFAULT_SCHEMA_PREFIX, DEVHUB_CONTRACT
from devhind.core.config import GraphQLConfig, IndexerConfig, RunnerConfig
from devhind.core.errors import IndexerError
from devhind.observability.logging import configure_logging

console = Console()


@click.group()
def cli() -> None:
    """devhind: DevHub proposal history indexer for NEAR blocks."""


@cli.command("index")
@click.argument("blocks_path", type=click.Path(exists=True, path_type=Path))
@click.option("--graphql-url", envvar="DEVHIND_GRAPHQL_URL", default=None, help="GraphQL endpoint; omit to write Parquet shards")
@click.option("--schema-prefix", envvar="DEVHIND_SCHEMA_PREFIX", default=DEFAULT_SCHEMA_PREFIX, show_default=True)
@click.option("--role", envvar="DEVHIND_GRAPHQL_ROLE", default=None, help="X-Hasura-Role header value")
@click.option("--timeout", "timeout_s", type=int, default=20, show_default=True, help="GraphQL timeout (s)")
@click.option(
    "--out-root",
    envvar="DEVHIND_OUT_ROOT",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("./data"),
    show_default=True,
    help="Manifests (and Parquet shards when no GraphQL URL is given)",
)
@click.option("--contract", envvar="DEVHIND_CONTRACT", default=DEVHUB_CONTRACT, show_default=True)
@click.option("--concurrency", type=int, default=16, show_default=True, help="Max parallel dispatches per block")
@click.option("--rows-per-shard", type=int, default=50_000, show_default=True)
@click.option(
    "--skip-failed-blocks/--no-skip-failed-blocks",
    default=False,
    show_default=True,
    help="Keep going after a block fails to decode",
)
@click.option("--log-level", envvar="DEVHIND_LOG_LEVEL", default="INFO", show_default=True)
def index_cmd(
    blocks_path: Path,
    graphql_url: str | None,
    schema_prefix: str,
    role: str | None,
    timeout_s: int,
    out_root: Path,
    contract: str,
    concurrency: int,
    rows_per_shard: int,
    skip_failed_blocks: bool,
    log_level: str,
) -> None:
    """Replay NEAR Lake block files through the indexer with a live progress bar."""
    from devhind.clients.lake import FileBlockSource
    from devhind.orchestration.orchestrator import replay

    configure_logging(log_level)
    config = RunnerConfig(
        blocks_path=blocks_path,
        out_root=out_root,
        indexer=IndexerConfig(
            contract=contract,
            author_index_prefix=AUTHOR_INDEX_KEY_PREFIX,
            concurrency=concurrency,
        ),
        graphql=GraphQLConfig(url=graphql_url, schema_prefix=schema_prefix, role=role, timeout_s=timeout_s)
        if graphql_url
        else None,
        rows_per_shard=rows_per_shard,
        skip_failed_blocks=skip_failed_blocks,
        log_level=log_level,
    )

    total = len(FileBlockSource(blocks_path).files())
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]indexing blocks[/]"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn(" • {task.description}"),
        console=console,
        transient=False,
        expand=True,
    )

    with progress:
        task = progress.add_task(description="", total=total)

        def on_block(height: int | None) -> None:
            label = "unparseable file" if height is None else f"height {height:,}"
            progress.update(task, advance=1, description=label)

        try:
            output = asyncio.run(replay(config, on_block=on_block))
        except IndexerError as e:
            raise click.ClickException(str(e)) from e

    s = output.stats
    console.print(
        f"[bold]summary[/]: "
        f"[green]indexed[/]={s.blocks_indexed}  "
        f"[yellow]skipped[/]={s.blocks_skipped}  "
        f"[red]failed[/]={s.blocks_failed}  "
        f"ops={s.operations} dumps={s.dumps} proposals={s.proposals} snapshots={s.snapshots} "
        f"uncorrelated={s.uncorrelated} write_failures={s.write_failures}"
    )
    console.print(f"[bold]manifest[/]: {output.manifest_path}")
    for path in output.shards_written:
        console.print(f"[bold]shard[/]: {path}")


@cli.command("history")
@click.argument("out_root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("proposal_id", type=int)
def history_cmd(out_root: Path, proposal_id: int) -> None:
    """Show the snapshot history of one proposal from local Parquet shards."""
    from devhind.storage.queries import snapshot_history

    df = snapshot_history(out_root, proposal_id)
    if df.empty:
        raise click.ClickException(f"no snapshots for proposal {proposal_id} under {out_root}")

    table = Table(title=f"proposal {proposal_id}")
    for col in ("block_height", "ts", "editor_id", "name", "category", "timeline"):
        table.add_column(col)
    for row in df.itertuples(index=False):
        table.add_row(
            str(row.block_height),
            str(row.ts),
            str(row.editor_id),
            str(row.name),
            str(row.category),
            str(row.timeline),
        )
    console.print(table)


if __name__ == "__main__":
    cli()
