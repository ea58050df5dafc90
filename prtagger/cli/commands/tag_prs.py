from __future__ import annotations

from pathlib import Path

import typer

from prtagger.cli.commands._helpers import exit_on_error
from prtagger.cli.context import build_context
from prtagger.core.errors import ErrorCode
from prtagger.services.tagger.service import (
    build_controller,
    exit_code,
    print_summary,
    select_products,
)


def tag_prs(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="prtagger.toml (default: ./prtagger.toml if present)."
    ),
    product: list[str] = typer.Option(
        [], "--product", "-p", help="Product to tag (repeatable; default: all)."
    ),
    max_builds: int | None = typer.Option(
        None, "--max-builds", min=1, help="Umbrella builds to fetch per product."
    ),
    work_dir: Path | None = typer.Option(
        None, "--work-dir", help="Where component repositories are cloned."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Compute PR lists without creating issues."
    ),
) -> None:
    """Create one GitHub issue per umbrella build listing the inserted PRs."""
    ctx = build_context(config)

    products = exit_on_error(select_products(ctx.config, product), ctx, ErrorCode.USER_ERROR)
    controller = exit_on_error(
        build_controller(
            ctx.config,
            console=ctx.console,
            work_dir=(work_dir or Path(ctx.config.run.work_dir)).expanduser().resolve(),
            max_builds=max_builds or ctx.config.run.max_builds,
            dry_run=dry_run,
        ),
        ctx,
        ErrorCode.CONFIG_ERROR,
    )

    reports = controller.run(products)
    print_summary(reports, ctx.console)

    code = exit_code(reports)
    if not code.is_success:
        raise typer.Exit(code=int(code))
