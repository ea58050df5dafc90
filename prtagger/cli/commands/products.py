from __future__ import annotations

from pathlib import Path

import typer

from prtagger.cli.context import build_context
from prtagger.output.console import Style


def products(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="prtagger.toml (default: ./prtagger.toml if present)."
    ),
) -> None:
    """List the tracked products and their build pipelines."""
    ctx = build_context(config)
    for product in ctx.config.products:
        ctx.console.print(f"{product.name}  {product.repo_url}")
        ctx.console.print(f"  manifest: {product.component_json} [{product.component}]", Style.DIM)
        for org in ctx.config.organizations:
            pipeline = product.build_pipeline_name(org.name) or "-"
            ctx.console.print(f"  {org.name}: {pipeline}", Style.DIM)
