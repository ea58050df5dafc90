from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from prtagger.core.config import Config, DEFAULT_CONFIG_FILE, load_config, load_config_or_default
from prtagger.core.errors import ErrorCode
from prtagger.core.result import Err
from prtagger.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol


def build_context(config_path: Path | None = None) -> CLIContext:
    """Load the config (defaults when the default file is absent).

    An explicit --config must exist.
    """
    if config_path is None:
        result = load_config_or_default(Path.cwd() / DEFAULT_CONFIG_FILE)
    else:
        result = load_config(config_path.expanduser())

    if isinstance(result, Err):
        typer.echo(f"error: {result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    return CLIContext(config=result.value, console=RichConsole())
