"""CLI commands for DocuSync.

Provides the Click-based command group 'docusync' with subcommands for
serving the browser UI and for running either documentation mode
directly from the terminal.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
import uvicorn

from docusync import __version__
from docusync.generators.doc_service import DocumentationService
from docusync.generators.invoker import InvocationState
from docusync.generators.llm_client import GeminiClient
from docusync.utils.config import load_config
from docusync.utils.logging import setup_logging
from docusync.web.app import create_app

logger = logging.getLogger(__name__)


def _build_service(config_path: Optional[str]) -> DocumentationService:
    config = load_config(config_path)
    return DocumentationService.from_client(GeminiClient(config.api))


def _emit(state: InvocationState, output: Optional[str]) -> None:
    """Print or write a terminal state, exiting non-zero on failure."""
    if state.error is not None:
        raise click.ClickException(state.error)

    if output:
        Path(output).write_text(state.result or "", encoding="utf-8")
        click.echo(f"Output written to {output}")
    else:
        click.echo(state.result)


@click.group()
@click.version_option(version=__version__, prog_name="docusync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to a config.yaml file.",
)
@click.pass_context
def docusync(ctx: click.Context, config_path: Optional[str]) -> None:
    """DocuSync AI Assistant: documentation from source code via Gemini."""
    config = load_config(config_path)
    setup_logging(
        level=config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file,
    )
    ctx.obj = {"config_path": config_path}


@docusync.command()
@click.option("--host", default=None, help="Interface to bind. Defaults to config.")
@click.option("--port", type=int, default=None, help="Port to bind. Defaults to config.")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Serve the browser UI."""
    config = load_config(ctx.obj["config_path"])
    bind_host = host or config.server.host
    bind_port = port or config.server.port

    logger.info("Starting web UI for model %s", config.api.model)
    click.echo(f"Serving DocuSync on http://{bind_host}:{bind_port}")
    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )


@docusync.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o", type=click.Path(), default=None, help="Output file path."
)
@click.pass_context
def generate(ctx: click.Context, path: str, output: Optional[str]) -> None:
    """Generate full documentation for a source file."""
    source_code = Path(path).read_text(encoding="utf-8")
    service = _build_service(ctx.obj["config_path"])

    click.echo(f"Generating documentation for {path}", err=True)
    state = asyncio.run(service.generate_documentation(source_code))
    _emit(state, output)


@docusync.command()
@click.argument("original", type=click.Path(exists=True, dir_okay=False))
@click.argument("updated", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o", type=click.Path(), default=None, help="Output file path."
)
@click.pass_context
def suggest(
    ctx: click.Context, original: str, updated: str, output: Optional[str]
) -> None:
    """Suggest a documentation update from two versions of a file."""
    original_code = Path(original).read_text(encoding="utf-8")
    updated_code = Path(updated).read_text(encoding="utf-8")
    service = _build_service(ctx.obj["config_path"])

    click.echo(f"Analyzing changes from {original} to {updated}", err=True)
    state = asyncio.run(service.suggest_update(original_code, updated_code))
    _emit(state, output)
