"""CLI entry point for btc-rpc-schema."""

import logging
from pathlib import Path

import click

from btc_rpc_schema.errors import SchemaError
from btc_rpc_schema.parser.loader import dump_text, load_file
from btc_rpc_schema.schema.base import ApiDefinition, BtcMethod, BtcResult


def _load(doc_path: Path, fmt: str) -> ApiDefinition:
    try:
        return load_file(doc_path, fmt=fmt)
    except SchemaError as e:
        raise click.ClickException(f"{doc_path}: {e}") from e


def _format_signature(method: BtcMethod) -> str:
    params = []
    for arg in method.ordered_arguments:
        marker = "" if arg.required else "?"
        params.append(f"{arg.name}{marker}: {arg.label}")
    return f"{method.name}({', '.join(params)})"


def _format_result(result: BtcResult) -> list[str]:
    lines = []
    for depth, node in result.walk():
        key = f"{node.key_name}: " if node.key_name else ""
        optional = " (optional)" if node.optional else ""
        line = f"{'  ' * depth}{key}{node.type}{optional}"
        if node.description:
            line += f"  # {node.description}"
        lines.append(line)
    return lines


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log loader diagnostics to stderr.")
def main(verbose: bool):
    """btc-rpc-schema: inspect and normalize node RPC schema documents."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "json", "yaml"]), help="Document format.")
def check(doc_path: Path, fmt: str):
    """Load a schema document and report whether it is valid."""
    api = _load(doc_path, fmt)
    click.echo(f"{doc_path}: OK, {len(api.methods)} methods.")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("method_name")
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "json", "yaml"]), help="Document format.")
def show(doc_path: Path, method_name: str, fmt: str):
    """Print the signature and result shapes of one method."""
    api = _load(doc_path, fmt)
    method = api.find_method(method_name)
    if method is None:
        raise click.ClickException(f"method {method_name!r} not found in {doc_path}")

    click.echo(_format_signature(method))
    if method.description:
        click.echo(f"\n{method.description}")
    for index, result in enumerate(method.results):
        header = f"\nResult {index + 1}"
        if result.condition:
            header += f" ({result.condition})"
        click.echo(header + ":")
        for line in _format_result(result):
            click.echo(f"  {line}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file path (stdout if omitted).")
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "json", "yaml"]), help="Input document format.")
@click.option("--to", "out_fmt", default="json", type=click.Choice(["json", "yaml"]), help="Output format.")
def dump(doc_path: Path, output: Path | None, fmt: str, out_fmt: str):
    """Re-serialize a schema document in normalized form."""
    api = _load(doc_path, fmt)
    text = dump_text(api, fmt=out_fmt)
    if output is None:
        click.echo(text, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Wrote {len(api.methods)} methods to {output}", err=True)
