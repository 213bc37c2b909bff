"""
Main CLI entry point for Folio RAG.
"""

import json
import logging
from pathlib import Path

import click

from folio_rag import DocumentIndex, assemble_context, load_index
from folio_rag.core import Config
from folio_rag.rag.prompt import build_edit_prompt
from folio_rag.rag.request import RequestError, handle_edit_request
from folio_rag.storage.compression import compress_data, read_transcript_bytes


def load_config(config_path) -> Config:
    """
    Load a Config from a JSON object file (None gives defaults).

    Raises:
        click.ClickException: If the file is not a valid config object
    """
    if config_path is None:
        return Config()
    try:
        with open(config_path, "r") as f:
            config_dict = json.load(f)
        return Config(**config_dict)
    except (OSError, ValueError, TypeError) as e:
        raise click.ClickException(f"Invalid config {config_path}: {e}")


def open_index(transcript, config: Config) -> DocumentIndex:
    index = load_index(transcript, config)
    if not index.is_ready():
        raise click.ClickException(f"Could not load transcript: {index.last_error}")
    return index


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log index and assembly details")
def cli(verbose):
    """Folio RAG - transcript indexing and budgeted context assembly."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
def structure(transcript, output_format):
    """Show detected headings and document size."""
    index = open_index(transcript, Config())
    doc_structure = index.document_structure()

    if output_format == "json":
        output = doc_structure.to_dict()
        output["fingerprint"] = index.fingerprint
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(
        f"{doc_structure.total_pages} pages, {doc_structure.total_lines} lines, "
        f"{len(doc_structure.headings)} headings"
    )
    for heading in doc_structure.headings:
        click.echo(f"  p{heading.page_number} L{heading.line_index}: {heading.title}")


@cli.command()
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False))
@click.argument("fragment", type=str)
def locate(transcript, fragment):
    """Print global indices of lines matching FRAGMENT."""
    index = open_index(transcript, Config())
    for line_index in index.locate_lines(fragment):
        click.echo(line_index)


@cli.command()
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False))
@click.argument("fragment", type=str)
@click.option("--max-results", default=5, type=int, help="Number of occurrences")
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
def occurrences(transcript, fragment, max_results, output_format):
    """Show occurrences of FRAGMENT with their context windows."""
    index = open_index(transcript, Config())
    results = index.windowed_occurrences(fragment, max_results)

    if output_format == "json":
        output = [
            {
                "line_index": occ.line_index,
                "page_number": occ.page_number,
                "text": occ.text,
                "context": occ.context,
            }
            for occ in results
        ]
        click.echo(json.dumps(output, indent=2))
        return

    if not results:
        click.echo("No occurrences found.")
    for i, occ in enumerate(results, 1):
        click.echo(f"\n{i}. Page {occ.page_number}, Line {occ.line_index}")
        click.echo(f"   {occ.text}")


@cli.command()
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False))
@click.argument("query", type=str)
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
@click.option("--show-context", is_flag=True, help="Print the lines around each heading")
def heading(transcript, query, output_format, show_context):
    """Find headings matching QUERY (title fragment or chapter number)."""
    index = open_index(transcript, Config())
    matches = index.find_heading(query)

    if output_format == "json":
        output = [
            {
                "title": m.heading.title,
                "line_index": m.heading.line_index,
                "page_number": m.heading.page_number,
                "context": m.context,
            }
            for m in matches
        ]
        click.echo(json.dumps(output, indent=2))
        return

    if not matches:
        click.echo("No matching headings.")
    for m in matches:
        click.echo(f"p{m.heading.page_number} L{m.heading.line_index}: {m.heading.title}")
        if show_context:
            click.echo(m.context)


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@click.option("--instruction", "-i", required=True, help="Free-text instruction")
@click.option("--excerpt", "-e", default=None, help="Selected excerpt")
@click.option("--transcript", "-t", type=click.Path(), default=None, help="Page-structured transcript")
@click.option("--budget", type=int, default=None, help="Character budget")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config JSON file")
@click.option("--prompt", "show_prompt", is_flag=True, help="Print the full edit prompt")
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
def context(document, instruction, excerpt, transcript, budget, config_path, show_prompt, output_format):
    """Assemble budgeted context from DOCUMENT for an instruction."""
    config = load_config(config_path)
    raw_text = Path(document).read_text(encoding="utf-8")

    # A missing or broken transcript only disables the index-backed strategies
    index = DocumentIndex(transcript, config) if transcript else None
    assembled = assemble_context(raw_text, instruction, excerpt, budget, index=index, config=config)
    index_ready = index is not None and index.is_ready()

    if output_format == "json":
        click.echo(
            json.dumps(
                {
                    "text": assembled.text,
                    "annotations": assembled.annotations,
                    "strategy": assembled.strategy,
                    "index_ready": index_ready,
                },
                indent=2,
            )
        )
        return

    if show_prompt:
        click.echo(
            build_edit_prompt(
                instruction,
                assembled,
                excerpt=excerpt,
                structure=index.document_structure() if index_ready else None,
                document_length=len(raw_text),
                large_document_chars=config.context_budget,
            )
        )
    else:
        click.echo(assembled.render())


@cli.command()
@click.argument("payload", type=click.File("r"))
@click.option("--transcript", "-t", type=click.Path(), default=None, help="Page-structured transcript")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config JSON file")
def request(payload, transcript, config_path):
    """Handle a JSON edit request read from PAYLOAD ('-' for stdin)."""
    config = load_config(config_path)
    try:
        data = json.load(payload)
    except ValueError as e:
        raise click.ClickException(f"Invalid request JSON: {e}")

    index = DocumentIndex(transcript, config) if transcript else None
    try:
        response = handle_edit_request(data, index, config)
    except RequestError as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(response, indent=2))


@cli.command()
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", required=True, type=click.Path())
@click.option("--level", default=3, type=click.IntRange(1, 22), help="zstd compression level")
def pack(transcript, output, level):
    """Compress a transcript with zstd (loadable by every command)."""
    data = read_transcript_bytes(Path(transcript))
    try:
        json.loads(data.decode("utf-8"))
    except ValueError as e:
        raise click.ClickException(f"{transcript} is not a JSON transcript: {e}")

    compressed = compress_data(data, level=level)
    Path(output).write_bytes(compressed)
    click.echo(f"Packed {len(data)} bytes into {len(compressed)} bytes at {output}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
