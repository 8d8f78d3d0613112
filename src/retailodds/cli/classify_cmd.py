"""Classify command: show how a market text is bucketed."""

import typer

from retailodds.classify.classifier import explain
from retailodds.classify.patterns import default_registry


def classify(
    text: str = typer.Argument(..., help="Event title + question + description"),
) -> None:
    """Show each retailer's keyword hit and exclusion verdict for TEXT."""
    registry = default_registry()
    trace = explain(text, registry)
    typer.echo(f"Registry {registry.version}")
    for check in trace.checks:
        if check.keyword is None:
            typer.echo(f"  {check.retailer:<8} no keyword")
        elif check.rejected_by:
            typer.echo(f"  {check.retailer:<8} '{check.keyword}' rejected by /{check.rejected_by}/")
        else:
            typer.echo(f"  {check.retailer:<8} '{check.keyword}' accepted")
    if trace.context_keywords:
        typer.echo(f"Context: {', '.join(trace.context_keywords)}")
    typer.echo(f"Result: {trace.result or 'unclassified'}")
