"""ph - Prompt Hero catalog CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from sqlalchemy.orm import Session

from prompthero import __version__
from prompthero.config import default_db_path
from prompthero.database import get_session_factory, init_db, reset_engine
from prompthero.errors import CatalogUnavailableError, InvalidFilterError
from prompthero.query.builder import FilterQueryBuilder
from prompthero.query.compiler import render_sql
from prompthero.schemas.prompt import PromptCreate, PromptOut
from prompthero.schemas.search import SearchResponse, parse_filters
from prompthero.services.catalog_service import CatalogService
from prompthero.services.search_service import SearchService


def _version_callback(value: bool) -> None:
    if value:
        print(f"ph {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="ph",
    help="Prompt Hero: browse, rate and curate a catalog of AI prompts.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Log debug output to stderr.")
    ] = False,
) -> None:
    """Prompt Hero: browse, rate and curate a catalog of AI prompts."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
            force=True,
        )


DbOption = Annotated[
    Path | None,
    typer.Option("--db", envvar="PH_DB", help="Override path to SQLite database."),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


def _db_path(db: Path | None) -> Path:
    return db if db is not None else default_db_path()


def _open_session(db: Path | None) -> Session:
    path = _db_path(db)
    reset_engine()
    init_db(path)
    return get_session_factory(path)()


def _get_catalog(db: Path | None) -> tuple[CatalogService, Session]:
    """Return (service, session) after ensuring the database exists."""
    session = _open_session(db)
    return CatalogService(session), session


def _fail(message: object) -> typer.Exit:
    rprint(f"[red]Error:[/red] {escape(str(message))}")
    return typer.Exit(1)


# ------------------------------------------------------------------
# init
# ------------------------------------------------------------------


@app.command()
def init(db: DbOption = None) -> None:
    """Initialize the catalog database."""
    path = _db_path(db)
    reset_engine()
    init_db(path)
    rprint(f"[green]✓[/green] Database initialized at [bold]{path}[/bold]")


# ------------------------------------------------------------------
# add
# ------------------------------------------------------------------


@app.command()
def add(
    title: Annotated[str, typer.Argument(help="Prompt title")],
    content: Annotated[
        str | None,
        typer.Option("--content", "-c", help="Prompt content. Use - to read from stdin."),
    ] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Read prompt content from a file."),
    ] = None,
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="Short description.")
    ] = None,
    category: Annotated[str, typer.Option("--category", help="Catalog category.")] = "general",
    tag: Annotated[
        list[str] | None,
        typer.Option("--tag", "-t", help="Tags for this prompt (repeatable)."),
    ] = None,
    difficulty: Annotated[
        str, typer.Option("--difficulty", help="beginner, intermediate or advanced.")
    ] = "intermediate",
    private: Annotated[bool, typer.Option("--private", help="Hide from search.")] = False,
    featured: Annotated[bool, typer.Option("--featured", help="Mark as featured.")] = False,
    db: DbOption = None,
) -> None:
    """Submit a new prompt to the catalog."""
    if content and file:
        raise _fail("Provide --content or --file, not both.")
    if file:
        if not file.exists():
            raise _fail(f"File not found: {file}")
        content = file.read_text(encoding="utf-8")
    elif content == "-":
        content = sys.stdin.read()
    elif content is None:
        raise _fail("Provide prompt content via --content or --file.")

    try:
        data = PromptCreate(
            title=title,
            content=content,
            description=description,
            category=category,
            tags=tag or [],
            difficulty=difficulty,
            is_public=not private,
            is_featured=featured,
        )
    except ValueError as exc:
        raise _fail(exc) from None

    service, session = _get_catalog(db)
    try:
        prompt = service.create_prompt(data)
        session.commit()
        rprint(f"[green]✓[/green] Added [bold]{escape(prompt.title)}[/bold] ({prompt.id})")
    except Exception as exc:
        session.rollback()
        raise _fail(exc) from None
    finally:
        session.close()
        reset_engine()


# ------------------------------------------------------------------
# show
# ------------------------------------------------------------------


@app.command()
def show(
    prompt_id: Annotated[str, typer.Argument(help="Prompt id")],
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """Show a single prompt."""
    service, session = _get_catalog(db)
    try:
        prompt = PromptOut.model_validate(service.get_prompt(prompt_id))
        if json_output:
            print(prompt.model_dump_json(indent=2, exclude={"relevance"}))
        else:
            rprint(f"[bold cyan]{escape(prompt.title)}[/bold cyan] [dim]({prompt.id})[/dim]")
            rprint(
                f"[dim]{prompt.category} | {prompt.difficulty} | "
                f"Tags: {escape(', '.join(prompt.tags)) or 'none'} | "
                f"Rating: {prompt.average_rating:.2f} ({prompt.total_ratings}) | "
                f"Used: {prompt.usage_count}[/dim]"
            )
            if prompt.description:
                console.print(prompt.description, markup=False)
            rprint()
            console.print(prompt.content, markup=False)
    except ValueError as exc:
        raise _fail(exc) from None
    finally:
        session.close()
        reset_engine()


# ------------------------------------------------------------------
# search
# ------------------------------------------------------------------


def _print_results(response: SearchResponse) -> None:
    pagination = response.pagination
    table = Table(
        title=f"Prompts (page {pagination.page}/{max(pagination.total_pages, 1)}, {pagination.total} total)"
    )
    table.add_column("Id", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Category")
    table.add_column("Tags")
    table.add_column("Rating", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Created", style="dim")
    for p in response.results:
        table.add_row(
            p.id[:8],
            escape(p.title),
            p.category,
            escape(", ".join(p.tags)) or "-",
            f"{p.average_rating:.2f}",
            str(p.usage_count),
            p.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)

    facets = response.facets
    if facets.related_tags:
        related = ", ".join(f"{escape(t.tag)} ({t.frequency})" for t in facets.related_tags)
        rprint(f"[dim]Related tags:[/dim] {related}")
    if facets.suggestions:
        suggested = ", ".join(f"{s.text} [{s.type}]" for s in facets.suggestions)
        console.print(f"Suggestions: {suggested}", style="dim", markup=False)


@app.command()
def search(
    query: Annotated[str | None, typer.Argument(help="Free-text search")] = None,
    category: Annotated[str | None, typer.Option("--category", help="Category or 'all'.")] = None,
    tag: Annotated[
        list[str] | None, typer.Option("--tag", "-t", help="Required tag (repeatable).")
    ] = None,
    difficulty: Annotated[str | None, typer.Option("--difficulty")] = None,
    featured: Annotated[bool, typer.Option("--featured", help="Only featured prompts.")] = False,
    trending: Annotated[bool, typer.Option("--trending", help="Only trending prompts.")] = False,
    sort: Annotated[str | None, typer.Option("--sort", help="Sort key, e.g. newest or rating.")] = None,
    order: Annotated[str | None, typer.Option("--order", help="asc or desc.")] = None,
    page: Annotated[str | None, typer.Option("--page", "-p", help="Page number.")] = None,
    limit: Annotated[str | None, typer.Option("--limit", "-l", help="Page size (max 100).")] = None,
    explain: Annotated[
        bool, typer.Option("--explain", help="Print the generated SQL instead of running it.")
    ] = False,
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """Search the catalog with filters, sorting and pagination."""
    try:
        filters = parse_filters(
            {
                "search": query,
                "category": category,
                "tags": tag or [],
                "difficulty": difficulty,
                "featured": featured,
                "trending": trending,
                "sort": sort,
                "order": order,
                "page": page,
                "limit": limit,
            }
        )
    except InvalidFilterError as exc:
        raise _fail(exc) from None

    if explain:
        plan = FilterQueryBuilder().build(filters)
        for label, stmt in (("count", plan.count_statement), ("page", plan.page_statement)):
            sql, params = render_sql(stmt)
            console.rule(label)
            console.print(sql, markup=False, highlight=False)
            console.print(params, markup=False)
        return

    session = _open_session(db)
    try:
        response = SearchService(session).search(filters)
        if json_output:
            print(response.model_dump_json(indent=2))
        elif not response.results:
            rprint("[dim]No prompts found.[/dim]")
        else:
            _print_results(response)
    except CatalogUnavailableError as exc:
        raise _fail(exc) from None
    finally:
        session.close()
        reset_engine()


# ------------------------------------------------------------------
# rate / use / favorite
# ------------------------------------------------------------------


@app.command()
def rate(
    prompt_id: Annotated[str, typer.Argument(help="Prompt id")],
    rating: Annotated[int, typer.Argument(help="Rating from 1 to 5")],
    user: Annotated[str, typer.Option("--user", "-u", help="Rating user id.")] = "local",
    review: Annotated[str | None, typer.Option("--review", help="Optional review text.")] = None,
    db: DbOption = None,
) -> None:
    """Rate a prompt (re-rating replaces the previous rating)."""
    service, session = _get_catalog(db)
    try:
        prompt = service.rate_prompt(prompt_id, user, rating, review=review)
        session.commit()
        rprint(
            f"[green]✓[/green] Rated [bold]{escape(prompt.title)}[/bold] {rating}/5 → "
            f"average {prompt.average_rating:.2f} over {prompt.total_ratings}"
        )
    except ValueError as exc:
        session.rollback()
        raise _fail(exc) from None
    finally:
        session.close()
        reset_engine()


@app.command()
def use(
    prompt_id: Annotated[str, typer.Argument(help="Prompt id")],
    db: DbOption = None,
) -> None:
    """Record one use of a prompt."""
    service, session = _get_catalog(db)
    try:
        count = service.record_usage(prompt_id)
        session.commit()
        rprint(f"[green]✓[/green] Usage count is now {count}")
    except ValueError as exc:
        session.rollback()
        raise _fail(exc) from None
    finally:
        session.close()
        reset_engine()


@app.command()
def favorite(
    prompt_id: Annotated[str, typer.Argument(help="Prompt id")],
    user: Annotated[str, typer.Option("--user", "-u", help="Favoriting user id.")] = "local",
    remove: Annotated[bool, typer.Option("--remove", "-r", help="Remove the favorite.")] = False,
    db: DbOption = None,
) -> None:
    """Add or remove a prompt from a user's favorites."""
    service, session = _get_catalog(db)
    try:
        if remove:
            changed = service.remove_favorite(prompt_id, user)
            message = "Removed from favorites" if changed else "Was not a favorite"
        else:
            changed = service.add_favorite(prompt_id, user)
            message = "Added to favorites" if changed else "Already a favorite"
        session.commit()
        rprint(f"[green]✓[/green] {message}")
    except ValueError as exc:
        session.rollback()
        raise _fail(exc) from None
    finally:
        session.close()
        reset_engine()


# ------------------------------------------------------------------
# import / export
# ------------------------------------------------------------------


@app.command("import")
def import_(
    file: Annotated[Path, typer.Argument(help="JSON file holding an array of prompts")],
    db: DbOption = None,
) -> None:
    """Import prompts from a JSON file."""
    if not file.exists():
        raise _fail(f"File not found: {file}")
    service, session = _get_catalog(db)
    try:
        created = service.import_prompts(file)
        session.commit()
        rprint(f"[green]✓[/green] Imported {len(created)} prompts from [bold]{file}[/bold]")
    except ValueError as exc:
        session.rollback()
        raise _fail(exc) from None
    finally:
        session.close()
        reset_engine()


@app.command()
def export(
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to file instead of stdout."),
    ] = None,
    db: DbOption = None,
) -> None:
    """Export every prompt as JSON."""
    service, session = _get_catalog(db)
    try:
        if output:
            service.export_to_file(output)
            rprint(f"[green]✓[/green] Exported catalog to {output}")
        else:
            print(service.export_prompts())
    finally:
        session.close()
        reset_engine()


# ------------------------------------------------------------------
# delete
# ------------------------------------------------------------------


@app.command()
def delete(
    prompt_id: Annotated[str, typer.Argument(help="Prompt id")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation.")] = False,
    db: DbOption = None,
) -> None:
    """Delete a prompt with its ratings and favorites."""
    if not yes:
        confirm = typer.confirm(f"Delete prompt '{prompt_id}'?")
        if not confirm:
            rprint("[dim]Aborted.[/dim]")
            raise typer.Exit(0)

    service, session = _get_catalog(db)
    try:
        service.delete_prompt(prompt_id)
        session.commit()
        rprint(f"[green]✓[/green] Deleted [bold]{prompt_id}[/bold]")
    except ValueError as exc:
        session.rollback()
        raise _fail(exc) from None
    finally:
        session.close()
        reset_engine()
