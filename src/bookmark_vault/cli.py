"""CLI interface for bookmark-vault.

Commands:
    setup       - Configure the bookmark service URL
    list        - Show a page of bookmarks
    tags        - List tags or suggest tag names
    tag         - Add, remove or toggle a tag on a bookmark
    tag-create  - Create a tag
    tag-rename  - Rename a tag
    tag-delete  - Delete a tag
    archive     - Archive or unarchive a bookmark
    complete    - Toggle a task-marker tag's completion on a bookmark
    delete      - Delete one or more bookmarks
    stats       - Show archive statistics
    upload      - Import a bookmarks export and its media bundle
    page-size   - Show or change the remembered page size
    status      - Show current configuration
"""

import asyncio
import sys
from pathlib import Path

import click

from .config import (
    CONFIG_FILE,
    AppConfig,
    config_exists,
    load_config,
    save_config,
)
from .logging_config import setup_logging
from .pagination import PAGE_SIZE_OPTIONS


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """Bookmark Vault — Browse, tag and archive your saved posts."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


def _notice(message: str) -> None:
    click.echo(f"Notice: {message}", err=True)


def _load(ctx) -> AppConfig:
    try:
        return load_config(ctx.obj["config_path"])
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _run(ctx, action):
    """Run action(session) inside a fresh session and event loop."""
    from .session import VaultSession

    config = _load(ctx)

    async def runner():
        async with VaultSession.from_config(config, notice=_notice) as session:
            return await action(session)

    return asyncio.run(runner())


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _format_bookmark(bookmark) -> str:
    created = bookmark.created_at.strftime("%Y-%m-%d")
    text = " ".join(bookmark.full_text.split())
    if len(text) > 200:
        text = text[:197] + "..."
    lines = [
        f"[{bookmark.id}] {bookmark.name} (@{bookmark.screen_name}) · {created}"
        + (" · archived" if bookmark.archived else ""),
        f"  {text}",
    ]
    stats = (
        f"  ♥ {bookmark.favorite_count}  ⟲ {bookmark.retweet_count}  "
        f"↩ {bookmark.reply_count}  ❝ {bookmark.quote_count}  "
        f"👁 {bookmark.views_count}"
    )
    lines.append(stats)
    if bookmark.media:
        lines.append(f"  media: {len(bookmark.media)} ({', '.join(m.type for m in bookmark.media)})")
    if bookmark.tags:
        names = [
            f"{t.name}{' ✓' if t.completed else ''}" for t in bookmark.tags
        ]
        lines.append(f"  tags: {', '.join(names)}")
    return "\n".join(lines)


def _format_window(window: list[int | None], current: int) -> str:
    parts = []
    for page in window:
        if page is None:
            parts.append("...")
        elif page == current:
            parts.append(f"[{page}]")
        else:
            parts.append(str(page))
    return " ".join(parts)


@main.command()
@click.pass_context
def setup(ctx):
    """Configure the bookmark service URL."""
    config_path = ctx.obj["config_path"]
    config = _load(ctx)

    click.echo("Bookmark Vault — Setup")
    click.echo("=" * 40)
    click.echo()
    base_url = click.prompt("API base URL", default=config.base_url)
    config.base_url = base_url.rstrip("/")

    save_config(config, config_path)
    click.echo(f"\nConfig saved to {config_path}")
    click.echo("Run 'bookmark-vault list' to browse your bookmarks.")


@main.command("list")
@click.option("--tag", default=None, help="Only bookmarks with this tag")
@click.option("--search", "-s", default="", help="Search text")
@click.option("--page", "-p", type=int, default=1, help="Page number")
@click.option(
    "--limit",
    "-n",
    type=click.Choice([str(s) for s in PAGE_SIZE_OPTIONS]),
    default=None,
    help="Bookmarks per page (remembered)",
)
@click.option("--archived", is_flag=True, help="Show archived bookmarks")
@click.pass_context
def list_bookmarks(ctx, tag, search, page, limit, archived):
    """Show a page of bookmarks."""

    async def action(session):
        if limit is not None:
            session.paginator.set_page_size(int(limit))
        session.query.set_tag(tag)
        session.query.set_archived(archived)
        session.query.set_search(search)
        session.paginator.page = max(page, 1)
        ok = await session.refresh()
        return ok, session.visible(), session.paginator

    ok, bookmarks, paginator = _run(ctx, action)
    if not ok:
        _fail("Could not load bookmarks. Use -v for details.")

    if not bookmarks:
        click.echo("No bookmarks found.")
        return

    for bookmark in bookmarks:
        click.echo(_format_bookmark(bookmark))
        click.echo()

    click.echo(
        f"Page {paginator.page} of {paginator.total_pages} "
        f"({paginator.total} bookmarks, {paginator.page_size} per page)"
    )
    if paginator.total_pages > 1:
        click.echo(_format_window(paginator.window(), paginator.page))


@main.command()
@click.option("--suggest", default=None, help="Suggest tags containing this text")
@click.option("--exclude", multiple=True, help="Tag names to leave out of suggestions")
@click.pass_context
def tags(ctx, suggest, exclude):
    """List tags, or suggest tag names."""

    async def action(session):
        await session.tags.refresh()
        if suggest is not None:
            return session.tags.suggest(suggest, exclude=exclude)
        return session.tags.tags

    result = _run(ctx, action)
    if not result:
        click.echo("No tags found.")
        return
    protected = set(_load(ctx).protected_tags)
    for tag in result:
        marker = " (protected)" if tag.name in protected else ""
        click.echo(f"{tag.id:>5}  {tag.name}{marker}")


@main.command()
@click.argument("action", type=click.Choice(["add", "remove", "toggle"]))
@click.argument("bookmark_id")
@click.argument("name")
@click.pass_context
def tag(ctx, action, bookmark_id, name):
    """Add, remove or toggle tag NAME on BOOKMARK_ID."""

    async def run(session):
        if await session.open_bookmark(bookmark_id) is None:
            return None
        await session.tags.refresh()
        op = {
            "add": session.store.add_tag,
            "remove": session.store.remove_tag,
            "toggle": session.store.toggle_tag,
        }[action]
        ok = await op(bookmark_id, name)
        return ok, session.store.get(bookmark_id)

    result = _run(ctx, run)
    if result is None:
        _fail(f"Bookmark {bookmark_id} could not be loaded.")
    ok, bookmark = result
    if not ok:
        _fail(f"Could not update tags of {bookmark_id}.")
    click.echo(f"Tags of {bookmark_id}: {', '.join(bookmark.tag_names) or '(none)'}")


@main.command("tag-create")
@click.argument("name")
@click.pass_context
def tag_create(ctx, name):
    """Create tag NAME (selects it if it already exists)."""

    async def action(session):
        await session.tags.refresh()
        existed = session.tags.find(name.strip()) is not None
        return existed, await session.tags.create(name)

    existed, created = _run(ctx, action)
    if created is None:
        _fail(f"Could not create tag {name!r}.")
    if existed:
        click.echo(f"Tag {created.name!r} already exists (id {created.id}).")
    else:
        click.echo(f"Created tag {created.name!r} (id {created.id}).")


@main.command("tag-rename")
@click.argument("tag_id", type=int)
@click.argument("new_name")
@click.pass_context
def tag_rename(ctx, tag_id, new_name):
    """Rename tag TAG_ID to NEW_NAME."""

    async def action(session):
        await session.tags.refresh()
        return await session.tags.rename(tag_id, new_name)

    if not _run(ctx, action):
        sys.exit(1)
    click.echo(f"Renamed tag {tag_id} to {new_name!r}.")


@main.command("tag-delete")
@click.argument("tag_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def tag_delete(ctx, tag_id, yes):
    """Delete tag TAG_ID. Bookmarks using it are kept."""

    async def count(session):
        await session.tags.refresh()
        tag = session.tags.get(tag_id)
        return tag, await session.tags.bookmark_count(tag_id)

    if not yes:
        tag, used = _run(ctx, count)
        label = repr(tag.name) if tag else str(tag_id)
        prompt = f"Delete tag {label}?"
        if used:
            prompt += (
                f" It is used in {used} bookmark{'s' if used != 1 else ''}."
                " The bookmarks won't be deleted."
            )
        click.confirm(prompt, abort=True)

    async def action(session):
        await session.tags.refresh()
        return await session.delete_tag(tag_id)

    if not _run(ctx, action):
        sys.exit(1)
    click.echo(f"Deleted tag {tag_id}.")


@main.command()
@click.argument("bookmark_id")
@click.pass_context
def archive(ctx, bookmark_id):
    """Archive or unarchive BOOKMARK_ID."""

    async def action(session):
        return await session.toggle_archive(bookmark_id)

    if not _run(ctx, action):
        _fail(f"Could not toggle archive state of {bookmark_id}.")
    click.echo(f"Toggled archive state of {bookmark_id}.")


@main.command()
@click.argument("bookmark_id")
@click.argument("tag_name")
@click.pass_context
def complete(ctx, bookmark_id, tag_name):
    """Toggle completion of task tag TAG_NAME on BOOKMARK_ID."""

    async def action(session):
        return await session.store.toggle_completion(bookmark_id, tag_name)

    completed = _run(ctx, action)
    if completed is None:
        _fail(f"Could not toggle {tag_name!r} on {bookmark_id}.")
    state = "completed" if completed else "not completed"
    click.echo(f"{tag_name} on {bookmark_id} is now {state}.")


@main.command()
@click.argument("bookmark_ids", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx, bookmark_ids, yes):
    """Delete one or more bookmarks."""
    if not yes:
        click.confirm(f"Delete {len(bookmark_ids)} bookmark(s)?", abort=True)

    async def action(session):
        session.selection.enter()
        for bookmark_id in bookmark_ids:
            session.selection.select(bookmark_id)
        return await session.delete_selected()

    removed = _run(ctx, action)
    failed = [i for i in dict.fromkeys(bookmark_ids) if i not in removed]
    click.echo(f"Deleted {len(removed)} bookmark(s).")
    if failed:
        _fail(f"Could not delete: {', '.join(failed)}")


@main.command()
@click.pass_context
def stats(ctx):
    """Show archive statistics."""

    async def action(session):
        return await session.statistics.current()

    result = _run(ctx, action)
    if result is None:
        _fail("Could not load statistics.")

    click.echo("Dashboard Overview")
    click.echo("=" * 40)
    click.echo(f"Active bookmarks:   {result.active_bookmarks}")
    click.echo(f"Archived bookmarks: {result.archived_bookmarks}")
    click.echo(f"Total bookmarks:    {result.total_bookmarks}")
    click.echo(f"Tags:               {result.total_tags}")
    if result.top_tags:
        click.echo("\nPopular tags:")
        for rank, top in enumerate(result.top_tags, 1):
            done = f" ({top.completed_count} done)" if top.completed_count else ""
            click.echo(f"  #{rank} {top.name}: {top.count}{done}")


@main.command()
@click.argument("json_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("zip_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def upload(ctx, json_file, zip_file):
    """Import JSON_FILE (bookmarks export) with ZIP_FILE (media bundle)."""

    async def action(session):
        return await session.upload(Path(json_file), Path(zip_file))

    result = _run(ctx, action)
    if result is None:
        _fail("Upload failed. Use -v for details.")
    click.echo(result.message or "Upload complete.")
    click.echo(f"Imported {result.count} bookmarks.")


@main.command("page-size")
@click.argument("size", type=click.Choice([str(s) for s in PAGE_SIZE_OPTIONS]), required=False)
@click.pass_context
def page_size(ctx, size):
    """Show or set the number of bookmarks per page."""
    from .pagination import Paginator
    from .state import ClientState

    config = _load(ctx)
    paginator = Paginator(ClientState(config.state_dir))
    if size is not None:
        paginator.set_page_size(int(size))
        click.echo(f"Page size set to {paginator.page_size}.")
    else:
        click.echo(f"Page size: {paginator.page_size}")


@main.command()
@click.pass_context
def status(ctx):
    """Show current configuration."""
    config_path = ctx.obj["config_path"]
    has_config = config_exists(config_path)

    click.echo("Bookmark Vault — Status")
    click.echo("=" * 40)
    click.echo(f"Config: {'Found' if has_config else 'Not configured'} ({config_path})")

    config = _load(ctx)

    from .pagination import Paginator
    from .state import ClientState

    paginator = Paginator(ClientState(config.state_dir))
    click.echo(f"API: {config.base_url}")
    click.echo(f"Protected tags: {', '.join(config.protected_tags) or '(none)'}")
    click.echo(f"Page size: {paginator.page_size}")

    if not has_config:
        click.echo("\nRun 'bookmark-vault setup' to point at your bookmark service.")
