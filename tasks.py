"""Invoke tasks for coursetorrent development."""

from invoke import Context, task

PACKAGE = "src/coursetorrent"
SOURCES = f"{PACKAGE} tests/ tasks.py"


@task
def lint(ctx: Context, fix: bool = False) -> None:
    """Run ruff over the package and tests."""
    ctx.run(f"uv run ruff check {'--fix ' if fix else ''}{SOURCES}", pty=True)


@task
def format(ctx: Context, check: bool = False) -> None:
    """Format with ruff; --check only reports."""
    ctx.run(f"uv run ruff format {'--check ' if check else ''}{SOURCES}", pty=True)


@task(help={"pattern": "Only run tests matching this -k expression", "quiet": "Less pytest output"})
def test(ctx: Context, pattern: str = "", quiet: bool = False) -> None:
    """Run the pytest suite."""
    args = ["-q" if quiet else "-v"]
    if pattern:
        args.append(f"-k '{pattern}'")
    ctx.run(f"uv run pytest {' '.join(args)}", pty=True)


@task
def check(ctx: Context) -> None:
    """Lint, format check and tests, as run before a release."""
    lint(ctx)
    format(ctx, check=True)
    test(ctx, quiet=True)


@task(help={"http": "Serve streamable HTTP instead of stdio", "port": "HTTP port"})
def mcp(ctx: Context, http: bool = False, port: int = 8000) -> None:
    """Start the CourseTorrent MCP server."""
    if not http:
        ctx.run("uv run coursetorrent-mcp", pty=True)
        return
    script = f"from coursetorrent.mcp_server import mcp; mcp.run(transport='streamable-http', port={port})"
    ctx.run(f'uv run python -c "{script}"', pty=True)
