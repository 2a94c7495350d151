"""LEAP CLI — run the server, watch live updates, poke the API.

Usage:
    leap serve                                   # API + Socket.IO on one port
    leap watch --survey acme-1712345678901       # Tail the push stream
    leap submit acme-... leadership q1=4 q2=5    # Submit one response batch
    leap campaigns                               # List campaigns
    leap overview --survey acme-...              # Positive scores per module
    leap token alice --company acme              # Mint a dashboard JWT
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import AsyncIterator, Iterable, Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("LEAP_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(timeout: Optional[float] = 30.0) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the LEAP backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=timeout)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _status_color(status: str) -> str:
    colors = {"active": "green", "draft": "yellow", "completed": "cyan"}
    return colors.get(status, "white")


def parse_answers(pairs: Iterable[str]) -> dict[str, int]:
    """Turn ("q1=4", "q2=5") into {"q1": 4, "q2": 5}."""
    answers: dict[str, int] = {}
    for pair in pairs:
        question, sep, value = pair.partition("=")
        if not sep or not question:
            raise click.BadParameter(f"expected QUESTION=VALUE, got {pair!r}")
        try:
            answers[question] = int(value)
        except ValueError:
            raise click.BadParameter(f"{question}: {value!r} is not an integer")
    return answers


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[tuple[str, str]]:
    """Group text/event-stream lines into (event, data) pairs.

    Comment lines (": keepalive") are skipped. An event without an
    `event:` field is reported as "message".
    """
    event, data = None, []
    async for line in lines:
        if line == "":
            if data:
                yield event or "message", "\n".join(data)
            event, data = None, []
        elif line.startswith(":"):
            continue
        elif line.startswith("event:"):
            event = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data.append(line[len("data:"):].strip())


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="leap")
def main():
    """LEAP — survey campaigns with live dashboard updates."""


# ---------------------------------------------------------------------------
# leap serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: LEAP_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: LEAP_PORT)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API and Socket.IO endpoint with uvicorn."""
    import uvicorn

    from leap.config import settings

    uvicorn.run(
        "leap.main:application",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# leap watch
# ---------------------------------------------------------------------------


@main.command()
@click.option("--survey", "-s", "survey_id", help="Only events for this survey")
@click.option("--token", envvar="LEAP_TOKEN", help="JWT, if the stream requires auth")
def watch(survey_id: Optional[str], token: Optional[str]):
    """Tail the live push stream until interrupted."""
    try:
        _run(_watch_impl(survey_id, token))
    except KeyboardInterrupt:
        click.echo()


async def _watch_impl(survey_id: Optional[str], token: Optional[str]):
    params = {}
    if survey_id:
        params["surveyId"] = survey_id
    if token:
        params["token"] = token

    async with _client(timeout=None) as c:
        async with c.stream("GET", "/api/v1/realtime/stream", params=params) as r:
            if r.status_code != 200:
                await r.aread()
                click.secho(f"Stream refused ({r.status_code}): {r.text}", fg="red", err=True)
                sys.exit(1)
            async for event, data in iter_sse_events(r.aiter_lines()):
                color = "green" if event == "connected" else "cyan"
                click.echo(f"{click.style(event, fg=color):20s}  {data}")


# ---------------------------------------------------------------------------
# leap submit
# ---------------------------------------------------------------------------


@main.command()
@click.argument("survey_id")
@click.argument("module", type=click.Choice(["ai-readiness", "leadership", "employee-experience"]))
@click.argument("answers", nargs=-1, required=True)
@click.option("--department", "-d", help="Respondent department")
def submit(survey_id: str, module: str, answers: tuple[str, ...], department: Optional[str]):
    """Submit one response batch, e.g. `leap submit acme-1 leadership q1=4 q2=5`."""
    parsed = parse_answers(answers)
    _run(_submit_impl(survey_id, module, parsed, department))


async def _submit_impl(survey_id: str, module: str, answers: dict[str, int],
                       department: Optional[str]):
    body = {
        "survey_id": survey_id,
        "module": module,
        "responses": answers,
        "metadata": {"department": department} if department else {},
    }
    async with _client() as c:
        r = await c.post("/api/v1/responses/submit", json=body)
        if r.status_code != 201:
            click.secho(f"Submit failed ({r.status_code}): {r.json().get('detail')}", fg="red", err=True)
            sys.exit(1)
        result = r.json()
        click.secho(
            f"Stored {result['count']} answer(s) as {result['submission_id']}",
            fg="green",
        )


# ---------------------------------------------------------------------------
# leap campaigns
# ---------------------------------------------------------------------------


@main.command()
@click.option("--company", "-c", "company_id", help="Filter by company id")
@click.option("--status", "-s", "status_filter", help="Filter by status")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def campaigns(company_id: Optional[str], status_filter: Optional[str], as_json: bool):
    """List survey campaigns."""
    _run(_campaigns_impl(company_id, status_filter, as_json))


async def _campaigns_impl(company_id: Optional[str], status_filter: Optional[str],
                          as_json: bool):
    params: dict = {}
    if company_id:
        params["company_id"] = company_id
    if status_filter:
        params["status"] = status_filter

    async with _client() as c:
        r = await c.get("/api/v1/campaigns", params=params)
        r.raise_for_status()
        rows = r.json()

    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No campaigns found.")
        return

    for row in rows:
        row["status"] = click.style(row["status"], fg=_status_color(row["status"]))
    click.secho(f"Campaigns ({len(rows)}):", bold=True)
    click.echo()
    _print_table(rows, [
        ("ID", "id", 32),
        ("Company", "company_name", 20),
        ("Status", "status", 18),
        ("Responses", "response_count", 9),
    ])


# ---------------------------------------------------------------------------
# leap overview
# ---------------------------------------------------------------------------


@main.command()
@click.option("--survey", "-s", "survey_id", help="Limit to one survey")
def overview(survey_id: Optional[str]):
    """Show positive-answer scores per module."""
    _run(_overview_impl(survey_id))


async def _overview_impl(survey_id: Optional[str]):
    params = {"surveyId": survey_id} if survey_id else {}
    async with _client() as c:
        r = await c.get("/api/v1/analytics/overview", params=params)
        r.raise_for_status()
        data = r.json()

    click.secho(f"Overview{' for ' + survey_id if survey_id else ''}", bold=True)
    click.echo(f"  AI readiness:         {data['ai_readiness']:5.1f}%")
    click.echo(f"  Leadership:           {data['leadership']:5.1f}%")
    click.echo(f"  Employee experience:  {data['employee_experience']:5.1f}%")
    click.echo(f"  Answers:              {data['total_responses']}")


# ---------------------------------------------------------------------------
# leap token
# ---------------------------------------------------------------------------


@main.command()
@click.argument("subject")
@click.option("--company", "-c", "company_id", required=True, help="Company id claim")
@click.option("--minutes", type=int, default=None, help="Lifetime (default from settings)")
def token(subject: str, company_id: str, minutes: Optional[int]):
    """Mint a JWT for a dashboard user (uses LEAP_JWT_SECRET locally)."""
    from leap.auth.jwt import create_access_token

    click.echo(create_access_token(subject, company_id=company_id, expires_minutes=minutes))


if __name__ == "__main__":
    main()
