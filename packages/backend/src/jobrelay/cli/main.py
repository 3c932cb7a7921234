"""JobRelay CLI — run the server and poke the notification API.

Usage:
    jobrelay serve                                        # Start the API + WebSocket server
    jobrelay post-job "Backend Engineer" "Acme" -f location=Remote
    jobrelay apply <job-id> "Jane Doe" boss@acme.com      # Application for a stored job
    jobrelay notify-employer boss@acme.com "Backend Engineer" "Jane Doe"
    jobrelay notify-job "Backend Engineer" "Acme"         # Broadcast without storing
    jobrelay send a@x.com b@x.com "hi"                    # Direct message
    jobrelay history a@x.com b@x.com                      # Conversation, newest first
    jobrelay presence boss@acme.com                       # Is the user connected?
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from jobrelay import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("JOBRELAY_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the JobRelay backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


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


def _fail(r: httpx.Response) -> None:
    """Print the API's error detail and exit non-zero."""
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _delivery_line(delivered: bool, who: str) -> None:
    if delivered:
        click.secho(f"Delivered to {who}", fg="green")
    else:
        click.secho(f"{who} is offline — not delivered", fg="yellow")


def _parse_fields(fields: tuple[str, ...]) -> dict:
    """Turn ("k=v", ...) into a dict. Values that parse as JSON are decoded."""
    out: dict = {}
    for item in fields:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{item}'")
        try:
            out[key] = json.loads(value)
        except ValueError:
            out[key] = value
    return out


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="jobrelay")
def main():
    """JobRelay — real-time job board notifications."""


# ---------------------------------------------------------------------------
# jobrelay serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: JOBRELAY_HOST)")
@click.option("--port", "-p", type=int, default=None, help="Port (default: JOBRELAY_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API and WebSocket server."""
    import uvicorn

    from jobrelay.config import settings

    uvicorn.run(
        "jobrelay.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@main.command("post-job")
@click.argument("title")
@click.argument("company")
@click.option("--field", "-f", "fields", multiple=True, help="Extra job field as key=value")
def post_job(title: str, company: str, fields: tuple[str, ...]):
    """Store a job and broadcast it to all connected clients."""
    body = {**_parse_fields(fields), "title": title, "companyName": company}
    _run(_post_job_impl(body))


async def _post_job_impl(body: dict):
    async with _client() as c:
        r = await c.post("/api/v1/create-job", json=body)
        if r.status_code != 200:
            _fail(r)
        click.secho(f"Job posted: {r.json()['insertedId']}", fg="green")


@main.command("notify-job")
@click.argument("title")
@click.argument("company")
def notify_job(title: str, company: str):
    """Broadcast a job-posted event without storing anything."""
    _run(_notify_job_impl(title, company))


async def _notify_job_impl(title: str, company: str):
    async with _client() as c:
        r = await c.post(
            "/api/v1/notify-job-posted",
            json={"title": title, "companyName": company},
        )
        if r.status_code != 200:
            _fail(r)
        click.echo(f"Broadcast to {r.json()['recipients']} connection(s)")


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


@main.command()
@click.argument("job_id")
@click.argument("applicant")
@click.argument("employer")
def apply(job_id: str, applicant: str, employer: str):
    """Apply to a stored job; the employer is alerted if connected."""
    _run(_apply_impl(job_id, applicant, employer))


async def _apply_impl(job_id: str, applicant: str, employer: str):
    async with _client() as c:
        r = await c.post(
            "/api/v1/apply",
            json={
                "jobId": job_id,
                "applicantName": applicant,
                "employerIdentity": employer,
            },
        )
        if r.status_code == 404:
            click.secho(f"Job {job_id} not found.", fg="red", err=True)
            sys.exit(1)
        if r.status_code != 200:
            _fail(r)
        _delivery_line(r.json()["delivered"], employer)


@main.command("notify-employer")
@click.argument("employer")
@click.argument("job_title")
@click.argument("applicant")
def notify_employer(employer: str, job_title: str, applicant: str):
    """Alert an employer about an application (no job lookup)."""
    _run(_notify_employer_impl(employer, job_title, applicant))


async def _notify_employer_impl(employer: str, job_title: str, applicant: str):
    async with _client() as c:
        r = await c.post(
            "/api/v1/notify-employer",
            json={
                "employerIdentity": employer,
                "jobTitle": job_title,
                "applicantName": applicant,
            },
        )
        if r.status_code != 200:
            _fail(r)
        _delivery_line(r.json()["delivered"], employer)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@main.command()
@click.argument("sender")
@click.argument("receiver")
@click.argument("text")
def send(sender: str, receiver: str, text: str):
    """Send a direct message."""
    _run(_send_impl(sender, receiver, text))


async def _send_impl(sender: str, receiver: str, text: str):
    async with _client() as c:
        r = await c.post(
            "/api/v1/send-message",
            json={"senderIdentity": sender, "receiverIdentity": receiver, "text": text},
        )
        if r.status_code != 200:
            _fail(r)
        data = r.json()
        click.echo(f"Stored in room {data['message']['roomId']}")
        _delivery_line(data["delivered"], receiver)


@main.command()
@click.argument("user_a")
@click.argument("user_b")
@click.option("--limit", "-l", default=20, help="Max messages")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def history(user_a: str, user_b: str, limit: int, as_json: bool):
    """Show the conversation between two users, newest first."""
    _run(_history_impl(user_a, user_b, limit, as_json))


async def _history_impl(user_a: str, user_b: str, limit: int, as_json: bool):
    async with _client() as c:
        r = await c.get(
            "/api/v1/messages",
            params={"userA": user_a, "userB": user_b, "limit": limit},
        )
        if r.status_code != 200:
            _fail(r)
        messages = r.json()

    if as_json:
        click.echo(json.dumps(messages, indent=2))
        return
    if not messages:
        click.echo("No messages.")
        return
    for m in messages:
        click.echo(f"  [{m['timestamp']}] {m['senderIdentity']}: {m['text']}")


@main.command()
@click.argument("user")
def presence(user: str):
    """Check whether a user is connected right now."""
    _run(_presence_impl(user))


async def _presence_impl(user: str):
    async with _client() as c:
        r = await c.get(f"/api/v1/presence/{user}")
        if r.status_code != 200:
            _fail(r)
        if r.json()["online"]:
            click.secho(f"{user} is online", fg="green")
        else:
            click.secho(f"{user} is offline", fg="yellow")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
