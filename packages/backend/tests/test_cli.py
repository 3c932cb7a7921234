"""CLI tests — commands against a mocked API.

Learn: _client() is patched to return an httpx client on a MockTransport,
so each command's request shape and output can be checked without a
running server.
"""

import json
from unittest.mock import patch

import httpx
from click.testing import CliRunner

from jobrelay import __version__
from jobrelay.cli.main import main


def _mock_client(handler):
    def factory():
        return httpx.AsyncClient(
            base_url="http://test", transport=httpx.MockTransport(handler)
        )

    return patch("jobrelay.cli.main._client", factory)


def test_post_job_sends_extra_fields():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "insertedId": "job-1"})

    with _mock_client(handler):
        result = CliRunner().invoke(
            main, ["post-job", "SRE", "Acme", "-f", "location=Remote", "-f", "salary=100"]
        )

    assert result.exit_code == 0, result.output
    assert "job-1" in result.output
    assert seen["path"] == "/api/v1/create-job"
    assert seen["body"] == {
        "title": "SRE",
        "companyName": "Acme",
        "location": "Remote",
        "salary": 100,
    }


def test_post_job_rejects_bad_field():
    result = CliRunner().invoke(main, ["post-job", "SRE", "Acme", "-f", "oops"])
    assert result.exit_code != 0


def test_apply_reports_offline_employer():
    def handler(request: httpx.Request):
        return httpx.Response(
            200, json={"success": True, "delivered": False, "message": ""}
        )

    with _mock_client(handler):
        result = CliRunner().invoke(main, ["apply", "job-1", "Jane", "e@x"])

    assert result.exit_code == 0
    assert "offline" in result.output


def test_apply_unknown_job_exits_nonzero():
    def handler(request: httpx.Request):
        return httpx.Response(404, json={"detail": "Job not found"})

    with _mock_client(handler):
        result = CliRunner().invoke(main, ["apply", "missing", "Jane", "e@x"])

    assert result.exit_code == 1


def test_send_prints_room():
    def handler(request: httpx.Request):
        body = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "success": True,
                "delivered": True,
                "message": {**body, "roomId": "a@x_b@x", "timestamp": "2026-01-01T00:00:00Z"},
            },
        )

    with _mock_client(handler):
        result = CliRunner().invoke(main, ["send", "a@x", "b@x", "hi"])

    assert result.exit_code == 0
    assert "a@x_b@x" in result.output
    assert "Delivered to b@x" in result.output


def test_history_lists_messages():
    def handler(request: httpx.Request):
        assert request.url.params["userA"] == "a@x"
        return httpx.Response(
            200,
            json=[
                {
                    "senderIdentity": "b@x",
                    "receiverIdentity": "a@x",
                    "text": "hello back",
                    "roomId": "a@x_b@x",
                    "timestamp": "2026-01-01T00:00:01Z",
                }
            ],
        )

    with _mock_client(handler):
        result = CliRunner().invoke(main, ["history", "a@x", "b@x"])

    assert result.exit_code == 0
    assert "b@x: hello back" in result.output


def test_server_error_exits_nonzero():
    def handler(request: httpx.Request):
        return httpx.Response(500, json={"detail": "Failed to post job."})

    with _mock_client(handler):
        result = CliRunner().invoke(main, ["post-job", "SRE", "Acme"])

    assert result.exit_code == 1


def test_version_matches_package():
    result = CliRunner().invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
