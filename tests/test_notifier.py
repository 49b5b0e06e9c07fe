from keysync.models import MergeResult
from keysync.notifier import GOODBYES, HEADERS, REDACTED_IP, NotifyFailure, NtfyNotifier
import httpx

from keysync.transport import HttpxTransport, TransportTransientError
from fakes import FakeTransport


def first(seq):
    return seq[0]


def test_message_contains_summary_fields(config):
    notifier = NtfyNotifier(config, FakeTransport(), choice=first)
    msg = notifier.build_message(MergeResult(account_id="octocat", added=2, skipped=1, total=5))

    lines = msg.splitlines()
    assert lines[0] == "SSH Keys Deployed Successfully! 🎉"
    assert "GitHub User: octocat" in lines
    assert "New Keys Added: 2" in lines
    assert f"Public IP: {REDACTED_IP}" in lines
    assert any(l.startswith("Server: ") for l in lines)
    assert any(l.startswith("System: ") for l in lines)
    assert any(l.startswith("Time: ") and l.endswith(" UTC") for l in lines)
    assert lines[-1] == GOODBYES[0]


def test_public_ip_is_redacted_without_lookup(config):
    transport = FakeTransport([b"203.0.113.7"])
    assert NtfyNotifier(config, transport).public_ip() == REDACTED_IP
    assert transport.gets == []


def test_public_ip_lookup_when_revealed(config):
    config = config.with_overrides(reveal_public_ip=True)
    transport = FakeTransport([b"203.0.113.7\n"])
    assert NtfyNotifier(config, transport).public_ip() == "203.0.113.7"
    assert transport.gets == [config.ip_lookup_url]


def test_public_ip_lookup_failure_is_unknown(config):
    config = config.with_overrides(reveal_public_ip=True)
    assert NtfyNotifier(config, FakeTransport()).public_ip() == "unknown"


def test_send_posts_to_topic_with_headers(config):
    transport = FakeTransport()
    result = NtfyNotifier(config, transport).send(MergeResult(account_id="octocat", added=1))

    assert result.ok and result.status == 200
    url, body, headers = transport.posts[0]
    assert url == "https://ntfy.sh/test-topic"
    assert headers == HEADERS
    assert "New Keys Added: 1" in body.decode("utf-8")


def test_send_failure_is_returned_not_raised(config):
    transport = FakeTransport(post_error=TransportTransientError("HTTP 502 Bad Gateway"))
    result = NtfyNotifier(config, transport).send(MergeResult(account_id="octocat"))
    assert not result.ok
    assert isinstance(result.error, NotifyFailure)
    assert "502" in str(result.error)


def test_send_with_malformed_notify_host_returns_failure(config):
    config = config.with_overrides(notify_host="https://ntfy.sh:abc")
    transport = HttpxTransport(client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
    result = NtfyNotifier(config, transport).send(MergeResult(account_id="octocat"))
    assert not result.ok
    assert isinstance(result.error, NotifyFailure)
