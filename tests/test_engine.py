import os
import stat

import pytest

from keysync.engine import MergeEngine
from keysync.models import RunState
from keysync.notifier import NtfyNotifier
from keysync.parser import ParseFailure, parser_factory
from keysync.storage import AuthorizedKeysFile, InMemoryStore
from keysync.transport import FetchFailure, TransportTransientError
from fakes import FakeTransport, ED_A, RSA_B, ECDSA_C, api_body


def make_engine(config, responses, store=None, post_error=None):
    transport = FakeTransport(responses, post_error=post_error)
    store = store or AuthorizedKeysFile(config.ssh_dir)
    engine = MergeEngine(
        config,
        store=store,
        transport=transport,
        parser=parser_factory("auto"),
        notifier=NtfyNotifier(config, transport),
    )
    return engine, transport


def seed(config, *lines):
    os.makedirs(config.ssh_dir, exist_ok=True)
    path = config.authorized_keys_path
    path.write_text("".join(l + "\n" for l in lines))
    return path


def backups(config):
    return sorted(p for p in os.listdir(config.ssh_dir) if ".backup_" in p)


def test_adds_new_key_and_skips_existing(config):
    path = seed(config, ED_A)
    engine, transport = make_engine(config, [api_body(ED_A, RSA_B)])

    result = engine.run()

    assert (result.added, result.skipped, result.total) == (1, 1, 2)
    assert result.added_keys == [RSA_B]
    assert path.read_text().splitlines() == [ED_A, RSA_B]
    assert engine.state is RunState.DONE
    assert transport.gets == [config.keys_url]


def test_duplicates_within_one_batch_are_added_once(config):
    store = InMemoryStore()
    engine, _ = make_engine(config, [api_body(ED_A, RSA_B, ED_A)], store=store)

    result = engine.run()

    assert store.lines == [ED_A, RSA_B]
    assert (result.added, result.skipped) == (2, 1)


def test_second_run_is_idempotent(config):
    engine, _ = make_engine(config, [api_body(ED_A, RSA_B, ECDSA_C)])
    engine.run()
    after_first = config.authorized_keys_path.read_bytes()

    engine, _ = make_engine(config, [api_body(ED_A, RSA_B, ECDSA_C)])
    result = engine.run()

    assert (result.added, result.skipped, result.total) == (0, 3, 3)
    assert config.authorized_keys_path.read_bytes() == after_first


def test_existing_lines_are_never_lost(config):
    before = ["# keep me", 'from="10.0.0.0/8" ' + RSA_B, ECDSA_C]
    path = seed(config, *before)
    engine, _ = make_engine(config, [api_body(ED_A, ECDSA_C)])

    engine.run()

    after = path.read_text().splitlines()
    assert after[: len(before)] == before
    assert after[len(before):] == [ED_A]


def test_backup_matches_pre_run_content(config):
    path = seed(config, ED_A)
    original = path.read_bytes()
    engine, _ = make_engine(config, [api_body(RSA_B)])

    result = engine.run()

    assert len(backups(config)) == 1
    assert result.backup_path and open(result.backup_path, "rb").read() == original


def test_no_backup_for_fresh_store(config):
    engine, _ = make_engine(config, [api_body(ED_A)])
    result = engine.run()
    assert result.backup_path is None
    assert backups(config) == []


def test_permissions_are_normalised(config):
    path = seed(config, ED_A)
    os.chmod(config.ssh_dir, 0o755)
    os.chmod(path, 0o644)
    engine, _ = make_engine(config, [b"[]"])

    with pytest.raises(ParseFailure):
        engine.run()

    assert stat.S_IMODE(os.stat(config.ssh_dir).st_mode) == 0o700
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_empty_response_fails_without_mutation(config):
    path = seed(config, ED_A)
    engine, transport = make_engine(config, [b"[]"])

    with pytest.raises(ParseFailure):
        engine.run()

    assert path.read_text() == ED_A + "\n"
    assert engine.state is RunState.FAILED
    assert transport.posts == []


def test_fetch_failure_aborts_before_mutation(config):
    path = seed(config, ED_A)
    engine, transport = make_engine(config, [TransportTransientError("down")] * 3)

    with pytest.raises(FetchFailure):
        engine.run()

    assert len(transport.gets) == config.retry_count
    assert path.read_text() == ED_A + "\n"
    assert engine.state is RunState.FAILED
    assert transport.posts == []
    # the pre-fetch backup is still a faithful copy
    assert [open(os.path.join(config.ssh_dir, b)).read() for b in backups(config)] == [ED_A + "\n"]


def test_notification_failure_is_not_fatal(config, caplog):
    engine, transport = make_engine(
        config, [api_body(ED_A)], post_error=TransportTransientError("HTTP 500")
    )

    result = engine.run()

    assert result.added == 1
    assert result.notified is False
    assert engine.state is RunState.DONE
    assert len(transport.posts) == 1
    assert "failed to send notification" in caplog.text


def test_successful_notification_is_recorded(config):
    engine, transport = make_engine(config, [api_body(ED_A)])
    result = engine.run()
    assert result.notified is True
    url, body, _ = transport.posts[0]
    assert url == config.notify_url
    assert b"New Keys Added: 1" in body


def test_notifications_can_be_disabled(config):
    engine, transport = make_engine(config.with_overrides(notify=False), [api_body(ED_A)])
    result = engine.run()
    assert result.notified is None
    assert transport.posts == []


def test_merge_skips_blank_entries(config):
    store = InMemoryStore([ED_A])
    engine, _ = make_engine(config, [], store=store)
    result = engine.merge(["", "   ", ED_A, RSA_B + "  "])
    assert store.lines == [ED_A, RSA_B]
    assert (result.added, result.skipped, result.total) == (1, 1, 2)


def test_multi_line_key_never_reaches_the_store(config):
    path = seed(config, ECDSA_C)
    smuggled = ED_A + "\nssh-rsa AAAAB3NzaC1yc2E attacker"
    engine, _ = make_engine(config, [api_body(RSA_B, smuggled)])

    result = engine.run()

    assert result.added_keys == [RSA_B]
    assert path.read_text().splitlines() == [ECDSA_C, RSA_B]
    assert engine.state is RunState.DONE


def test_merge_checks_whole_batch_before_appending(config):
    store = InMemoryStore([ED_A])
    engine, _ = make_engine(config, [], store=store)

    with pytest.raises(ParseFailure, match="multi-line"):
        engine.merge([RSA_B, ECDSA_C + "\r\nssh-rsa AAAA x"])

    assert store.lines == [ED_A]
