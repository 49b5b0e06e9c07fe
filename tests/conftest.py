import logging

import pytest

from keysync.config import KeySyncConfig


@pytest.fixture(autouse=True)
def _reset_keysync_logger():
    yield
    logger = logging.getLogger("keysync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def ssh_dir(tmp_path):
    return tmp_path / "home" / ".ssh"


@pytest.fixture
def config(ssh_dir):
    return KeySyncConfig(
        account_id="octocat",
        notify_topic="test-topic",
        retry_count=3,
        retry_delay=0,
        ssh_dir=str(ssh_dir),
    )
