"""Shared pytest fixtures for birdchat tests."""
import sys
sys.dont_write_bytecode = True

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from birdchat.config import MessagebirdConfig  # noqa: E402
from birdchat.whatsapp.messagebird_sender import ConversationsClient  # noqa: E402


@pytest.fixture
def config() -> MessagebirdConfig:
    return MessagebirdConfig(
        access_key="test_access_key",
        business_number="+31687654321",
        internal_task_secret="task-secret",
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """Client double; start_conversation returns a conversation object."""
    client = MagicMock(spec=ConversationsClient)
    client.start_conversation.return_value = {"id": "conv-1", "status": "active"}
    return client
