"""
Shared test fixtures and configuration.
"""

import os
import sys
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

# Add the parent directory to the path so we can import the shaws package
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shaws.profiles import ConfigStore
from shaws.session import SessionManager

SAMPLE_CONFIG = """\
[default]
region = eu-west-1
mfa_serial = arn:aws:iam::111122223333:mfa/alice

[profile assumed-role]
role_arn = arn:aws:iam::444455556666:role/X
source_profile = default
mfa_serial = arn:aws:iam::111122223333:mfa/alice

[profile no-mfa]
region = us-east-1

[profile orphan-role]
role_arn = arn:aws:iam::444455556666:role/Y
mfa_serial = arn:aws:iam::111122223333:mfa/alice

[profile short]
mfa_serial = arn:aws:iam::111122223333:mfa/alice
duration_seconds = 3600
"""


def make_response(expiration="2030-01-01T00:00:00Z"):
    """Build a get_session_token/assume_role style response."""
    return {
        "Credentials": {
            "AccessKeyId": "ASIAEXAMPLEKEY",
            "SecretAccessKey": "secret/example",
            "SessionToken": "token-example",
            "Expiration": expiration,
        }
    }


@pytest.fixture
def config_file(tmp_path):
    """Write the sample AWS config file and return its path."""
    path = tmp_path / "config"
    path.write_text(SAMPLE_CONFIG)
    return path


@pytest.fixture
def store(config_file):
    """Config store over the sample config file."""
    return ConfigStore(config_file)


@pytest.fixture
def mock_service():
    """Credential service returning a successful response."""
    service = MagicMock()
    service.get_session_token.return_value = make_response()
    service.assume_role.return_value = make_response()
    return service


@pytest.fixture
def manager(store, mock_service):
    """Session manager wired to the sample config and a mock service."""
    return SessionManager(store=store, service=mock_service)


@pytest.fixture
def future_expiry():
    return datetime(2030, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def response_factory():
    """Factory for credential service responses."""
    return make_response
