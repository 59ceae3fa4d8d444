"""Tests for the User model."""

from unittest.mock import MagicMock

import pytest

from shelly.core.settings import settings
from shelly.models import User
from shelly.utils.config import Config


@pytest.fixture
def ssh_key(tmp_path, monkeypatch):
    path = tmp_path / "id_rsa.pub"
    monkeypatch.setattr(settings, "ssh_key_path", str(path))
    return path


@pytest.fixture
def config(tmp_path):
    return Config(tmp_path / "shelly")


@pytest.fixture
def user(config):
    return User("bob@example.com", "secret", MagicMock(), config)


class TestUser:
    """Test account operations."""

    def test_current_without_credentials(self, config):
        """Test logged out user has no email."""
        user = User.current(MagicMock(), config)

        assert user.email is None
        assert user.password is None

    def test_current_with_credentials(self, config):
        config.save_credentials("bob@example.com", "secret")

        user = User.current(MagicMock(), config)

        assert (user.email, user.password) == ("bob@example.com", "secret")

    def test_ssh_key(self, user, ssh_key):
        """Test public key is read and stripped."""
        assert user.ssh_key is None

        ssh_key.write_text("ssh-rsa AAAA bob@host\n")

        assert user.ssh_key == "ssh-rsa AAAA bob@host"

    def test_register(self, user, ssh_key, config):
        """Test registration sends the key and stores credentials."""
        ssh_key.write_text("ssh-rsa AAAA")

        user.register()

        user.client.register_user.assert_called_once_with("bob@example.com", "secret", "ssh-rsa AAAA")
        user.client.authenticate.assert_called_once_with("bob@example.com", "secret")
        assert config.load_credentials() == ("bob@example.com", "secret")

    def test_login(self, user, config):
        """Test credentials are verified before being stored."""
        user.login()

        user.client.token.assert_called_once_with()
        assert config.load_credentials() == ("bob@example.com", "secret")

    def test_login_failure_stores_nothing(self, user, config):
        user.client.token.side_effect = RuntimeError("unauthorized")

        with pytest.raises(RuntimeError):
            user.login()

        assert config.load_credentials() is None

    def test_upload_ssh_key(self, user, ssh_key):
        ssh_key.write_text("ssh-rsa AAAA")

        user.upload_ssh_key()

        user.client.add_ssh_key.assert_called_once_with("ssh-rsa AAAA")

    def test_delete_ssh_key_without_local_key(self, user, ssh_key):
        """Test nothing is sent when there is no local key."""
        assert user.delete_ssh_key() is False
        user.client.delete_ssh_key.assert_not_called()

    def test_delete_ssh_key(self, user, ssh_key):
        ssh_key.write_text("ssh-rsa AAAA")

        assert user.delete_ssh_key() is True
        user.client.delete_ssh_key.assert_called_once_with("ssh-rsa AAAA")

    def test_delete_credentials(self, user, config):
        user.save_credentials()

        assert user.delete_credentials() is True
        assert config.logged_in is False
