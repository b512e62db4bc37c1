"""Tests for ClientConfig and YAML configuration loading."""

import tempfile
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from apexxcloud import ApexxCloud
from apexxcloud.config import DEFAULT_BASE_URL, ClientConfig, load_config
from apexxcloud.errors import ConfigurationError

CREDENTIALS_MESSAGE = "Access key and secret key are required."


def _write_yaml(data) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(data, f)
        f.flush()
    return Path(f.name)


class TestClientConfig:
    """Tests for the ClientConfig model."""

    def test_defaults(self):
        config = ClientConfig(access_key="ak", secret_key="sk")
        assert config.base_url == DEFAULT_BASE_URL
        assert config.region is None
        assert config.default_bucket is None

    def test_missing_secret_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ClientConfig(access_key="ak")
        assert str(exc_info.value) == CREDENTIALS_MESSAGE

    def test_missing_access_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ClientConfig(secret_key="sk")
        assert str(exc_info.value) == CREDENTIALS_MESSAGE

    def test_empty_keys_rejected(self):
        with pytest.raises(ConfigurationError):
            ClientConfig(access_key="", secret_key="")

    def test_immutable(self):
        """The configuration cannot be changed after construction."""
        config = ClientConfig(access_key="ak", secret_key="sk", default_bucket="b")
        with pytest.raises(PydanticValidationError):
            config.default_bucket = "other"
        assert config.default_bucket == "b"


class TestClientConstruction:
    """Construction of ApexxCloud clients."""

    async def test_valid_config(self):
        client = ApexxCloud("ak", "sk", region="eu", bucket="media")
        try:
            assert client.config.access_key == "ak"
            assert client.config.secret_key == "sk"
            assert client.config.region == "eu"
            assert client.config.default_bucket == "media"
            assert client.config.base_url == "https://api.apexxcloud.com"
        finally:
            await client.aclose()

    def test_access_key_missing(self):
        with pytest.raises(ConfigurationError, match="Access key and secret key are required"):
            ApexxCloud(secret_key="sk")

    def test_secret_key_missing(self):
        with pytest.raises(ConfigurationError, match="Access key and secret key are required"):
            ApexxCloud("ak")

    async def test_trailing_slash_stripped(self):
        client = ApexxCloud("ak", "sk", base_url="http://localhost:8080/")
        try:
            assert client.config.base_url == "http://localhost:8080"
        finally:
            await client.aclose()

    async def test_from_config(self):
        config = ClientConfig(access_key="ak", secret_key="sk", default_bucket="b")
        async with ApexxCloud.from_config(config) as client:
            assert client.config is config
            assert client.files is not None
            assert client.bucket is not None


class TestLoadConfig:
    """Tests for load_config()."""

    def test_full_config(self):
        path = _write_yaml(
            {
                "credentials": {"access_key": "ak", "secret_key": "sk"},
                "region": "eu-west-1",
                "bucket": "media",
                "base_url": "http://localhost:9000/",
            }
        )
        config = load_config(path)
        assert config.access_key == "ak"
        assert config.secret_key == "sk"
        assert config.region == "eu-west-1"
        assert config.default_bucket == "media"
        assert config.base_url == "http://localhost:9000"

    def test_minimal_config_uses_defaults(self):
        path = _write_yaml({"credentials": {"access_key": "ak", "secret_key": "sk"}})
        config = load_config(path)
        assert config.base_url == DEFAULT_BASE_URL
        assert config.region is None
        assert config.default_bucket is None

    def test_missing_credentials(self):
        """A file without credentials fails like the constructor does."""
        path = _write_yaml({"region": "eu-west-1"})
        with pytest.raises(ConfigurationError, match="Access key and secret key are required"):
            load_config(path)

    def test_empty_file(self):
        path = _write_yaml(None)
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("credentials: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(path)
