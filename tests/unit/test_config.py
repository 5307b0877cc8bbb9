# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for configuration loading
"""

import pytest

from binstash.core.config import load_config
from binstash.core.errors import ConfigurationError

CONFIG_YAML = """
repositories:
  - name: main
    url: https://meta.example.com/main.json
    sources:
      stable: https://dl.example.com/stable
install:
  parallel: true
  parallel_limit: 4
paths:
  root: /opt/binstash
http:
  timeouts:
    default: 60
  retry:
    max_retries: 0
logging:
  format: json
"""


class TestLoadConfig:
    """Test load_config"""

    def test_missing_file_gives_defaults(self, temp_dir, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        config = load_config(str(temp_dir / "missing.yaml"))

        assert config.repositories == []
        assert config.parallel is False
        assert config.parallel_limit == 2
        assert config.log_level == "INFO"

    def test_values_from_yaml(self, temp_dir, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        path = temp_dir / "config.yaml"
        path.write_text(CONFIG_YAML)

        config = load_config(str(path))

        assert config.repositories[0].sources == {"stable": "https://dl.example.com/stable"}
        assert config.parallel is True
        assert config.parallel_limit == 4
        assert str(config.packages_path).startswith("/opt/binstash")
        assert config.bin_path == "/opt/binstash/bin"
        assert config.http_timeout == 60.0
        assert config.http_connect_timeout == 10.0
        assert config.max_retries == 0
        assert config.log_format == "json"
        assert config.get_repository("main").url == "https://meta.example.com/main.json"
        assert config.get_repository("other") is None

    def test_env_path_and_log_level(self, temp_dir, monkeypatch):
        path = temp_dir / "env.yaml"
        path.write_text("logging:\n  level: WARNING\n")
        monkeypatch.setenv("BINSTASH_CONFIG", str(path))
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert load_config().log_level == "DEBUG"

    def test_config_is_immutable(self, temp_dir):
        config = load_config(str(temp_dir / "missing.yaml"))
        with pytest.raises(Exception):
            config.parallel = True

    @pytest.mark.parametrize("content", [
        "repositories: [{name: main}]",
        "repositories:\n  - {name: a, url: x}\n  - {name: a, url: y}\n",
        "- just a list",
        "key: [unclosed",
    ])
    def test_invalid_config(self, temp_dir, content):
        path = temp_dir / "bad.yaml"
        path.write_text(content)

        with pytest.raises(ConfigurationError):
            load_config(str(path))
