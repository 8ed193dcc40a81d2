# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for configuration loading, placeholders and dataclass binding."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from flyaot.config.properties import AotRepositoryProperties
from flyaot.core.config import Config, config_properties


class TestConfig:
    def test_get_simple_value(self):
        config = Config({"flyaot": {"repositories": {"output-dir": "out"}}})
        assert config.get("flyaot.repositories.output-dir") == "out"

    def test_get_with_default(self):
        config = Config({})
        assert config.get("missing.key", "default") == "default"

    def test_get_nested_value(self):
        config = Config({"database": {"pool": {"size": 10}}})
        assert config.get("database.pool.size") == 10

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "flyaot.yaml"
        config_file.write_text("flyaot:\n  repositories:\n    include-code: true\n")
        config = Config.from_file(config_file)
        assert config.get("flyaot.repositories.include-code") is True
        assert config.loaded_sources == [str(config_file)]

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "flyaot.toml"
        config_file.write_text('[flyaot.repositories]\noutput-dir = "generated"\n')
        config = Config.from_file(config_file)
        assert config.get("flyaot.repositories.output-dir") == "generated"

    def test_missing_file_is_empty(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.to_dict() == {}
        assert config.loaded_sources == []

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLYAOT_REPOSITORIES_OUTPUT_DIR", "from-env")
        config = Config({"flyaot": {"repositories": {"output-dir": "from-file"}}})
        assert config.get("flyaot.repositories.output-dir") == "from-env"

    def test_env_var_override_without_flyaot_root(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLYAOT_APP_NAME", "env-service")
        config = Config({"app": {"name": "file-service"}})
        assert config.get("app.name") == "env-service"

    def test_get_section(self):
        config = Config({"flyaot": {"repositories": {"output-dir": "out", "include-code": False}}})
        assert config.get_section("flyaot.repositories") == {"output-dir": "out", "include-code": False}
        assert config.get_section("flyaot.missing") == {}


class TestSourceMerging:
    def test_config_dir_then_root(self, tmp_path: Path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "flyaot.yaml").write_text("build:\n  dir: config-dir\n  verbose: false\n")
        (tmp_path / "flyaot.yaml").write_text("build:\n  dir: root\n")

        config = Config.from_sources(tmp_path)
        assert config.get("build.dir") == "root"
        assert config.get("build.verbose") is False
        assert len(config.loaded_sources) == 2

    def test_profile_overlay(self, tmp_path: Path):
        (tmp_path / "flyaot.yaml").write_text("build:\n  dir: out\n  verbose: false\n")
        (tmp_path / "flyaot-ci.yaml").write_text("build:\n  verbose: true\n")

        config = Config.from_sources(tmp_path, active_profiles=["ci"])
        assert config.get("build.dir") == "out"
        assert config.get("build.verbose") is True
        assert config.loaded_sources[-1].endswith("(profile: ci)")

    def test_no_sources(self, tmp_path: Path):
        config = Config.from_sources(tmp_path)
        assert config.to_dict() == {}


class TestPlaceholders:
    def test_config_reference(self):
        config = Config({"base": "build", "out": "${base}/flyaot"})
        assert config.get("out") == "build/flyaot"

    def test_env_reference(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLYAOT_TEST_ROOT", "/srv")
        config = Config({"out": "${FLYAOT_TEST_ROOT}/gen"})
        assert config.get("out") == "/srv/gen"

    def test_default_value(self):
        config = Config({"out": "${missing.key:fallback}"})
        assert config.get("out") == "fallback"

    def test_unresolvable_raises(self):
        config = Config({"out": "${missing.key}"})
        with pytest.raises(ValueError, match="Cannot resolve placeholder"):
            config.get("out")

    def test_circular_reference_raises(self):
        config = Config({"a": "${b}", "b": "${a}"})
        with pytest.raises(ValueError, match="Max recursion depth"):
            config.get("a")


class TestConfigProperties:
    def test_bind_to_dataclass(self):
        @config_properties(prefix="database")
        @dataclass
        class DatabaseConfig:
            url: str = "sqlite:///test.db"
            pool_size: int = 5

        config = Config({"database": {"url": "postgresql://localhost/mydb", "pool-size": 20}})
        db_config = config.bind(DatabaseConfig)
        assert db_config.url == "postgresql://localhost/mydb"
        assert db_config.pool_size == 20

    def test_bind_uses_defaults(self):
        config = Config({})
        properties = config.bind(AotRepositoryProperties)
        assert properties == AotRepositoryProperties()
        assert properties.output_dir == "build/flyaot"
        assert properties.include_code is False
        assert properties.query_enhancer_selector == ""

    def test_bind_repository_properties(self):
        config = Config(
            {
                "flyaot": {
                    "repositories": {
                        "query-enhancer-selector": "tests.aot.models:RecordingSelector",
                        "output_dir": "gen",
                    }
                }
            }
        )
        properties = config.bind(AotRepositoryProperties)
        assert properties.query_enhancer_selector == "tests.aot.models:RecordingSelector"
        assert properties.output_dir == "gen"

    def test_bind_env_override_coerces_bool(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLYAOT_REPOSITORIES_INCLUDE_CODE", "yes")
        properties = Config({}).bind(AotRepositoryProperties)
        assert properties.include_code is True

    def test_bind_env_override_coerces_int(self, monkeypatch: pytest.MonkeyPatch):
        @config_properties(prefix="flyaot.pool")
        @dataclass
        class PoolConfig:
            size: int = 1

        monkeypatch.setenv("FLYAOT_POOL_SIZE", "8")
        assert Config({}).bind(PoolConfig).size == 8

    def test_bind_undecorated_raises(self):
        @dataclass
        class Plain:
            value: str = ""

        with pytest.raises(ValueError, match="not decorated with @config_properties"):
            Config({}).bind(Plain)
