"""Tests for prtagger.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from prtagger.core.config import (
    Config,
    ConfigError,
    Product,
    RunConfig,
    UmbrellaConfig,
    load_config,
    load_config_or_default,
)
from prtagger.core.result import Err, Ok


class TestDefaults:
    def test_umbrella(self) -> None:
        umbrella = UmbrellaConfig()
        assert umbrella.organization == "devdiv"
        assert umbrella.repository == "VS"
        assert umbrella.pipeline == "DD-CB-TestSignVS"
        assert umbrella.manifest_dir == ".corext/Configs"

    def test_run(self) -> None:
        run = RunConfig()
        assert run.max_builds == 50
        assert run.max_workers == 8

    def test_organizations_in_priority_order(self) -> None:
        assert [o.name for o in Config().organizations] == ["devdiv", "dnceng"]

    def test_products(self) -> None:
        config = Config()
        assert [p.name for p in config.products] == ["Roslyn", "Razor"]
        assert config.product("ROSLYN") is config.products[0]
        assert config.product("fsharp") is None

    def test_frozen(self) -> None:
        config = RunConfig()
        with pytest.raises(AttributeError):
            config.max_builds = 1  # type: ignore[misc]


class TestProduct:
    def test_repo_slug(self) -> None:
        product = Product(
            name="Roslyn",
            repo_url="https://github.com/dotnet/roslyn.git/",
            component_json="x.json",
            component="x",
        )
        assert product.repo_slug == "dotnet/roslyn"
        assert product.repo_name == "roslyn"
        assert product.is_github

    def test_non_github(self) -> None:
        product = Product(
            name="X",
            repo_url="https://dev.azure.com/devdiv/DevDiv/_git/X",
            component_json="x.json",
            component="x",
        )
        assert not product.is_github

    def test_pipeline_per_organization(self) -> None:
        roslyn = Config().products[0]
        assert roslyn.build_pipeline_name("devdiv") == "Roslyn-Signed"
        assert roslyn.build_pipeline_name("elsewhere") is None


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "prtagger.toml"
        path.write_text(
            """
[github]
token_env = "GH_PAT"

[umbrella]
pipeline = "VS-Official"

[[organizations]]
name = "contoso"
url = "https://dev.azure.com/contoso/"
project = "Main"

[[products]]
name = "Widget"
repo_url = "https://github.com/contoso/widget"
component_json = "Widget.json"
component = "Contoso.Widget"

[products.pipelines]
contoso = "widget-official"

[run]
max_builds = 10
""",
            encoding="utf-8",
        )

        result = load_config(path)

        assert isinstance(result, Ok)
        config = result.value
        assert config.github.token_env == "GH_PAT"
        assert config.github.api_url == "https://api.github.com"
        assert config.umbrella.pipeline == "VS-Official"
        assert config.umbrella.repository == "VS"
        org = config.organization("contoso")
        assert org is not None
        assert org.url == "https://dev.azure.com/contoso"
        assert org.token_env == "CONTOSO_AZDO_TOKEN"
        assert config.products[0].build_pipeline_name("contoso") == "widget-official"
        assert config.run.max_builds == 10
        assert config.run.max_workers == 8

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "prtagger.toml"
        path.write_text("[run\nmax_builds = 1", encoding="utf-8")

        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_incomplete_product(self, tmp_path: Path) -> None:
        path = tmp_path / "prtagger.toml"
        path.write_text('[[products]]\nname = "Widget"\n', encoding="utf-8")

        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message

    def test_or_default_without_file(self, tmp_path: Path) -> None:
        assert load_config_or_default(tmp_path / "prtagger.toml") == Ok(Config())

    def test_or_default_still_reports_bad_file(self, tmp_path: Path) -> None:
        path = tmp_path / "prtagger.toml"
        path.write_text("not toml at all [", encoding="utf-8")
        assert isinstance(load_config_or_default(path), Err)


class TestRunSection:
    @pytest.mark.parametrize("line", ["max_builds = 0", "max_builds = -1", 'max_workers = "8"'])
    def test_rejects_non_positive_or_non_integer(self, tmp_path: Path, line: str) -> None:
        path = tmp_path / "prtagger.toml"
        path.write_text(f"[run]\n{line}\n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "must be a positive integer" in result.error.message

    def test_explicit_values_kept(self, tmp_path: Path) -> None:
        path = tmp_path / "prtagger.toml"
        path.write_text("[run]\nmax_builds = 1\nmax_workers = 2\n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.run.max_builds == 1
        assert result.value.run.max_workers == 2
