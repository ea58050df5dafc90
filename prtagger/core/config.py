"""Typed configuration loading and access.

This module provides dataclasses for the prtagger.toml structure with
full type safety and validation. Every section is optional; missing
values fall back to the defaults below, which describe the Visual Studio
insertion setup.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_list, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "GitHubConfig",
    "OrganizationConfig",
    "Product",
    "RunConfig",
    "UmbrellaConfig",
    "DEFAULT_CONFIG_FILE",
    "load_config",
    "load_config_or_default",
]

DEFAULT_CONFIG_FILE = "prtagger.toml"

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

GITHUB_API_URL = "https://api.github.com"
GITHUB_TOKEN_ENV = "GITHUB_TOKEN"

UMBRELLA_ORGANIZATION = "devdiv"
UMBRELLA_REPOSITORY = "VS"
UMBRELLA_PIPELINE = "DD-CB-TestSignVS"
UMBRELLA_MANIFEST_DIR = ".corext/Configs"

MAX_BUILDS = 50
MAX_WORKERS = 8
WORK_DIR = ".prtagger"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class Product:
    """A component tracked for insertion notifications.

    Attributes:
        name: Display name (also used by --product).
        repo_url: Source repository URL, e.g. https://github.com/dotnet/roslyn
        component_json: Release manifest file in the umbrella repository.
        component: Entry of the manifest's "Components" table.
        pipelines: Organization name -> build pipeline name.
    """

    name: str
    repo_url: str
    component_json: str
    component: str
    pipelines: Mapping[str, str] = field(default_factory=lambda: dict[str, str]())

    def build_pipeline_name(self, organization: str) -> str | None:
        return self.pipelines.get(organization)

    @property
    def is_github(self) -> bool:
        return "github.com" in self.repo_url

    @property
    def repo_slug(self) -> str:
        """owner/name part of the repository URL."""
        parts = [p for p in self.repo_url.rstrip("/").removesuffix(".git").split("/") if p]
        return "/".join(parts[-2:])

    @property
    def repo_name(self) -> str:
        return self.repo_slug.split("/")[-1]


@dataclass(frozen=True, slots=True)
class OrganizationConfig:
    """An Azure DevOps organization that may host component builds."""

    name: str
    url: str
    project: str
    token_env: str


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    api_url: str = GITHUB_API_URL
    token_env: str = GITHUB_TOKEN_ENV


@dataclass(frozen=True, slots=True)
class UmbrellaConfig:
    """Where the umbrella (VS) builds and manifests live."""

    organization: str = UMBRELLA_ORGANIZATION
    repository: str = UMBRELLA_REPOSITORY
    pipeline: str = UMBRELLA_PIPELINE
    manifest_dir: str = UMBRELLA_MANIFEST_DIR


@dataclass(frozen=True, slots=True)
class RunConfig:
    max_builds: int = MAX_BUILDS
    max_workers: int = MAX_WORKERS
    work_dir: str = WORK_DIR


DEFAULT_ORGANIZATIONS: tuple[OrganizationConfig, ...] = (
    OrganizationConfig(
        name="devdiv",
        url="https://dev.azure.com/devdiv",
        project="DevDiv",
        token_env="DEVDIV_AZDO_TOKEN",
    ),
    OrganizationConfig(
        name="dnceng",
        url="https://dev.azure.com/dnceng",
        project="internal",
        token_env="DNCENG_AZDO_TOKEN",
    ),
)

DEFAULT_PRODUCTS: tuple[Product, ...] = (
    Product(
        name="Roslyn",
        repo_url="https://github.com/dotnet/roslyn",
        component_json="Microsoft.CodeAnalysis.Compilers.json",
        component="Microsoft.CodeAnalysis.LanguageServices",
        pipelines={"devdiv": "Roslyn-Signed", "dnceng": "dotnet-roslyn-official"},
    ),
    Product(
        name="Razor",
        repo_url="https://github.com/dotnet/razor",
        component_json="Microsoft.VisualStudio.RazorExtension.json",
        component="Microsoft.VisualStudio.RazorExtension",
        pipelines={"dnceng": "dotnet-razor-official"},
    ),
)


def _default_organizations() -> tuple[OrganizationConfig, ...]:
    return DEFAULT_ORGANIZATIONS


def _default_products() -> tuple[Product, ...]:
    return DEFAULT_PRODUCTS


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    umbrella: UmbrellaConfig = field(default_factory=UmbrellaConfig)
    organizations: tuple[OrganizationConfig, ...] = field(default_factory=_default_organizations)
    products: tuple[Product, ...] = field(default_factory=_default_products)
    run: RunConfig = field(default_factory=RunConfig)

    def organization(self, name: str) -> OrganizationConfig | None:
        for org in self.organizations:
            if org.name == name:
                return org
        return None

    def product(self, name: str) -> Product | None:
        for product in self.products:
            if product.name.lower() == name.lower():
                return product
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If an organization or product entry is incomplete.
        """
        github: StrDict = get_table(data, "github") or {}
        umbrella: StrDict = get_table(data, "umbrella") or {}
        run: StrDict = get_table(data, "run") or {}

        organizations = DEFAULT_ORGANIZATIONS
        orgs_raw = get_list(data, "organizations")
        if orgs_raw is not None:
            organizations = tuple(_parse_organization(item) for item in orgs_raw)

        products = DEFAULT_PRODUCTS
        products_raw = get_list(data, "products")
        if products_raw is not None:
            products = tuple(_parse_product(item) for item in products_raw)

        return cls(
            github=GitHubConfig(
                api_url=get_str(github, "api_url") or GITHUB_API_URL,
                token_env=get_str(github, "token_env") or GITHUB_TOKEN_ENV,
            ),
            umbrella=UmbrellaConfig(
                organization=get_str(umbrella, "organization") or UMBRELLA_ORGANIZATION,
                repository=get_str(umbrella, "repository") or UMBRELLA_REPOSITORY,
                pipeline=get_str(umbrella, "pipeline") or UMBRELLA_PIPELINE,
                manifest_dir=get_str(umbrella, "manifest_dir") or UMBRELLA_MANIFEST_DIR,
            ),
            organizations=organizations,
            products=products,
            run=RunConfig(
                max_builds=_positive_int(run, "max_builds", MAX_BUILDS),
                max_workers=_positive_int(run, "max_workers", MAX_WORKERS),
                work_dir=get_str(run, "work_dir") or WORK_DIR,
            ),
        )


def _positive_int(table: StrDict, key: str, default: int) -> int:
    if key not in table:
        return default
    value = get_int(table, key)
    if value is None or value < 1:
        raise ValueError(f"run.{key} must be a positive integer")
    return value


def _parse_organization(item: object) -> OrganizationConfig:
    table = as_str_dict(item)
    if table is None:
        raise ValueError("organizations entries must be tables")

    name = get_str(table, "name")
    url = get_str(table, "url")
    project = get_str(table, "project")
    if name is None or url is None or project is None:
        raise ValueError("organizations entries need name, url and project")

    return OrganizationConfig(
        name=name,
        url=url.rstrip("/"),
        project=project,
        token_env=get_str(table, "token_env") or f"{name.upper()}_AZDO_TOKEN",
    )


def _parse_product(item: object) -> Product:
    table = as_str_dict(item)
    if table is None:
        raise ValueError("products entries must be tables")

    name = get_str(table, "name")
    repo_url = get_str(table, "repo_url")
    component_json = get_str(table, "component_json")
    component = get_str(table, "component")
    if name is None or repo_url is None or component_json is None or component is None:
        raise ValueError(
            f"product {name or '?'} needs name, repo_url, component_json and component"
        )

    pipelines: dict[str, str] = {}
    for org, pipeline in (get_table(table, "pipelines") or {}).items():
        if not isinstance(pipeline, str) or not pipeline.strip():
            raise ValueError(f"product {name}: pipeline for {org} must be a string")
        pipelines[org] = pipeline.strip()

    return Product(
        name=name,
        repo_url=repo_url,
        component_json=component_json,
        component=component,
        pipelines=pipelines,
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to prtagger.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config from file, or return the defaults if the file doesn't exist.

    An existing but invalid file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
