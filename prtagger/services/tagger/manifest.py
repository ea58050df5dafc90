"""Release manifest lookups in the umbrella repository.

The umbrella repository pins each component through a JSON manifest:

    {
      "Components": {
        "Microsoft.CodeAnalysis.LanguageServices": {
          "url": "https://vsdrop.corp.microsoft.com/file/v1/Products/DevDiv/dotnet/roslyn/main/20230101.5;Microsoft.CodeAnalysis.LanguageServices.vsman"
        }
      }
    }

The component build number is the last path segment of that URL.
"""

from __future__ import annotations

import json
import re
from typing import Protocol

from prtagger.core.result import Err, Ok, Result
from prtagger.core.structured import as_str_dict, get_str, get_table
from prtagger.services.tagger.azdo import AzdoConnection
from prtagger.services.tagger.errors import TaggerError


_BUILD_NUMBER_RE = re.compile(r"^\d+\.\d+$")


class ManifestSource(Protocol):
    def component_url(
        self, commit: str, manifest_file: str, component: str
    ) -> Result[str | None, TaggerError]: ...


def parse_component_url(text: str, component: str) -> str | None:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError:
        return None

    data = as_str_dict(obj)
    if data is None:
        return None
    components = get_table(data, "Components")
    if components is None:
        return None
    entry = get_table(components, component)
    if entry is None:
        return None
    return get_str(entry, "url")


def build_number_from_url(url: str) -> str | None:
    path = url.split(";", 1)[0].split("?", 1)[0].rstrip("/")
    segment = path.rsplit("/", 1)[-1]
    if not _BUILD_NUMBER_RE.match(segment):
        return None
    return segment


class UmbrellaManifests:
    """ManifestSource reading manifests from the umbrella git repository."""

    def __init__(self, connection: AzdoConnection, *, repository: str, manifest_dir: str) -> None:
        self._connection = connection
        self._repository = repository
        self._manifest_dir = manifest_dir.strip("/")

    def component_url(
        self, commit: str, manifest_file: str, component: str
    ) -> Result[str | None, TaggerError]:
        path = f"/{manifest_file}"
        if self._manifest_dir:
            path = f"/{self._manifest_dir}{path}"
        text = self._connection.get_file_text(self._repository, path, commit)
        if isinstance(text, Err):
            return text
        if text.value is None:
            return Ok(None)
        return Ok(parse_component_url(text.value, component))
