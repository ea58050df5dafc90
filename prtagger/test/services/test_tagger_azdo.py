from __future__ import annotations

from prtagger.core.config import OrganizationConfig
from prtagger.core.result import Err, Ok
from prtagger.net.http import HttpError, MockHttpClient
from prtagger.services.tagger.azdo import AzdoBuild, AzdoConnection


ORG = OrganizationConfig(
    name="dnceng", url="https://dev.azure.com/dnceng", project="internal", token_env="T"
)


def _connection() -> tuple[AzdoConnection, MockHttpClient]:
    http = MockHttpClient()
    return AzdoConnection(ORG, http), http


def _set_definition(conn: AzdoConnection, http: MockHttpClient, name: str, def_id: int) -> None:
    http.set_json(
        conn._url("build/definitions", {"name": name}),
        {"count": 1, "value": [{"id": def_id, "name": name}]},
    )


def test_url_carries_api_version() -> None:
    conn, _ = _connection()
    url = conn._url("build/builds", {"definitions": 3, "$top": 10})
    assert url == (
        "https://dev.azure.com/dnceng/internal/_apis/build/builds"
        "?definitions=3&$top=10&api-version=7.1"
    )


def test_unknown_pipeline_has_no_builds() -> None:
    conn, http = _connection()
    http.set_json(conn._url("build/definitions", {"name": "missing"}), {"count": 0, "value": []})

    assert conn.list_builds("missing") == Ok([])


def test_list_builds_skips_incomplete_entries() -> None:
    conn, http = _connection()
    _set_definition(conn, http, "roslyn-CI", 15)
    http.set_json(
        conn._url(
            "build/builds",
            {
                "definitions": 15,
                "queryOrder": "finishTimeDescending",
                "resultFilter": "succeeded",
                "$top": 2,
            },
        ),
        {
            "value": [
                {"buildNumber": "20240101.2", "sourceVersion": "bbb"},
                {"buildNumber": "20240101.1"},
                {"buildNumber": "20231231.9", "sourceVersion": "aaa"},
            ]
        },
    )

    assert conn.list_builds("roslyn-CI", top=2, result_filter="succeeded") == Ok(
        [AzdoBuild("20240101.2", "bbb"), AzdoBuild("20231231.9", "aaa")]
    )


def test_find_build_by_number() -> None:
    conn, http = _connection()
    _set_definition(conn, http, "roslyn-CI", 15)
    http.set_json(
        conn._url(
            "build/builds",
            {
                "definitions": 15,
                "queryOrder": "finishTimeDescending",
                "buildNumber": "20240101.2",
            },
        ),
        {"value": [{"buildNumber": "20240101.2", "sourceVersion": "bbb"}]},
    )

    assert conn.find_build("roslyn-CI", "20240101.2") == Ok("bbb")
    assert not any("resultFilter" in url for _, url in http.calls)


def test_find_build_accepts_partially_succeeded_builds() -> None:
    conn, http = _connection()
    _set_definition(conn, http, "dotnet-roslyn-official", 7)
    http.set_json(
        conn._url(
            "build/builds",
            {
                "definitions": 7,
                "queryOrder": "finishTimeDescending",
                "buildNumber": "20230101.5",
            },
        ),
        {
            "value": [
                {
                    "buildNumber": "20230101.5",
                    "result": "partiallySucceeded",
                    "sourceVersion": "ccc",
                }
            ]
        },
    )

    assert conn.find_build("dotnet-roslyn-official", "20230101.5") == Ok("ccc")


def test_find_build_none_when_absent() -> None:
    conn, http = _connection()
    _set_definition(conn, http, "roslyn-CI", 15)
    http.set_json(
        conn._url(
            "build/builds",
            {
                "definitions": 15,
                "queryOrder": "finishTimeDescending",
                "buildNumber": "1.0",
            },
        ),
        {"value": []},
    )

    assert conn.find_build("roslyn-CI", "1.0") == Ok(None)


def test_definition_lookup_failure_is_http_failed() -> None:
    conn, _ = _connection()

    result = conn.find_build("roslyn-CI", "1.0")
    assert isinstance(result, Err)
    assert result.error.kind == "http_failed"
    assert result.error.message.startswith("dnceng:")


def test_first_parent() -> None:
    conn, http = _connection()
    http.set_json(
        conn._url("git/repositories/VS/commits/abc", {}),
        {"commitId": "abc", "parents": ["p1", "p2"]},
    )

    assert conn.first_parent("VS", "abc") == Ok("p1")


def test_first_parent_of_root_commit() -> None:
    conn, http = _connection()
    http.set_json(conn._url("git/repositories/VS/commits/root", {}), {"parents": []})

    result = conn.first_parent("VS", "root")
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_payload"


def _items_url(conn: AzdoConnection, path: str, commit: str) -> str:
    return conn._url(
        "git/repositories/VS/items",
        {
            "path": path,
            "versionDescriptor.version": commit,
            "versionDescriptor.versionType": "commit",
            "includeContent": "true",
        },
    )


def test_get_file_text() -> None:
    conn, http = _connection()
    http.set_json(_items_url(conn, "/a.json", "abc"), {"content": "{}"})

    assert conn.get_file_text("VS", "/a.json", "abc") == Ok("{}")


def test_get_file_text_missing_file() -> None:
    conn, _ = _connection()

    assert conn.get_file_text("VS", "/a.json", "abc") == Ok(None)


def test_get_file_text_server_error() -> None:
    conn, http = _connection()
    url = _items_url(conn, "/a.json", "abc")
    http.set_json(url, HttpError(url=url, status=500, message="Internal Server Error"))

    result = conn.get_file_text("VS", "/a.json", "abc")
    assert isinstance(result, Err)
    assert "/a.json@abc" in result.error.message
