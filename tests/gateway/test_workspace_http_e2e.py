from __future__ import annotations

import io

import pytest

from workspace_gateway.app import create_app
from workspace_gateway.auth import AuthResult
from workspace_gateway.config import AuthSettings, Settings


def test_listing_creates_root_lazily_and_hides_dotfiles(gateway_client, workspace_root, auth_params):
    assert not workspace_root.exists()

    empty_resp = gateway_client.get("/api/workspace", query_string=auth_params)
    assert empty_resp.status_code == 200
    assert empty_resp.get_json() == []
    assert workspace_root.is_dir()

    (workspace_root / ".hidden").write_text("x")
    (workspace_root / "notes.md").write_text("hello")
    (workspace_root / "docs").mkdir()

    resp = gateway_client.get("/api/workspace", query_string=auth_params)
    files = resp.get_json()

    assert [f["name"] for f in files] == ["docs", "notes.md"]
    assert files[0]["isDirectory"] is True
    assert files[1] == {
        "name": "notes.md",
        "size": 5,
        "mtime": files[1]["mtime"],
        "isDirectory": False,
    }
    assert isinstance(files[1]["mtime"], int)


def test_listing_subdirectory_via_path_param(gateway_client, workspace_root, auth_params):
    (workspace_root / "sub" / "inner").mkdir(parents=True)
    (workspace_root / "sub" / "a.txt").write_text("a")

    resp = gateway_client.get("/api/workspace", query_string={**auth_params, "path": "sub"})

    assert [f["name"] for f in resp.get_json()] == ["inner", "a.txt"]


def test_listing_with_trailing_slash_lists_root(gateway_client, workspace_root, auth_params):
    workspace_root.mkdir(parents=True)
    (workspace_root / "a.txt").write_text("a")

    resp = gateway_client.get("/api/workspace/", query_string=auth_params)

    assert resp.status_code == 200
    assert [f["name"] for f in resp.get_json()] == ["a.txt"]


def test_unknown_route_is_plain_404(gateway_client):
    resp = gateway_client.get("/api/other")

    assert resp.status_code == 404
    assert resp.mimetype == "text/plain"
    assert resp.data == b"Not Found"


def test_listing_missing_subdirectory_is_404(gateway_client, auth_params):
    resp = gateway_client.get("/api/workspace", query_string={**auth_params, "path": "nope"})
    assert resp.status_code == 404


@pytest.mark.parametrize(
    "url, extra",
    [
        ("/api/workspace", {"path": "../../etc"}),
        ("/api/workspace/..%2F..%2Fetc%2Fpasswd", {}),
        ("/api/workspace/text/..%2F..%2Fetc%2Fpasswd", {}),
        ("/api/workspace/secret.txt", {"path": "../main-evil"}),
    ],
)
def test_traversal_is_forbidden_without_echoing_path(gateway_client, auth_params, url, extra):
    resp = gateway_client.get(url, query_string={**auth_params, **extra})

    assert resp.status_code == 403
    assert resp.get_json() == {"error": "Forbidden"}
    assert b"etc" not in resp.data


def test_unauthorized_short_circuits_before_filesystem(gateway_client, workspace_root):
    resp = gateway_client.get("/api/workspace", query_string={"token": "wrong"})

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}
    assert not workspace_root.exists()


def test_bearer_header_is_accepted_like_query_token(gateway_client):
    resp = gateway_client.get(
        "/api/workspace", headers={"Authorization": "Bearer unit-test-token"}
    )
    assert resp.status_code == 200


def test_text_round_trip_over_http(gateway_client, workspace_root, auth_params):
    content = "# Título\n\nmulti-byte ✓ 🚀\n"

    put_resp = gateway_client.put(
        "/api/workspace/text/notes.md",
        query_string=auth_params,
        data=content.encode("utf-8"),
    )
    assert put_resp.status_code == 200
    assert put_resp.get_json() == {"ok": True}

    get_resp = gateway_client.get("/api/workspace/text/notes.md", query_string=auth_params)
    assert get_resp.status_code == 200
    assert get_resp.mimetype == "text/plain"
    assert get_resp.get_data(as_text=True) == content
    assert (workspace_root / "notes.md").read_bytes() == content.encode("utf-8")


def test_text_write_empty_body_truncates(gateway_client, workspace_root, auth_params):
    workspace_root.mkdir(parents=True)
    (workspace_root / "f.txt").write_text("old content")

    gateway_client.put("/api/workspace/text/f.txt", query_string=auth_params, data=b"")

    assert (workspace_root / "f.txt").read_bytes() == b""


def test_text_write_short_body_keeps_existing_content(gateway_client, workspace_root, auth_params):
    workspace_root.mkdir(parents=True)
    (workspace_root / "notes.md").write_bytes(b"precious original content")

    resp = gateway_client.put(
        "/api/workspace/text/notes.md",
        query_string=auth_params,
        input_stream=io.BytesIO(b"partial"),
        headers={"Content-Length": "1000"},
    )

    assert resp.status_code == 400
    assert (workspace_root / "notes.md").read_bytes() == b"precious original content"
    assert [p.name for p in workspace_root.iterdir()] == ["notes.md"]


def test_text_write_into_missing_directory_is_500(gateway_client, auth_params):
    resp = gateway_client.put(
        "/api/workspace/text/missing/f.txt", query_string=auth_params, data=b"x"
    )

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Failed to write text file"}


def test_text_read_missing_is_plain_404(gateway_client, auth_params):
    resp = gateway_client.get("/api/workspace/text/absent.md", query_string=auth_params)

    assert resp.status_code == 404
    assert resp.mimetype == "text/plain"
    assert resp.data == b"Not Found"


def test_download_headers_and_body(gateway_client, workspace_root, auth_params):
    workspace_root.mkdir(parents=True)
    payload = b"# notes\n\x00\xff binary tail"
    (workspace_root / "notes.md").write_bytes(payload)

    resp = gateway_client.get("/api/workspace/notes.md", query_string=auth_params)

    assert resp.status_code == 200
    assert resp.headers["Content-Type"] == "application/octet-stream"
    assert 'filename="notes.md"' in resp.headers["Content-Disposition"]
    assert resp.headers["Content-Disposition"].startswith("attachment")
    assert resp.data == payload
    resp.close()


def test_download_nested_name_relative_to_path_param(gateway_client, workspace_root, auth_params):
    (workspace_root / "a" / "b").mkdir(parents=True)
    (workspace_root / "a" / "b" / "c.bin").write_bytes(b"abc")

    encoded = gateway_client.get("/api/workspace/b%2Fc.bin", query_string={**auth_params, "path": "a"})
    plain = gateway_client.get("/api/workspace/a/b/c.bin", query_string=auth_params)

    assert encoded.data == plain.data == b"abc"
    assert 'filename="c.bin"' in encoded.headers["Content-Disposition"]
    encoded.close()
    plain.close()


def test_download_missing_or_directory_is_404(gateway_client, workspace_root, auth_params):
    (workspace_root / "dir").mkdir(parents=True)

    missing = gateway_client.get("/api/workspace/absent.bin", query_string=auth_params)
    directory = gateway_client.get("/api/workspace/dir", query_string=auth_params)

    assert missing.status_code == directory.status_code == 404
    assert missing.data == b"Not Found"


def test_delete_is_idempotent_and_recursive(gateway_client, workspace_root, auth_params):
    (workspace_root / "tree" / "nested").mkdir(parents=True)
    (workspace_root / "tree" / "nested" / "deep.txt").write_text("x")
    (workspace_root / "tree" / "top.txt").write_text("x")
    (workspace_root / "keep.txt").write_text("x")

    first = gateway_client.delete("/api/workspace/tree", query_string=auth_params)
    second = gateway_client.delete("/api/workspace/tree", query_string=auth_params)
    listing = gateway_client.get("/api/workspace", query_string=auth_params).get_json()

    assert first.get_json() == second.get_json() == {"ok": True}
    assert [f["name"] for f in listing] == ["keep.txt"]


def test_delete_of_workspace_root_is_forbidden(gateway_client, workspace_root, auth_params):
    resp = gateway_client.delete("/api/workspace/.", query_string=auth_params)

    assert resp.status_code == 403
    assert workspace_root.is_dir()


def test_multipart_upload_preserves_binary(gateway_client, workspace_root, auth_params, multipart_body):
    body = multipart_body("X", [({"name": "files", "filename": "report.txt"}, b"\x00\x01\xff")])

    resp = gateway_client.post(
        "/api/workspace/upload",
        query_string=auth_params,
        data=body,
        content_type="multipart/form-data; boundary=X",
    )

    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True}
    assert (workspace_root / "report.txt").read_bytes() == b"\x00\x01\xff"


def test_multipart_upload_from_test_client_form(gateway_client, workspace_root, auth_params):
    (workspace_root / "incoming").mkdir(parents=True)

    resp = gateway_client.post(
        "/api/workspace/upload",
        query_string={**auth_params, "path": "incoming"},
        data={
            "files": [
                (io.BytesIO(b"first"), "one.txt"),
                (io.BytesIO(b"\x89PNG\r\n\x1a\n"), "two.png"),
            ],
            "note": "ignored form field",
        },
        content_type="multipart/form-data",
    )

    assert resp.status_code == 200
    assert (workspace_root / "incoming" / "one.txt").read_bytes() == b"first"
    assert (workspace_root / "incoming" / "two.png").read_bytes() == b"\x89PNG\r\n\x1a\n"
    assert sorted(p.name for p in (workspace_root / "incoming").iterdir()) == ["one.txt", "two.png"]


def test_upload_without_boundary_is_bad_request(gateway_client, auth_params):
    resp = gateway_client.post(
        "/api/workspace/upload",
        query_string=auth_params,
        data=b"whatever",
        content_type="multipart/form-data",
    )

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing boundary"}


def test_upload_filename_escape_is_forbidden(gateway_client, workspace_root, auth_params, multipart_body):
    body = multipart_body("X", [({"name": "files", "filename": "../../outside.txt"}, b"evil")])

    resp = gateway_client.post(
        "/api/workspace/upload",
        query_string=auth_params,
        data=body,
        content_type="multipart/form-data; boundary=X",
    )

    assert resp.status_code == 403
    assert not (workspace_root.parent / "outside.txt").exists()


def test_agent_id_selects_workspace_root(gateway_client, gateway_settings, auth_params):
    gateway_client.put(
        "/api/workspace/text/who.txt",
        query_string={**auth_params, "agentId": "research"},
        data=b"research agent",
    )

    assert (gateway_settings.workspace_base / "research" / "who.txt").read_text() == "research agent"
    assert not (gateway_settings.workspace_base / "main" / "who.txt").exists()


def test_invalid_agent_id_is_forbidden(gateway_client, auth_params):
    resp = gateway_client.get("/api/workspace", query_string={**auth_params, "agentId": "../x"})
    assert resp.status_code == 403


def test_unhandled_method_falls_through(gateway_client, auth_params):
    resp = gateway_client.patch("/api/workspace/notes.md", query_string=auth_params)
    assert resp.status_code == 405


def test_custom_authority_is_consulted(tmp_path):
    seen = []

    class _RecordingAuthority:
        def authorize(self, credentials):
            seen.append(credentials)
            return AuthResult(ok=credentials.username == "ops")

    settings = Settings(workspace_base=tmp_path, auth=AuthSettings(mode="none"))
    app = create_app({"TESTING": True}, settings=settings, authority=_RecordingAuthority())

    with app.test_client() as client:
        denied = client.get("/api/workspace", query_string={"token": "t"})
        allowed = client.get("/api/workspace", query_string={"token": "t", "username": "ops"})

    assert denied.status_code == 401
    assert allowed.status_code == 200
    assert [c.username for c in seen] == [None, "ops"]
