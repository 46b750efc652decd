import base64

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from docstore.api import DocumentStoreAPI, DocumentStoreError

BASIC = "Basic " + base64.b64encode(b"alice:secret").decode()


class RecordingStore:
    """Minimal document store double that records every request it sees."""

    def __init__(self) -> None:
        self.requests: list[dict] = []
        self.files: dict[str, bytes] = {"images/logo.png": b"\x89PNG fake image bytes"}

    async def handle(self, request: web.Request) -> web.StreamResponse:
        entry = {
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "authorization": request.headers.get("Authorization"),
        }
        self.requests.append(entry)
        tail = request.match_info["tail"]

        if request.content_type == "application/json":
            entry["json"] = await request.json()
        if request.content_type == "multipart/form-data":
            form = await request.post()
            field = form["document"]
            entry["upload"] = (field.filename, field.file.read())

        if tail == "documents/missing.txt":
            return web.Response(status=404, text="document not found")
        if request.method == "DELETE":
            return web.Response(status=204)
        if request.method == "GET" and tail.startswith("documents/") and "details_only" not in request.query:
            return web.Response(body=self.files[tail[len("documents/"):]])
        return web.json_response({"ok": True, "path": tail})


@pytest.mark.asyncio
@pytest.mark.filterwarnings("error:.*auth.*:DeprecationWarning")
async def test_rest_operations_hit_expected_routes(tmp_path):
    store = RecordingStore()
    app = web.Application()
    app.router.add_route("*", "/api/v1/{tail:.*}", store.handle)
    server = TestServer(app)
    await server.start_server()

    local = tmp_path / "logo.png"
    local.write_bytes(b"uploaded bytes")
    dest = tmp_path / "out" / "logo_downloaded.png"

    try:
        async with DocumentStoreAPI(str(server.make_url("/api/v1/")), "alice", "secret") as api:
            uploaded = await api.upload(local, "/images/logo.png")
            written = await api.download("/images/logo.png", dest)
            meta = await api.metadata("images/logo.png")
            await api.calculate_hash("images/logo.png")
            await api.sync_hashes()
            await api.search("kaleido")
            await api.set_preference("receivedDocumentsPath", "/transfers/to/${recipient_destination}")
            await api.transfer("dest-a", "dest-b", "/images/logo.png")
            logs = await api.transfer_logs()
            deleted = await api.delete("/images/logo.png")
    finally:
        await server.close()

    assert uploaded == {"ok": True, "path": "documents/images/logo.png"}
    assert written == len(b"\x89PNG fake image bytes")
    assert dest.read_bytes() == b"\x89PNG fake image bytes"
    assert meta["ok"] is True
    assert logs == {"ok": True, "path": "transfers"}
    assert deleted is None

    seen = [(r["method"], r["path"], r["query"]) for r in store.requests]
    assert seen == [
        ("PUT", "/api/v1/documents/images/logo.png", {}),
        ("GET", "/api/v1/documents/images/logo.png", {}),
        ("GET", "/api/v1/documents/images/logo.png", {"details_only": "true"}),
        ("PATCH", "/api/v1/documents/images/logo.png", {}),
        ("POST", "/api/v1/sync_hashes", {"reset": "true"}),
        ("GET", "/api/v1/search", {"query": "kaleido"}),
        ("PUT", "/api/v1/preferences", {}),
        ("POST", "/api/v1/transfers", {}),
        ("GET", "/api/v1/transfers", {}),
        ("DELETE", "/api/v1/documents/images/logo.png", {}),
    ]
    assert all(r["authorization"] == BASIC for r in store.requests)
    assert store.requests[0]["upload"] == ("logo.png", b"uploaded bytes")
    assert store.requests[6]["json"] == {
        "key": "receivedDocumentsPath",
        "value": "/transfers/to/${recipient_destination}",
    }
    assert store.requests[7]["json"] == {"from": "dest-a", "to": "dest-b", "document": "/images/logo.png"}


@pytest.mark.asyncio
async def test_error_status_raises_document_store_error():
    store = RecordingStore()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", store.handle)
    server = TestServer(app)
    await server.start_server()

    try:
        async with DocumentStoreAPI(str(server.make_url("/")), "alice", "secret") as api:
            with pytest.raises(DocumentStoreError) as excinfo:
                await api.metadata("missing.txt")
    finally:
        await server.close()

    assert excinfo.value.status == 404
    assert excinfo.value.message == "document not found"
    assert excinfo.value.method == "GET"


@pytest.mark.asyncio
async def test_api_requires_context_manager():
    api = DocumentStoreAPI("https://h", "alice", "secret")

    with pytest.raises(RuntimeError):
        await api.search("x")
