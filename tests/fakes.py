"""In-memory stand-in for the REST gateway, used through httpx.MockTransport."""

import inspect
import json
import re
from typing import Any, Callable

import httpx

BASE_URL = "http://backend.test/api/v1"
API_PREFIX = "/api/v1"

_FILE_DETAIL = re.compile(r"^/files/(\d+)(/download)?$")


def document_json(document_id: int, filename: str = "report.pdf", author: str = "Alice", file_type: str = "pdf", size: int = 1024, summary: str | None = None) -> dict:
    return {
        "id": document_id,
        "filename": filename,
        "author": author,
        "fileType": file_type,
        "size": size,
        "uploadTime": "2024-05-01T10:00:00Z",
        "lastEdited": "2024-05-01T10:00:00Z",
        "summary": summary,
    }


def form_field(request: httpx.Request, name: str) -> str | None:
    """Read a plain field out of a multipart body."""
    match = re.search(rb'name="' + name.encode() + rb'"\r\n\r\n(.*?)\r\n--', request.content, re.DOTALL)
    return match.group(1).decode() if match else None


def form_filename(request: httpx.Request) -> str | None:
    match = re.search(rb'name="file"; filename="([^"]+)"', request.content)
    return match.group(1).decode() if match else None


def error_response(status_code: int, message: str = "Something went wrong") -> httpx.Response:
    return httpx.Response(status_code, json={"status": status_code, "error": "Error", "message": message, "path": "/", "timestamp": "2024-05-01T10:00:00Z"})


class FakeBackend:
    """In-memory stand-in for the REST gateway, mounted through httpx.MockTransport.

    Default routes behave like the real gateway; a route can be replaced per
    test with override(), e.g. to fail or to hold a response until released.
    """

    def __init__(self) -> None:
        self.documents: dict[int, dict] = {}
        self.chat_messages: list[dict] = []
        self.requests: list[httpx.Request] = []
        self._overrides: dict[tuple[str, str], Callable[[httpx.Request], Any]] = {}
        self._next_id = 1

    def add_document(self, **fields: Any) -> dict:
        document = document_json(self._next_id, **fields)
        self.documents[document["id"]] = document
        self._next_id += 1
        return document

    def override(self, method: str, path: str, responder: Callable[[httpx.Request], Any]) -> None:
        self._overrides[(method, path)] = responder

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == API_PREFIX + path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(API_PREFIX)
        responder = self._overrides.get((request.method, path))
        if responder is not None:
            result = responder(request)
            if inspect.isawaitable(result):
                result = await result
            return result
        return self._route(request, path)

    ##########################################
    ############# DEFAULT ROUTES #############
    ##########################################

    def _route(self, request: httpx.Request, path: str) -> httpx.Response:
        if path == "/files":
            if request.method == "GET":
                return httpx.Response(200, json=self._filter(request.url.params.get("search"), request.url.params.get("author"), request.url.params.get("fileType")))
            if request.method == "POST":
                return self._upload(request)
        match = _FILE_DETAIL.match(path)
        if match:
            return self._file(request, int(match.group(1)), download=bool(match.group(2)))
        if path == "/documents/search" and request.method == "POST":
            return self._search(request)
        if path == "/chat-messages":
            return self._chat_messages(request)
        if path == "/chat" and request.method == "POST":
            body = _json(request)
            return httpx.Response(200, json={"message": f"echo: {body['message']}"})
        return error_response(404, f"No route for {request.method} {path}")

    def _filter(self, search: str | None, author: str | None, file_type: str | None) -> list[dict]:
        documents = list(self.documents.values())
        if search and search != "*":
            documents = [d for d in documents if search.lower() in d["filename"].lower()]
        if author:
            documents = [d for d in documents if d["author"] == author]
        if file_type:
            documents = [d for d in documents if d["fileType"] == file_type]
        return documents

    def _upload(self, request: httpx.Request) -> httpx.Response:
        filename, author = form_filename(request), form_field(request, "author")
        if any(d["filename"] == filename and d["author"] == author for d in self.documents.values()):
            return error_response(409, f"File '{filename}' by '{author}' already exists")
        file_type = filename.rsplit(".", 1)[-1] if "." in filename else None
        return httpx.Response(201, json=self.add_document(filename=filename, author=author, file_type=file_type))

    def _file(self, request: httpx.Request, document_id: int, download: bool) -> httpx.Response:
        document = self.documents.get(document_id)
        if document is None:
            return error_response(404, f"File {document_id} not found")
        if download:
            return httpx.Response(200, content=f"content of {document['filename']}".encode())
        if request.method == "GET":
            return httpx.Response(200, json=document)
        if request.method == "PATCH":
            author, filename = form_field(request, "author"), form_filename(request)
            if author:
                document["author"] = author
            if filename:
                document["filename"] = filename
            document["lastEdited"] = "2024-06-01T12:00:00Z"
            return httpx.Response(200, json=document)
        if request.method == "DELETE":
            del self.documents[document_id]
            return httpx.Response(204)
        return error_response(405, "Method not allowed")

    def _search(self, request: httpx.Request) -> httpx.Response:
        body = _json(request)
        documents = self._filter(body.get("query"), body.get("author"), body.get("fileType"))
        results = [
            {
                "documentId": d["id"],
                "filename": d["filename"],
                "author": d["author"],
                "fileType": d["fileType"],
                "size": d["size"],
                "uploadTime": d["uploadTime"],
                "summary": d["summary"],
                "score": 1.0,
            }
            for d in documents
        ]
        return httpx.Response(200, json={"results": results, "totalHits": len(results), "page": body.get("page", 0), "size": body.get("size", 0), "totalPages": 1, "searchTimeMs": 3})

    def _chat_messages(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            body = _json(request)
            record = {"id": len(self.chat_messages) + 1, "role": body["role"], "content": body["content"], "sessionId": body["sessionId"], "timestamp": "2024-05-01T10:00:00Z"}
            self.chat_messages.append(record)
            return httpx.Response(201, json=record)
        session_id = request.url.params.get("sessionId")
        if request.method == "GET":
            return httpx.Response(200, json=[m for m in self.chat_messages if m["sessionId"] == session_id])
        if request.method == "DELETE":
            self.chat_messages = [m for m in self.chat_messages if m["sessionId"] != session_id]
            return httpx.Response(204)
        return error_response(405, "Method not allowed")


def _json(request: httpx.Request) -> dict:
    return json.loads(request.content)


