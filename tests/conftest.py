from __future__ import annotations

import json
from typing import Any

import pytest
import requests

from vms.models.training import TrainingModule
from vms.services.api_client import TrainingAPI
from vms.services.local_store import LocalStore


def make_response(status_code: int = 200, payload: Any = None, raw: bytes | None = None) -> requests.Response:
    """Build a real requests.Response with the given JSON payload."""
    response = requests.Response()
    response.status_code = status_code
    if raw is not None:
        response._content = raw  # noqa: SLF001
    elif payload is not None:
        response._content = json.dumps(payload).encode("utf-8")  # noqa: SLF001
    else:
        response._content = b""  # noqa: SLF001
    response.headers["Content-Type"] = "application/json"
    return response


class FakeSession:
    """Records requests and replays queued responses keyed by (method, path)."""

    def __init__(self, base_url: str = "http://backend.test/api/v1") -> None:
        self.base_url = base_url
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.calls: list[dict[str, Any]] = []

    def add(self, method: str, path: str, *responses: Any) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        path = url[len(self.base_url):]
        self.calls.append({"method": method, "path": path, **kwargs})
        queue = self.routes.get((method, path))
        if not queue:
            return make_response(404, {"message": f"no route for {method} {path}"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(**kwargs)
        return item

    def calls_to(self, method: str, path: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method and call["path"] == path]


def module_payload(
    module_id: str,
    title: str,
    answer_key: list[int] | None = None,
    required_score: int = 70,
    videos: list[str] | None = None,
    books: list[str] | None = None,
    is_active: bool = True,
) -> dict[str, Any]:
    answer_key = answer_key or []
    return {
        "_id": module_id,
        "title": title,
        "description": f"{title} description",
        "type": "safety",
        "videos": [{"name": name, "url": f"/videos/{name}.mp4"} for name in (videos or [])],
        "books": [{"name": name, "url": f"/books/{name}.pdf"} for name in (books or [])],
        "questions": [
            {"question": f"Question {idx + 1}", "options": ["a", "b", "c", "d"], "correctAnswer": answer}
            for idx, answer in enumerate(answer_key)
        ],
        "requiredScore": required_score,
        "isActive": is_active,
    }


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def api(session: FakeSession) -> TrainingAPI:
    return TrainingAPI(base_url=session.base_url, token="test-token", timeout=5, session=session)


@pytest.fixture
def store() -> LocalStore:
    store = LocalStore()
    store.contractor_id = "c-42"
    return store


@pytest.fixture
def catalog() -> list[TrainingModule]:
    return [
        TrainingModule.model_validate(
            module_payload("t1", "Site Safety", [1, 0, 2, 3], 70, videos=["intro"], books=["handbook"])
        ),
        TrainingModule.model_validate(module_payload("t2", "Fire Drill", [0, 1], 50, books=["fire-manual"])),
        TrainingModule.model_validate(module_payload("t3", "Equipment", [2], 100)),
    ]
