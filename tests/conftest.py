"""
Pytest configuration and fixtures for testing.

HTTP never leaves the process: every ApiClient is built on an
``httpx.MockTransport`` routed into ``FakeHekateServer``, an in-memory
stand-in for the Hekate API that keeps enough state for the client's
reconciling refetches to observe the effect of each mutation.
"""
import asyncio
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from tenacity import wait_none

from hekate.api import (
    AuthApi,
    DreamImagesApi,
    DreamsApi,
    PrivateRoutinesApi,
    ReadingApi,
    RoutineBlocksApi,
    UserApi,
    VisualizationConfigApi,
)
from hekate.core.auth import TokenStore
from hekate.domain.auth_operations import AuthSession
from hekate.domain.dream_operations import DreamOperations
from hekate.domain.optimistic import OptimisticUpdater
from hekate.domain.reading_operations import ReadingOperations
from hekate.domain.routine_block_operations import RoutineBlockOperations
from hekate.domain.routine_day_operations import RoutineDayOperations
from hekate.services.api_client import ApiClient
from hekate.services.notifications import Notifier
from hekate.services.query_cache import QueryCache

TEST_TOKEN = "test-token-abc123"
TEST_EMAIL = "ana@hekate.test"
TEST_PASSWORD = "Secreta!1"
VALID_RESET_CODE = "12345"
NOW = "2025-03-03T08:00:00Z"


# ---------------------------------------------------------------------------
# Fake Hekate API
# ---------------------------------------------------------------------------


def _json(status: int = 200, data: Any = None) -> httpx.Response:
    if data is None:
        return httpx.Response(status)
    return httpx.Response(status, json=data)


def _error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": message})


class FakeHekateServer:
    """
    Stateful in-memory Hekate API.

    ``fail`` makes matching routes answer with an error; ``hold`` makes them
    wait on an event, so tests can observe the optimistic state mid-request.
    """

    def __init__(self):
        self.calls: List[Tuple[str, str, Any]] = []
        self.failures: List[Tuple[str, re.Pattern, int, str]] = []
        self.holds: List[Tuple[str, re.Pattern, asyncio.Event]] = []
        self.today = "MONDAY"
        self._ids = 0

        self.user = {"id": "user-1", "name": "Ana", "email": TEST_EMAIL, "role": "USER"}
        self.dreams: Dict[str, dict] = {}
        self.visualizations: List[dict] = []
        self.blocks: Dict[str, dict] = {}
        self.days = [
            {"id": "day-mon", "routineId": "routine-1", "weekDay": "MONDAY"},
            {"id": "day-tue", "routineId": "routine-1", "weekDay": "TUESDAY"},
            {"id": "day-wed", "routineId": "routine-1", "weekDay": "WEDNESDAY"},
        ]
        self.visualization_config = {"timesPerDay": 2, "breakpoints": ["12:00"]}

        self.add_dream("dream-1", "Viajar a Japón")
        self.add_dream("dream-2", "Correr un maratón")
        self.add_block("block-a", "day-mon", "Meditar", order=0)
        self.add_block("block-b", "day-mon", "Leer", order=1)
        self.add_block("block-c", "day-mon", "Entrenar", order=2)
        self.add_block("block-t", "day-tue", "Escribir", order=0, status="DONE")

    # ─────────────────────────────────────────────────────────────
    # Test controls
    # ─────────────────────────────────────────────────────────────

    def next_id(self, prefix: str) -> str:
        self._ids += 1
        return f"{prefix}-{self._ids}"

    def add_dream(self, dream_id: str, title: str, **fields) -> dict:
        dream = {
            "id": dream_id,
            "title": title,
            "text": f"Texto de {title}",
            "isArchived": False,
            "createdAt": NOW,
            "updatedAt": NOW,
            "visualizations": [],
            "images": [],
            "_count": {"visualizations": 0, "images": 0},
            "todayVisualizations": 0,
            "slotVisualized": False,
            "canVisualize": True,
        }
        dream.update(fields)
        self.dreams[dream_id] = dream
        return dream

    def add_block(self, block_id: str, day_id: str, title: str, order: int, status: Optional[str] = None) -> dict:
        day = next(day for day in self.days if day["id"] == day_id)
        block = {
            "id": block_id,
            "routineDayId": day_id,
            "weekDay": day["weekDay"],
            "title": title,
            "description": "",
            "color": "#A78BFA",
            "order": order,
            "status": status,
        }
        self.blocks[block_id] = block
        return block

    def fail(self, method: str, path: str, status: int = 500, message: str = "Internal server error") -> None:
        self.failures.append((method, re.compile(path), status, message))

    def hold(self, method: str, path: str) -> asyncio.Event:
        release = asyncio.Event()
        self.holds.append((method, re.compile(path), release))
        return release

    def calls_to(self, method: str, path: str) -> List[Tuple[str, str, Any]]:
        pattern = re.compile(path)
        return [call for call in self.calls if call[0] == method and pattern.fullmatch(call[1])]

    def day_blocks(self, day_id: str) -> List[dict]:
        return sorted(
            (block for block in self.blocks.values() if block["routineDayId"] == day_id),
            key=lambda block: block["order"],
        )

    # ─────────────────────────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────────────────────────

    async def handle(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        body = self._body(request)
        self.calls.append((method, path, body))

        for hold_method, pattern, release in self.holds:
            if hold_method == method and pattern.fullmatch(path):
                await release.wait()
        for fail_method, pattern, status, message in self.failures:
            if fail_method == method and pattern.fullmatch(path):
                return _error(status, message)

        if path.startswith("/auth/") or path.startswith("/user/"):
            return self._auth(method, path, body, request)
        if request.headers.get("Authorization") != f"Bearer {TEST_TOKEN}":
            return _error(401, "No autorizado")

        for route_method, pattern, handler in self._routes():
            match = re.fullmatch(pattern, path)
            if route_method == method and match:
                return handler(request, body, *match.groups())
        return _error(404, f"No route for {method} {path}")

    @staticmethod
    def _body(request: httpx.Request) -> Any:
        content_type = request.headers.get("Content-Type", "")
        if content_type.startswith("application/json") and request.content:
            return json.loads(request.content)
        if content_type.startswith("multipart/form-data"):
            return {"multipart": request.content}
        return None

    def _routes(self):
        return [
            ("GET", r"/dreams", self._list_dreams),
            ("POST", r"/dreams", self._create_dream),
            ("GET", r"/dreams/visualizations/history", self._all_history),
            ("PATCH", r"/dreams/([^/]+)", self._update_dream),
            ("DELETE", r"/dreams/([^/]+)", self._delete_dream),
            ("POST", r"/dreams/([^/]+)/archive", self._archive_dream),
            ("POST", r"/dreams/([^/]+)/visualize", self._visualize_dream),
            ("GET", r"/dreams/([^/]+)/history", self._dream_history),
            ("GET", r"/dream-images/([^/]+)", self._dream_images),
            ("POST", r"/dream-images/([^/]+)/multiple", self._upload_multiple),
            ("POST", r"/dream-images/([^/]+)", self._upload_one),
            ("DELETE", r"/dream-images/([^/]+)", lambda request, body, image_id: _json(200, {})),
            ("GET", r"/private-routines", self._routine),
            ("GET", r"/private-routines/today", self._today_routine),
            ("PUT", r"/private-routines/blocks/([^/]+)/status", self._block_status),
            ("POST", r"/private-routines/blocks/([^/]+)", self._create_block),
            ("PUT", r"/private-routines/blocks/([^/]+)", self._update_block),
            ("DELETE", r"/private-routines/blocks/([^/]+)", self._delete_block),
            ("PUT", r"/private-routines/days/([^/]+)/reorder", self._reorder),
            ("GET", r"/daily-reads", self._daily_read),
            ("GET", r"/visualization-config", lambda request, body: _json(200, self.visualization_config)),
            ("POST", r"/visualization-config", self._save_config),
        ]

    # ─────────────────────────────────────────────────────────────
    # Auth and profile
    # ─────────────────────────────────────────────────────────────

    def _auth(self, method: str, path: str, body: Any, request: httpx.Request) -> httpx.Response:
        session = {"user": self.user, "token": TEST_TOKEN}
        if (method, path) == ("POST", "/auth/login"):
            if body == {"email": TEST_EMAIL, "password": TEST_PASSWORD}:
                return _json(200, session)
            return _error(401, "Credenciales inválidas")
        if (method, path) == ("POST", "/auth/register"):
            if body["email"] == TEST_EMAIL:
                return _error(409, "El correo ya está registrado")
            self.user = {"id": "user-2", "name": body["name"], "email": body["email"], "role": "USER"}
            return _json(201, {"user": self.user, "token": TEST_TOKEN})
        if (method, path) == ("POST", "/auth/google"):
            return _json(200, session)
        if (method, path) == ("POST", "/auth/forgot-password"):
            return _json(200, {"message": "Código enviado"})
        if (method, path) == ("POST", "/auth/verify-reset-code"):
            valid = body["code"] == VALID_RESET_CODE
            return _json(200, {"valid": valid, "message": "" if valid else "Código incorrecto"})
        if (method, path) == ("POST", "/auth/reset-password"):
            return _json(204)

        if request.headers.get("Authorization") != f"Bearer {TEST_TOKEN}":
            return _error(401, "No autorizado")
        if method == "GET" and path in ("/auth/profile", "/user/profile"):
            return _json(200, self.user)
        if (method, path) == ("PATCH", "/user/profile"):
            self.user = {**self.user, "name": body["name"]}
            return _json(200, self.user)
        return _error(404, f"No route for {method} {path}")

    # ─────────────────────────────────────────────────────────────
    # Dreams
    # ─────────────────────────────────────────────────────────────

    def _list_dreams(self, request, body):
        archived = request.url.params.get("archived") == "true"
        return _json(200, [dream for dream in self.dreams.values() if dream["isArchived"] == archived])

    def _create_dream(self, request, body):
        dream_id = self.next_id("dream")
        if "multipart" in (body or {}):
            dream = self.add_dream(dream_id, "Sueño con imágenes")
            dream["_count"]["images"] = 1
        else:
            dream = self.add_dream(dream_id, body["title"], text=body["text"])
        return _json(201, dream)

    def _update_dream(self, request, body, dream_id):
        if dream_id not in self.dreams:
            return _error(404, "Sueño no encontrado")
        if body and "multipart" not in body:
            self.dreams[dream_id].update({k: v for k, v in body.items() if k in ("title", "text")})
        return _json(200, self.dreams[dream_id])

    def _delete_dream(self, request, body, dream_id):
        if self.dreams.pop(dream_id, None) is None:
            return _error(404, "Sueño no encontrado")
        return _json(200, {"success": True})

    def _archive_dream(self, request, body, dream_id):
        if dream_id not in self.dreams:
            return _error(404, "Sueño no encontrado")
        self.dreams[dream_id]["isArchived"] = True
        return _json(200, self.dreams[dream_id])

    def _visualize_dream(self, request, body, dream_id):
        dream = self.dreams.get(dream_id)
        if dream is None:
            return _error(404, "Sueño no encontrado")
        if dream["slotVisualized"]:
            return _error(400, "Ya visualizaste este sueño en este horario")
        visualization = {"id": self.next_id("viz"), "dreamId": dream_id, "createdAt": NOW}
        self.visualizations.append(visualization)
        dream["visualizations"].append(visualization)
        dream["_count"]["visualizations"] += 1
        dream.update(todayVisualizations=dream["todayVisualizations"] + 1, slotVisualized=True, canVisualize=False)
        return _json(201, visualization)

    def _dream_history(self, request, body, dream_id):
        return _json(200, [v for v in self.visualizations if v["dreamId"] == dream_id])

    def _all_history(self, request, body):
        return _json(200, self.visualizations)

    def _dream_images(self, request, body, dream_id):
        images = self.dreams.get(dream_id, {}).get("images", [])
        return _json(200, {"images": images})

    def _upload_one(self, request, body, dream_id):
        return _json(201, {"success": True, "filePath": f"dreams/{dream_id}/{self.next_id('img')}.jpg"})

    def _upload_multiple(self, request, body, dream_id):
        paths = [f"dreams/{dream_id}/{self.next_id('img')}.jpg" for _ in range(2)]
        return _json(201, {"success": True, "count": len(paths), "filePaths": paths})

    # ─────────────────────────────────────────────────────────────
    # Routines
    # ─────────────────────────────────────────────────────────────

    def _routine_json(self, week_days=None) -> dict:
        days = [
            {**day, "blocks": self.day_blocks(day["id"])}
            for day in self.days
            if week_days is None or day["weekDay"] in week_days
        ]
        return {
            "id": "routine-1",
            "userId": self.user["id"],
            "createdAt": NOW,
            "updatedAt": NOW,
            "days": days,
        }

    def _routine(self, request, body):
        return _json(200, self._routine_json())

    def _today_routine(self, request, body):
        return _json(200, self._routine_json(week_days={self.today}))

    def _block_status(self, request, body, block_id):
        if block_id not in self.blocks:
            return _error(404, "Bloque no encontrado")
        self.blocks[block_id]["status"] = body["status"]
        return _json(200, self.blocks[block_id])

    def _create_block(self, request, body, day_id):
        if not any(day["id"] == day_id for day in self.days):
            return _error(404, "Día no encontrado")
        block = self.add_block(self.next_id("block"), day_id, body["title"], order=body["order"])
        block.update(description=body.get("description", ""), color=body.get("color", ""))
        if body.get("status") not in (None, "NULL"):
            block["status"] = body["status"]
        return _json(201, block)

    def _update_block(self, request, body, block_id):
        if block_id not in self.blocks:
            return _error(404, "Bloque no encontrado")
        self.blocks[block_id].update(body)
        return _json(200, self.blocks[block_id])

    def _delete_block(self, request, body, block_id):
        if self.blocks.pop(block_id, None) is None:
            return _error(404, "Bloque no encontrado")
        return _json(200, {"success": True})

    def _reorder(self, request, body, day_id):
        for order, block_id in enumerate(body["blockIds"]):
            self.blocks[block_id]["order"] = order
        return _json(200, {"success": True})

    # ─────────────────────────────────────────────────────────────
    # Reading
    # ─────────────────────────────────────────────────────────────

    def _daily_read(self, request, body):
        today = datetime.now(timezone.utc)
        return _json(200, {
            "id": "read-1",
            "title": "El poder de la visualización",
            "content": "Cierra los ojos...",
            "timeMinutes": 5,
            "day": today.day,
            "month": today.month,
            "year": today.year,
        })

    def _save_config(self, request, body):
        self.visualization_config = body
        return _json(200, body)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def server() -> FakeHekateServer:
    return FakeHekateServer()


@pytest.fixture
def token_store(tmp_path) -> TokenStore:
    """Token store in a temp dir, already holding a valid session token."""
    store = TokenStore(tmp_path / "auth.json")
    store.set_token(TEST_TOKEN)
    return store


@pytest_asyncio.fixture
async def api_client(server, token_store):
    client = ApiClient(
        base_url="http://hekate.test",
        token_store=token_store,
        transport=httpx.MockTransport(server.handle),
    )
    yield client
    await client.close()


@pytest.fixture
def cache() -> QueryCache:
    """Cache with retries enabled but no backoff delay."""
    return QueryCache(stale_seconds=300, retry_attempts=2, retry_wait=wait_none())


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def updater(cache, notifier) -> OptimisticUpdater:
    return OptimisticUpdater(cache, notifier)


@pytest.fixture
def dream_ops(api_client, updater) -> DreamOperations:
    return DreamOperations(DreamsApi(api_client), DreamImagesApi(api_client), updater)


@pytest.fixture
def block_ops(api_client, updater) -> RoutineBlockOperations:
    return RoutineBlockOperations(PrivateRoutinesApi(api_client), RoutineBlocksApi(api_client), updater)


@pytest.fixture
def day_ops(api_client, updater) -> RoutineDayOperations:
    return RoutineDayOperations(PrivateRoutinesApi(api_client), RoutineBlocksApi(api_client), updater)


@pytest.fixture
def auth_session(api_client, token_store, updater) -> AuthSession:
    return AuthSession(AuthApi(api_client), UserApi(api_client), token_store, updater)


@pytest.fixture
def reading_ops(api_client, updater) -> ReadingOperations:
    return ReadingOperations(ReadingApi(api_client), VisualizationConfigApi(api_client), updater)


@pytest.fixture
def credentials() -> dict:
    """Login input the fake server accepts, plus the reset code it considers valid."""
    return {
        "email": TEST_EMAIL,
        "password": TEST_PASSWORD,
        "token": TEST_TOKEN,
        "reset_code": VALID_RESET_CODE,
    }
