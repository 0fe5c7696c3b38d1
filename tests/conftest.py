"""
Shared fixtures.

API tests run without PostgreSQL: `get_db` is overridden with a stand-in
database object and the feature repositories are monkeypatched with an
in-memory store that mimics the SQL they would run. The SQL itself is
covered by test_mensajes_sql.py and, against a live database,
test_repositories_pg.py.
"""

from __future__ import annotations

import itertools
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from colmenas import repository as colmenas_repository
from core.config import Settings
from core.db import Database, get_db
from dashboard import repository as dashboard_repository
from main import create_app
from mensajes import repository as mensajes_repository
from nodos import repository as nodos_repository
from usuarios import repository as usuarios_repository


class FakeDatabase:
    """
    Stand-in for core.db.Database; repositories are patched, so it only
    needs to support `transaction()`.
    """

    def __init__(self) -> None:
        self.transactions = 0

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield self


@dataclass
class FakeWhere:
    filters: object


class Store:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.roles = {1: "Administrador", 2: "Apicultor"}
        self.users: dict[int, dict] = {}
        self.hives: dict[int, dict] = {}
        self.locations: dict[int, dict] = {}
        self.node_types: dict[int, str] = {}
        self.nodes: dict[int, dict] = {}
        self.hive_nodes: dict[tuple[int, int], datetime] = {}
        self.messages: dict[int, dict] = {}

    def next_id(self) -> int:
        return next(self._ids)

    def tick(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now

    # seeding helpers

    def add_user(self, nombre: str = "ana", apellido: str = "perez", clave: str = "secreto", rol: int = 2) -> int:
        user_id = self.next_id()
        self.users[user_id] = {"id": user_id, "nombre": nombre, "apellido": apellido, "clave": clave, "rol": rol}
        return user_id

    def add_hive(self, descripcion: str = "Colmena norte", dueno: int | None = None) -> int:
        hive_id = self.next_id()
        self.hives[hive_id] = {"id": hive_id, "descripcion": descripcion, "dueno": dueno}
        return hive_id

    def add_node_type(self, descripcion: str = "Sensor") -> int:
        tipo = self.next_id()
        self.node_types[tipo] = descripcion
        return tipo

    def add_node(self, descripcion: str = "Nodo balanza", tipo: int | None = None) -> int:
        node_id = self.next_id()
        self.nodes[node_id] = {"id": node_id, "descripcion": descripcion, "tipo": tipo}
        return node_id

    def add_message(self, nodo_id: int, topico: str = "temp", payload: str = "21.5", fecha: datetime | None = None) -> int:
        message_id = self.next_id()
        self.messages[message_id] = {
            "id": message_id,
            "nodo_id": nodo_id,
            "topico": topico,
            "payload": payload,
            "fecha": fecha or self.tick(),
        }
        return message_id

    # usuarios

    def _user_row(self, user: dict) -> dict:
        return {
            "id": user["id"],
            "nombre": user["nombre"],
            "apellido": user["apellido"],
            "rol": user["rol"],
            "rol_nombre": self.roles.get(user["rol"]),
        }

    async def list_users(self, db):
        return [self._user_row(u) for u in sorted(self.users.values(), key=lambda u: u["id"])]

    async def get_user(self, db, user_id):
        user = self.users.get(user_id)
        return self._user_row(user) if user else None

    async def get_user_for_login(self, db, nombre):
        for user in sorted(self.users.values(), key=lambda u: u["id"]):
            if user["nombre"] == nombre:
                return {**self._user_row(user), "clave": user["clave"]}
        return None

    async def user_exists(self, db, user_id):
        return user_id in self.users

    async def role_exists(self, db, rol):
        return rol in self.roles

    async def create_user(self, db, *, nombre, apellido, clave_hash, rol):
        return self.add_user(nombre=nombre, apellido=apellido, clave=clave_hash, rol=rol)

    async def update_user(self, db, user_id, *, nombre, apellido, rol, clave_hash=None):
        user = self.users.get(user_id)
        if user is None:
            return 0
        user.update(nombre=nombre, apellido=apellido, rol=rol)
        if clave_hash is not None:
            user["clave"] = clave_hash
        return 1

    async def set_user_credential(self, db, user_id, *, clave_hash):
        self.users[user_id]["clave"] = clave_hash

    async def count_owned_hives(self, db, user_id):
        return sum(1 for h in self.hives.values() if h["dueno"] == user_id)

    async def delete_user(self, db, user_id):
        return 1 if self.users.pop(user_id, None) else 0

    async def list_roles(self, db):
        return [{"id": k, "descripcion": v} for k, v in sorted(self.roles.items())]

    async def list_users_for_select(self, db):
        users = sorted(self.users.values(), key=lambda u: u["nombre"])
        return [{"id": u["id"], "nombre": u["nombre"], "apellido": u["apellido"]} for u in users]

    # colmenas

    def _hive_row(self, hive: dict) -> dict:
        owner = self.users.get(hive["dueno"]) or {}
        return {
            "id": hive["id"],
            "descripcion": hive["descripcion"],
            "dueno": hive["dueno"],
            "dueno_nombre": owner.get("nombre"),
            "dueno_apellido": owner.get("apellido"),
        }

    async def list_hives(self, db):
        rows = []
        for hive in sorted(self.hives.values(), key=lambda h: h["id"]):
            loc = self.locations.get(hive["id"]) or {}
            rows.append(
                {
                    **self._hive_row(hive),
                    "latitud": loc.get("latitud"),
                    "longitud": loc.get("longitud"),
                    "comuna": loc.get("comuna"),
                    "ubicacion_descripcion": loc.get("descripcion"),
                }
            )
        return rows

    async def get_hive(self, db, hive_id):
        hive = self.hives.get(hive_id)
        return self._hive_row(hive) if hive else None

    async def hive_exists(self, db, hive_id):
        return hive_id in self.hives

    async def get_latest_location(self, db, hive_id):
        loc = self.locations.get(hive_id)
        if loc is None:
            return None
        return {
            "latitud": loc["latitud"],
            "longitud": loc["longitud"],
            "ubicacion_descripcion": loc["descripcion"],
            "comuna": loc["comuna"],
        }

    async def list_locations(self, db, hive_id):
        loc = self.locations.get(hive_id)
        return [dict(loc)] if loc else []

    async def list_hive_nodes(self, db, hive_id):
        rows = []
        for (h, n), fecha in sorted(self.hive_nodes.items(), key=lambda kv: kv[1], reverse=True):
            if h != hive_id:
                continue
            node = self.nodes[n]
            rows.append(
                {
                    "id": n,
                    "descripcion": node["descripcion"],
                    "tipo": node["tipo"],
                    "tipo_descripcion": self.node_types.get(node["tipo"]),
                    "fecha_asociacion": fecha,
                }
            )
        return rows

    async def create_hive(self, db, *, descripcion, dueno):
        return self.add_hive(descripcion=descripcion, dueno=dueno)

    async def update_hive(self, db, hive_id, *, descripcion, dueno):
        hive = self.hives.get(hive_id)
        if hive is None:
            return 0
        hive.update(descripcion=descripcion, dueno=dueno)
        return 1

    async def delete_hive_nodes(self, db, hive_id):
        keys = [k for k in self.hive_nodes if k[0] == hive_id]
        for k in keys:
            del self.hive_nodes[k]
        return len(keys)

    async def delete_hive_locations(self, db, hive_id):
        return 1 if self.locations.pop(hive_id, None) else 0

    async def delete_hive(self, db, hive_id):
        return 1 if self.hives.pop(hive_id, None) else 0

    async def upsert_location(self, db, hive_id, *, latitud, longitud, descripcion, comuna):
        existing = self.locations.get(hive_id)
        row = {
            "id": existing["id"] if existing else self.next_id(),
            "colmena_id": hive_id,
            "latitud": latitud,
            "longitud": longitud,
            "descripcion": descripcion,
            "comuna": comuna,
            "fecha": self.tick(),
        }
        self.locations[hive_id] = row
        return {**row, "inserted": existing is None}

    async def list_active_hives(self, db):
        return [{"id": h, "nombre": f"Colmena #{h}"} for h in sorted(self.hives)]

    async def associate_node(self, db, hive_id, nodo_id):
        if (hive_id, nodo_id) in self.hive_nodes:
            return False
        self.hive_nodes[(hive_id, nodo_id)] = self.tick()
        return True

    async def dissociate_node(self, db, hive_id, nodo_id):
        return 1 if self.hive_nodes.pop((hive_id, nodo_id), None) else 0

    # nodos

    def _node_row(self, node: dict) -> dict:
        return {
            "id": node["id"],
            "descripcion": node["descripcion"],
            "tipo": node["tipo"],
            "tipo_descripcion": self.node_types.get(node["tipo"]),
            "latitud": None,
            "longitud": None,
            "comuna": None,
        }

    async def list_nodes(self, db):
        return [self._node_row(n) for n in sorted(self.nodes.values(), key=lambda n: n["id"])]

    async def get_node(self, db, node_id):
        node = self.nodes.get(node_id)
        return self._node_row(node) if node else None

    async def node_exists(self, db, node_id):
        return node_id in self.nodes

    async def create_node(self, db, *, descripcion, tipo):
        return self.add_node(descripcion=descripcion, tipo=tipo)

    async def update_node(self, db, node_id, *, descripcion, tipo):
        node = self.nodes.get(node_id)
        if node is None:
            return 0
        node.update(descripcion=descripcion, tipo=tipo)
        return 1

    async def count_node_messages(self, db, node_id):
        return sum(1 for m in self.messages.values() if m["nodo_id"] == node_id)

    async def delete_node_links(self, db, node_id):
        keys = [k for k in self.hive_nodes if k[1] == node_id]
        for k in keys:
            del self.hive_nodes[k]
        return len(keys)

    async def delete_node_locations(self, db, node_id):
        return 0

    async def delete_node(self, db, node_id):
        return 1 if self.nodes.pop(node_id, None) else 0

    async def list_node_types(self, db):
        return [{"tipo": k, "descripcion": v} for k, v in sorted(self.node_types.items())]

    async def get_node_type(self, db, tipo):
        if tipo not in self.node_types:
            return None
        return {"tipo": tipo, "descripcion": self.node_types[tipo]}

    async def node_type_exists(self, db, tipo):
        return tipo in self.node_types

    async def create_node_type(self, db, *, descripcion):
        return self.add_node_type(descripcion)

    async def update_node_type(self, db, tipo, *, descripcion):
        if tipo not in self.node_types:
            return 0
        self.node_types[tipo] = descripcion
        return 1

    async def count_nodes_of_type(self, db, tipo):
        return sum(1 for n in self.nodes.values() if n["tipo"] == tipo)

    async def delete_node_type(self, db, tipo):
        return 1 if self.node_types.pop(tipo, None) else 0

    # mensajes

    def _message_row(self, msg: dict) -> dict:
        node = self.nodes.get(msg["nodo_id"]) or {}
        return {**msg, "nodo_descripcion": node.get("descripcion")}

    def _filtered_messages(self, where: FakeWhere) -> list[dict]:
        f = where.filters
        rows = []
        for msg in self.messages.values():
            if f.nodo_id is not None and msg["nodo_id"] != f.nodo_id:
                continue
            if f.topico and f.topico.lower() not in msg["topico"].lower():
                continue
            if f.fecha_inicio and msg["fecha"].date() < f.fecha_inicio:
                continue
            if f.fecha_fin and msg["fecha"].date() > f.fecha_fin:
                continue
            rows.append(msg)
        return sorted(rows, key=lambda m: (m["fecha"], m["id"]), reverse=True)

    def message_predicate(self, filters):
        return FakeWhere(filters)

    async def list_messages(self, db, where, page):
        rows = self._filtered_messages(where)[page.offset : page.offset + page.limit]
        return [self._message_row(m) for m in rows]

    async def count_messages(self, db, where):
        return len(self._filtered_messages(where))

    async def list_recent_messages(self, db, *, hours):
        cutoff = self.now - timedelta(hours=hours)
        rows = [m for m in self.messages.values() if m["fecha"] >= cutoff]
        rows.sort(key=lambda m: m["fecha"], reverse=True)
        return [self._message_row(m) for m in rows[:100]]

    async def get_message(self, db, message_id):
        msg = self.messages.get(message_id)
        return self._message_row(msg) if msg else None

    async def message_exists(self, db, message_id):
        return message_id in self.messages

    async def create_message(self, db, *, nodo_id, topico, payload):
        return self.add_message(nodo_id, topico=topico, payload=payload)

    async def update_message(self, db, message_id, *, nodo_id, topico, payload):
        msg = self.messages.get(message_id)
        if msg is None:
            return 0
        msg.update(nodo_id=nodo_id, topico=topico, payload=payload)
        return 1

    async def delete_message(self, db, message_id):
        return 1 if self.messages.pop(message_id, None) else 0

    # dashboard

    async def get_stats(self, db):
        today = self.now.date()
        return {
            "usuarios": len(self.users),
            "colmenas": len(self.hives),
            "mensajes_hoy": sum(1 for m in self.messages.values() if m["fecha"].date() == today),
        }


_PATCHED = {
    usuarios_repository: (
        "list_users",
        "get_user",
        "get_user_for_login",
        "user_exists",
        "role_exists",
        "create_user",
        "update_user",
        "set_user_credential",
        "count_owned_hives",
        "delete_user",
        "list_roles",
        "list_users_for_select",
    ),
    colmenas_repository: (
        "list_hives",
        "get_hive",
        "hive_exists",
        "get_latest_location",
        "list_locations",
        "list_hive_nodes",
        "create_hive",
        "update_hive",
        "delete_hive_nodes",
        "delete_hive_locations",
        "delete_hive",
        "upsert_location",
        "list_active_hives",
        "associate_node",
        "dissociate_node",
    ),
    nodos_repository: (
        "list_nodes",
        "get_node",
        "node_exists",
        "create_node",
        "update_node",
        "count_node_messages",
        "delete_node_links",
        "delete_node_locations",
        "delete_node",
        "list_node_types",
        "get_node_type",
        "node_type_exists",
        "create_node_type",
        "update_node_type",
        "count_nodes_of_type",
        "delete_node_type",
    ),
    mensajes_repository: (
        "message_predicate",
        "list_messages",
        "count_messages",
        "list_recent_messages",
        "get_message",
        "message_exists",
        "create_message",
        "update_message",
        "delete_message",
    ),
    dashboard_repository: ("get_stats",),
}


@pytest.fixture
def store(monkeypatch) -> Store:
    s = Store()
    for module, names in _PATCHED.items():
        for name in names:
            monkeypatch.setattr(module, name, getattr(s, name))
    return s


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="postgresql://test@localhost/test", app_env="development")


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def unreachable_database(monkeypatch) -> list:
    """
    Make every pool creation fail; returns the list of attempts.
    """
    attempts: list = []

    async def refuse(settings):
        attempts.append(settings)
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(Database, "connect", refuse)
    return attempts


@pytest.fixture
def make_client(store, fake_db):
    def _make(settings: Settings) -> TestClient:
        app = create_app(settings)
        app.dependency_overrides[get_db] = lambda: fake_db
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client, settings) -> TestClient:
    return make_client(settings)
