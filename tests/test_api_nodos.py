"""
Tests for /api/nodos and /api/nodo-tipos.
"""


class TestNodeTypes:
    """Tests for node type CRUD."""

    def test_create_list_update(self, client, store) -> None:
        created = client.post("/api/nodo-tipos", json={"descripcion": " Sensor "})
        assert created.status_code == 201
        tipo = created.json()["tipo"]
        assert created.json()["descripcion"] == "Sensor"

        client.put(f"/api/nodo-tipos/{tipo}", json={"descripcion": "Balanza"})

        assert client.get("/api/nodo-tipos").json() == [{"id": tipo, "tipo": tipo, "descripcion": "Balanza"}]

    def test_missing_description(self, client, store) -> None:
        resp = client.post("/api/nodo-tipos", json={})
        assert resp.status_code == 400
        assert resp.json()["campos"] == ["descripcion"]

    def test_update_missing_type(self, client, store) -> None:
        assert client.put("/api/nodo-tipos/999", json={"descripcion": "x"}).status_code == 404

    def test_delete_missing_type(self, client, store) -> None:
        assert client.delete("/api/nodo-tipos/999").status_code == 404


class TestNodes:
    """Tests for node CRUD and dependent checks."""

    def test_create_requires_existing_type(self, client, store) -> None:
        resp = client.post("/api/nodos", json={"descripcion": "Balanza", "tipo": 999})
        assert resp.status_code == 400
        assert resp.json()["error"] == "El tipo de nodo especificado no existe"

    def test_list_and_get(self, client, store) -> None:
        tipo = store.add_node_type("Sensor")
        node_id = store.add_node(descripcion="Balanza", tipo=tipo)

        listed = client.get("/api/nodos").json()
        assert listed[0]["identificador"] == f"Nodo {node_id}"
        assert listed[0]["tipo"] == "Sensor"
        assert listed[0]["activo"] is True

        detail = client.get(f"/api/nodos/{node_id}").json()
        assert detail["tipo_id"] == tipo

    def test_update(self, client, store) -> None:
        tipo = store.add_node_type()
        other = store.add_node_type("Camara")
        node_id = store.add_node(tipo=tipo)

        resp = client.put(f"/api/nodos/{node_id}", json={"descripcion": "Entrada", "tipo": other})

        assert resp.status_code == 200
        assert store.nodes[node_id]["tipo"] == other

    def test_delete_blocked_by_messages(self, client, store) -> None:
        node_id = store.add_node(tipo=store.add_node_type())
        store.add_message(node_id)

        resp = client.delete(f"/api/nodos/{node_id}")

        assert resp.status_code == 400
        assert resp.json()["dependientes"] == 1
        assert node_id in store.nodes

    def test_delete_removes_associations(self, client, store) -> None:
        hive_id = store.add_hive()
        node_id = store.add_node(tipo=store.add_node_type())
        client.post(f"/api/colmenas/{hive_id}/nodos", json={"nodo_id": node_id})

        resp = client.delete(f"/api/nodos/{node_id}")

        assert resp.status_code == 200
        assert store.hive_nodes == {}


class TestNodeTypeLifecycle:
    def test_type_in_use_cannot_be_deleted_until_node_is_gone(self, client, store) -> None:
        tipo = client.post("/api/nodo-tipos", json={"descripcion": "Sensor"}).json()["tipo"]
        node_id = client.post("/api/nodos", json={"descripcion": "Balanza", "tipo": tipo}).json()["id"]

        blocked = client.delete(f"/api/nodo-tipos/{tipo}")
        assert blocked.status_code == 400
        assert blocked.json()["error"] == (
            "No se puede eliminar el tipo de nodo porque hay 1 nodo(s) que lo utilizan."
        )
        assert blocked.json()["dependientes"] == 1

        assert client.delete(f"/api/nodos/{node_id}").status_code == 200
        deleted = client.delete(f"/api/nodo-tipos/{tipo}")
        assert deleted.status_code == 200
        assert deleted.json() == {"message": 'Tipo de nodo "Sensor" eliminado correctamente', "id": tipo}
