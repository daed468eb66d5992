import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sacrud import CrudController, ModelRegistry
from sacrud.adapters.fastapi import FastAPIAdapter, install_crud_exception_handlers


@pytest.fixture
def client():
    metadata = MetaData()
    notes = Table(
        "notes",
        metadata,
        Column("note_id", String, primary_key=True),
        Column("title", String, nullable=False),
        Column("rank", Integer, nullable=True),
        Column("inserted_at", String, nullable=False),
    )
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    metadata.create_all(engine)

    adapter = FastAPIAdapter(session_factory=sessionmaker(engine))
    crud = CrudController(ModelRegistry.from_metadata(metadata), adapter)
    app = FastAPI()
    install_crud_exception_handlers(app)

    def route(path, handler, method):
        app.add_api_route(path, adapter.endpoint(handler), methods=[method])

    route("/notes", crud.collection_response(crud.index("notes", query=lambda c, statement: statement.order_by(notes.c.rank))), "GET")
    route(
        "/notes",
        crud.response(
            crud.create("notes", attributes={"note_id": "uuid", "title": "payload", "rank": "payload", "inserted_at": "inserted_at"}),
            status_code=201,
        ),
        "POST",
    )
    route("/notes/{note_id}", crud.response(crud.show("notes"), pick=["note_id", "title"]), "GET")
    route("/notes/{note_id}", crud.response(crud.destroy("notes")), "DELETE")

    with TestClient(app) as client:
        yield client
    engine.dispose()


def test_notes(client):
    first = client.post("/notes", json={"title": "first", "rank": 2})
    assert first.status_code == 201
    second = client.post("/notes", json={"title": "second", "rank": 1})
    note = first.json()["data"]
    assert note["inserted_at"].endswith("Z")

    response = client.get("/notes")
    assert [item["title"] for item in response.json()["data"]] == ["second", "first"]

    assert client.get(f"/notes/{note['note_id']}").json() == {"data": {"note_id": note["note_id"], "title": "first"}}
    assert client.delete(f"/notes/{second.json()['data']['note_id']}").json() == {"data": {}}
    assert len(client.get("/notes").json()["data"]) == 1


def test_errors(client):
    response = client.get("/notes/missing")
    assert response.status_code == 404
    assert response.json()["errors"][0]["code"] == 404

    response = client.post("/notes", json={"title": "no rank"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["details"][0]["type"] == "missing"

    response = client.post("/notes", content=b"{not json", headers={"content-type": "application/json"})
    assert response.status_code == 400


def test_contextual_store_is_kept_apart_from_the_session():
    adapter = FastAPIAdapter()
    request = Request({"type": "http"})
    session = object()
    request.state.db = session

    assert adapter.get(request, "db") is None
    adapter.set(request, "db", {"db_id": "d1"})
    assert adapter.get(request, "db") == {"db_id": "d1"}
    assert adapter.use_store(request) is session
