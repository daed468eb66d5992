#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Run:
  pip install -e . "fastapi[standard]"
  python examples/demo_fastapi.py

Then open:
  http://127.0.0.1:8000/docs
"""

import uvicorn
from fastapi import FastAPI
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine
from sqlalchemy.orm import sessionmaker

from sacrud import CrudController, ModelRegistry
from sacrud.adapters.fastapi import FastAPIAdapter, install_crud_exception_handlers

metadata = MetaData()

notes = Table(
    "notes",
    metadata,
    Column("note_id", String, primary_key=True),
    Column("owner", String, nullable=False),
    Column("title", String, nullable=False),
    Column("rank", Integer, nullable=True),
    Column("inserted_at", String),
)


def create_app() -> FastAPI:
    engine = create_engine("sqlite:///./demo_fastapi.db")
    metadata.create_all(engine)

    adapter = FastAPIAdapter(session_factory=sessionmaker(bind=engine, autoflush=False))
    crud = CrudController(ModelRegistry.from_metadata(metadata), adapter)
    app = FastAPI(title="sacrud demo")
    install_crud_exception_handlers(app)

    def owner(request):
        # normally taken from the authenticated user
        return request.headers.get("x-user", "anonymous")

    def route(path, handler, method):
        app.add_api_route(path, adapter.endpoint(handler), methods=[method])

    mine = lambda request: [("owner", "=", owner(request))]  # noqa: E731
    by_rank = lambda request, statement: statement.order_by(notes.c.rank)  # noqa: E731

    route("/notes", crud.collection_response(crud.index("notes", where=mine, query=by_rank)), "GET")
    route(
        "/notes",
        crud.response(
            crud.create("notes", attributes={"note_id": "uuid", "owner": owner, "title": "payload", "rank": "payload", "inserted_at": "inserted_at"}),
            status_code=201,
        ),
        "POST",
    )
    route("/notes/{note_id}", crud.response(crud.show("notes", where=mine), omit=["owner"]), "GET")
    route("/notes/{note_id}", crud.response(crud.update("notes", attributes={"title": "payload", "rank": "payload"}, where=mine)), "PUT")
    route("/notes/{note_id}", crud.response(crud.destroy("notes", where=mine)), "DELETE")
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
