#!/usr/bin/env python
# run:
# $ FLASK_APP=demo_flask flask run
#
# Nested crud api:
#   /users, /users/<user_id>
#   /users/<user_id>/things, /users/<user_id>/things/<thing_id>
#
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from pydantic import BaseModel
from typing import Optional
from sacrud import CrudController, ModelRegistry, ModelSchema
from sacrud.adapters.flask import FlaskAdapter

db = SQLAlchemy()


class User(db.Model):
    __tablename__ = "users"
    user_id = db.Column(db.String, primary_key=True)
    name = db.Column(db.String, nullable=True)
    # booleans are stored as "1"/"0"
    admin = db.Column(db.String(1), nullable=True)
    inserted_at = db.Column(db.String)
    updated_at = db.Column(db.String)


class Thing(db.Model):
    __tablename__ = "things"
    thing_id = db.Column(db.String, primary_key=True)
    user_id = db.Column(db.String, db.ForeignKey("users.user_id"), nullable=False)
    name = db.Column(db.String, nullable=False)


class UserSchema(BaseModel):
    name: Optional[str]
    admin: bool = False


def create_api(app, crud, adapter):
    def route(rule, handler, method):
        app.add_url_rule(rule, view_func=adapter.view(handler), methods=[method])

    user_attributes = {"name": "payload", "admin": "payload", "updated_at": "updated_at"}
    route("/users", crud.collection_response(crud.index("users"), omit=["admin"]), "GET")
    route(
        "/users",
        crud.response(crud.create("users", attributes={"user_id": "uuid", "inserted_at": "inserted_at", **user_attributes}), status_code=201),
        "POST",
    )
    route("/users/<user_id>", crud.response(crud.show("users")), "GET")
    route("/users/<user_id>", crud.response(crud.update("users", attributes=user_attributes)), "PUT")
    route("/users/<user_id>", crud.response(crud.destroy("users")), "DELETE")

    # the :user_id route parameter is picked up as a scope in the nested endpoints
    route("/users/<user_id>/things", crud.collection_response(crud.index("things")), "GET")
    route(
        "/users/<user_id>/things",
        crud.response(crud.create("things", attributes={"thing_id": "uuid", "user_id": "param", "name": "payload"}), status_code=201),
        "POST",
    )
    route("/users/<user_id>/things/<thing_id>", crud.response(crud.show("things")), "GET")
    route("/users/<user_id>/things/<thing_id>", crud.response(crud.update("things", attributes={"name": "payload"})), "PUT")
    route("/users/<user_id>/things/<thing_id>", crud.response(crud.destroy("things")), "DELETE")


def create_app():
    app = Flask("demo_app")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite:///demo_flask.sqlitedb")
    db.init_app(app)
    adapter = FlaskAdapter(db)
    adapter.init_app(app)
    models = ModelRegistry({"users": ModelSchema("users", User.__table__, UserSchema), "things": Thing})
    crud = CrudController(models, adapter)
    with app.app_context():
        db.create_all()
    create_api(app, crud, adapter)
    return app


app = create_app()

if __name__ == "__main__":
    app.run()
