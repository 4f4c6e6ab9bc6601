import io
import uuid

import pytest
from flask import Flask
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from users_service.app import App
from users_service.handlers import (
    APP_EXTENSION,
    create_users_blueprint,
    generate_image_url,
    parse_id,
    user_response,
)
from users_service.models import User
from users_service.repository import Queries


@pytest.fixture
def service():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as connection:
        connection.execute(
            text(
                'CREATE TABLE "User" (id TEXT PRIMARY KEY, name TEXT NOT NULL, '
                '"profilePic" BLOB)'
            )
        )
    app = App(engine=engine)
    yield app
    app.close()


def _client(extensions):
    flask_app = Flask(__name__)
    flask_app.extensions.update(extensions)
    flask_app.register_blueprint(create_users_blueprint())
    return flask_app.test_client()


@pytest.fixture
def client(service, monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOCALHOST", "localhost")
    return _client({APP_EXTENSION: service})


def _url(user_id):
    return f"http://localhost:8080/api/images/{user_id}"


def test_generate_image_url_uses_environment():
    user_id = uuid.uuid4()
    env = {"PORT": "9000", "LOCALHOST": "example.com"}
    assert generate_image_url(user_id, env) == f"http://example.com:9000/api/images/{user_id}"


def test_generate_image_url_with_missing_variables():
    user_id = uuid.uuid4()
    assert generate_image_url(user_id, {}) == f"http://:/api/images/{user_id}"


def test_user_response_shape():
    user = User(id=uuid.uuid4(), name="alice", profile_pic=b"data")
    env = {"PORT": "1", "LOCALHOST": "h"}
    assert user_response(user, env) == {
        "id": str(user.id),
        "name": "alice",
        "profilePicUrl": generate_image_url(user.id, env),
    }


@pytest.mark.parametrize(
    "form",
    ["{value}", "{{{value}}}", "urn:uuid:{value}", "{plain}"],
)
def test_parse_id_accepts_standard_forms(form):
    value = uuid.uuid4()
    text_value = form.format(value=value, plain=value.hex)
    assert parse_id(text_value) == value


@pytest.mark.parametrize(
    "value", ["", "abc", "1234-5678", "0" * 31, "{" + "0" * 32 + "}", "zz" * 16]
)
def test_parse_id_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_id(value)


def test_create_user_without_id(client):
    response = client.post("/api/users", data={"name": "alice"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "You didn't enter an id (uuid)"}


def test_create_user_with_invalid_id(client):
    response = client.post("/api/users", data={"id": "nope", "name": "alice"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "The given id is not a valid UUID"}


def test_create_user_rejects_non_image(client):
    response = client.post(
        "/api/users",
        data={
            "id": str(uuid.uuid4()),
            "name": "alice",
            "profilePic": (io.BytesIO(b"hello"), "note.txt", "text/plain"),
        },
        content_type="multipart/form-data",
    )
    assert response.status_code == 400
    assert "isn't an image" in response.get_json()["error"]


def test_create_user_with_picture_stores_bytes(client, service):
    user_id = uuid.uuid4()
    picture = b"\x89PNG\r\n\x1a\nimage"
    response = client.post(
        "/api/users",
        data={
            "id": str(user_id),
            "name": "alice",
            "profilePic": (io.BytesIO(picture), "pic.png", "image/png"),
        },
        content_type="multipart/form-data",
    )
    assert response.status_code == 201
    assert response.get_json() == {
        "status": "success",
        "data": {"id": str(user_id), "name": "alice", "profilePicUrl": _url(user_id)},
    }
    with service.engine.connect() as connection:
        stored = Queries(connection).get_user_by_id(user_id)
    assert stored.profile_pic == picture


def test_create_user_without_picture(client, service):
    user_id = uuid.uuid4()
    response = client.post("/api/users", data={"id": str(user_id), "name": "bob"})
    assert response.status_code == 201
    with service.engine.connect() as connection:
        stored = Queries(connection).get_user_by_id(user_id)
    assert stored.profile_pic is None
    assert stored.name == "bob"


def test_create_user_response_is_indented(client):
    response = client.post("/api/users", data={"id": str(uuid.uuid4()), "name": "x"})
    assert response.data.startswith(b'{\n    "')


def test_create_duplicate_user_fails(client):
    data = {"id": str(uuid.uuid4()), "name": "alice"}
    assert client.post("/api/users", data=data).status_code == 201
    response = client.post("/api/users", data=data)
    assert response.status_code == 500
    assert response.get_json() == {"error": "Error when creating the user"}


def test_get_user_round_trip(client):
    user_id = uuid.uuid4()
    client.post("/api/users", data={"id": str(user_id), "name": "carol"})
    response = client.get(f"/api/users/{user_id}")
    assert response.status_code == 200
    assert response.get_json()["data"] == {
        "id": str(user_id),
        "name": "carol",
        "profilePicUrl": _url(user_id),
    }


def test_get_unknown_user(client):
    response = client.get(f"/api/users/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.get_json() == {"error": "No user with that id in the database"}


def test_get_user_with_invalid_id(client):
    response = client.get("/api/users/not-a-uuid")
    assert response.status_code == 400
    assert response.get_json() == {"error": "The given id is not a valid UUID"}


def test_change_user_name(client):
    user_id = uuid.uuid4()
    client.post("/api/users", data={"id": str(user_id), "name": "dave"})
    response = client.put(f"/api/users/{user_id}", json={"name": "david"})
    assert response.status_code == 200
    assert response.get_json()["data"]["name"] == "david"
    assert client.get(f"/api/users/{user_id}").get_json()["data"]["name"] == "david"


@pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]", b'{"name": 5}'])
def test_change_user_name_rejects_bad_body(client, body):
    user_id = uuid.uuid4()
    client.post("/api/users", data={"id": str(user_id), "name": "erin"})
    response = client.put(
        f"/api/users/{user_id}", data=body, content_type="application/json"
    )
    assert response.status_code == 400
    assert "provide a name" in response.get_json()["error"]


def test_change_name_of_unknown_user(client):
    response = client.put(f"/api/users/{uuid.uuid4()}", json={"name": "x"})
    assert response.status_code == 500
    assert response.get_json() == {"error": "Error when trying to update the username"}


def test_missing_app_configuration():
    response = _client({}).get(f"/api/users/{uuid.uuid4()}")
    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal Server Error"}


def test_wrong_app_type():
    response = _client({APP_EXTENSION: object()}).get(f"/api/users/{uuid.uuid4()}")
    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal Server Error"}