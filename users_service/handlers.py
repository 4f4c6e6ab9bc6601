"""HTTP handlers for the users API."""

from __future__ import annotations

import json
import logging
import os
import re
import uuid
from typing import Any, Mapping, Optional

from flask import Blueprint, Response, current_app, request
from sqlalchemy.exc import SQLAlchemyError

from .app import App
from .models import User
from .repository import NoRowsError, Queries

APP_EXTENSION = "users_service"

_log = logging.getLogger(__name__)

_INVALID_ID = "The given id is not a valid UUID"
_HEX = "[0-9a-fA-F]"
_HYPHENATED = re.compile(
    rf"{_HEX}{{8}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{12}}"
)
_PLAIN = re.compile(rf"{_HEX}{{32}}")
_URN_PREFIX = "urn:uuid:"


class _RequestError(Exception):
    """A failure that is answered with a JSON error body."""

    def __init__(self, status: int, message: str, *, indent: bool = True) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.indent = indent


def _json(payload: Any, status: int, *, indent: bool = True) -> Response:
    if indent:
        body = json.dumps(payload, indent=4, ensure_ascii=False)
    else:
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return Response(body, status=status, mimetype="application/json")


def _handle_request_error(error: _RequestError) -> Response:
    return _json({"error": error.message}, error.status, indent=error.indent)


def generate_image_url(user_id: uuid.UUID, environ: Optional[Mapping[str, str]] = None) -> str:
    """Build the URL where the user's profile picture is served."""
    env = os.environ if environ is None else environ
    port = env.get("PORT", "")
    hostname = env.get("LOCALHOST", "")
    return f"http://{hostname}:{port}/api/images/{user_id}"


def user_response(user: User, environ: Optional[Mapping[str, str]] = None) -> dict:
    """Return the public JSON shape of a user."""
    return {
        "id": str(user.id),
        "name": user.name,
        "profilePicUrl": generate_image_url(user.id, environ),
    }


def parse_id(value: str) -> uuid.UUID:
    """Parse a UUID in hyphenated, plain, braced or URN form.

    Raises ``ValueError`` for anything else.
    """
    if _HYPHENATED.fullmatch(value) or _PLAIN.fullmatch(value):
        return uuid.UUID(value)
    if value.startswith("{") and value.endswith("}") and _HYPHENATED.fullmatch(value[1:-1]):
        return uuid.UUID(value[1:-1])
    if value[: len(_URN_PREFIX)].lower() == _URN_PREFIX and _HYPHENATED.fullmatch(
        value[len(_URN_PREFIX):]
    ):
        return uuid.UUID(value[len(_URN_PREFIX):])
    raise ValueError(_INVALID_ID)


def _service() -> App:
    if APP_EXTENSION not in current_app.extensions:
        _log.error("app configuration not available")
        raise _RequestError(500, "Internal Server Error", indent=False)
    state = current_app.extensions[APP_EXTENSION]
    if not isinstance(state, App):
        _log.error("wrong app type")
        raise _RequestError(500, "Internal Server Error", indent=False)
    return state


def _id_param(value: str) -> uuid.UUID:
    try:
        return parse_id(value)
    except ValueError:
        raise _RequestError(400, _INVALID_ID) from None


def _success(user: User, status: int) -> Response:
    return _json({"data": user_response(user), "status": "success"}, status)


def _read_profile_pic() -> Optional[bytes]:
    upload = request.files.get("profilePic")
    if upload is None:
        return None
    if not (upload.content_type or "").startswith("image/"):
        raise _RequestError(
            400,
            "The attached file isn't an image. "
            "Make sure that the content-type header is set to image/",
        )
    try:
        return upload.read()
    except OSError as exc:
        _log.error("%s", exc)
        raise _RequestError(500, "Error when trying to read the image") from exc


def _read_new_name() -> str:
    message = "You have to provide a name (and only a name) in the request body"
    try:
        body = json.loads(request.get_data())
    except ValueError as exc:
        _log.warning("%s", exc)
        raise _RequestError(400, message) from exc
    if body is None:
        return ""
    if not isinstance(body, dict):
        _log.warning("request body is not a JSON object")
        raise _RequestError(400, message)
    if "name" in body:
        name = body["name"]
    else:
        name = next((v for k, v in body.items() if k.lower() == "name"), None)
    if name is None:
        return ""
    if not isinstance(name, str):
        _log.warning("name is not a string")
        raise _RequestError(400, message)
    return name


def _create_user() -> Response:
    service = _service()
    id_text = request.form.get("id", "")
    if not id_text:
        raise _RequestError(400, "You didn't enter an id (uuid)")
    user_id = _id_param(id_text)
    name = request.form.get("name", "")
    profile_pic = _read_profile_pic()

    try:
        with service.engine.begin() as connection:
            user = Queries(connection).create_user(user_id, name, profile_pic)
    except (SQLAlchemyError, NoRowsError) as exc:
        _log.error("%s", exc)
        raise _RequestError(500, "Error when creating the user") from exc
    return _success(user, 201)


def _get_user(id: str) -> Response:
    service = _service()
    user_id = _id_param(id)
    try:
        with service.engine.connect() as connection:
            user = Queries(connection).get_user_by_id(user_id)
    except NoRowsError:
        raise _RequestError(404, "No user with that id in the database") from None
    except SQLAlchemyError as exc:
        _log.error("%s", exc)
        raise _RequestError(
            500, "Error when trying to retrieve the user from the DB"
        ) from exc
    return _success(user, 200)


def _change_user_name(id: str) -> Response:
    service = _service()
    user_id = _id_param(id)
    name = _read_new_name()
    try:
        with service.engine.begin() as connection:
            user = Queries(connection).change_user_name(user_id, name)
    except (SQLAlchemyError, NoRowsError) as exc:
        _log.error("%s", exc)
        raise _RequestError(500, "Error when trying to update the username") from exc
    return _success(user, 200)


def create_users_blueprint() -> Blueprint:
    """Return the blueprint serving ``/api/users``."""
    blueprint = Blueprint("users", __name__, url_prefix="/api/users")
    blueprint.register_error_handler(_RequestError, _handle_request_error)
    blueprint.add_url_rule("", "create_user", _create_user, methods=["POST"])
    blueprint.add_url_rule("/<id>", "get_user", _get_user, methods=["GET"])
    blueprint.add_url_rule("/<id>", "change_user_name", _change_user_name, methods=["PUT"])
    return blueprint