"""
Library Routes - HTTP adapter over the library command surface
"""

from flask import Blueprint, current_app, request

from arcshelf.api_responses import handle_api_errors, success_response
from arcshelf.constants import CONTENT_TYPE_UNKNOWN

library_bp = Blueprint("library", __name__, url_prefix="/api")


def get_library_service():
    return current_app.extensions["arcshelf"]["library_service"]


def _json_body():
    return request.get_json(silent=True)


@library_bp.route("/library", methods=["GET"])
@handle_api_errors
def library_get():
    return success_response(get_library_service().library_get())


@library_bp.route("/library/reload", methods=["POST"])
@handle_api_errors
def library_reload():
    return success_response(get_library_service().library_reload())


@library_bp.route("/library", methods=["POST"])
@handle_api_errors
def library_add():
    record = get_library_service().library_add(_json_body())
    return success_response(record, message="Metadata added", status_code=201)


@library_bp.route("/library/create", methods=["POST"])
@handle_api_errors
def library_create():
    data = _json_body() or {}
    record = get_library_service().library_create(
        title=data.get("title"),
        from_path=data.get("from_path"),
        platform=data.get("platform"),
        platform_id=data.get("platform_id"),
        password=data.get("password"),
        content_type=data.get("content_type") or CONTENT_TYPE_UNKNOWN,
    )
    return success_response(record, message="Archive created", status_code=201)


@library_bp.route("/library/<entry_id>", methods=["PUT"])
@handle_api_errors
def library_replace(entry_id):
    data = _json_body()
    if isinstance(data, dict):
        # The URL is authoritative for which entry is replaced
        data = dict(data, id=entry_id)
    return success_response(get_library_service().library_replace(data), message="Metadata replaced")


@library_bp.route("/library/<entry_id>", methods=["DELETE"])
@handle_api_errors
def library_del(entry_id):
    removed = get_library_service().library_del(entry_id)
    return success_response({"removed": removed})


@library_bp.route("/library/<entry_id>/deploy", methods=["POST"])
@handle_api_errors
def library_deploy(entry_id):
    data = _json_body() or {}
    record = get_library_service().library_deploy(entry_id, data.get("path"))
    return success_response(record, message="Deployed")


@library_bp.route("/library/<entry_id>/deploy_off", methods=["POST"])
@handle_api_errors
def library_deploy_off(entry_id):
    return success_response(get_library_service().library_deploy_off(entry_id), message="Deployed off")


@library_bp.route("/library/export", methods=["POST"])
@handle_api_errors
def library_export():
    path = get_library_service().library_export()
    return success_response({"path": path}, message="Library exported")


@library_bp.route("/library/import", methods=["POST"])
@handle_api_errors
def library_import():
    imported = get_library_service().library_import()
    return success_response({"imported": imported})
