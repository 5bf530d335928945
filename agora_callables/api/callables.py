"""Callable endpoints.

Each route is a named callable (``POST /<name>``) answering
``{"result": ...}`` on success. Errors are rendered by ``errors.py``.
"""
from flask import Blueprint, current_app, jsonify

from agora_callables.core import (
    CallableContext,
    ProvisionVariant,
    issue_chat_token,
    issue_rtc_token,
    provision_account,
)
from agora_callables.core.services import CallableServices
from .decorators import (
    get_callable_data,
    get_caller_uid,
    require_callable_request,
    resolve_firebase_caller,
)

bp = Blueprint("callables", __name__)

EXTENSION_KEY = "agora_callables"


def get_services() -> CallableServices:
    return current_app.extensions[EXTENSION_KEY]


def _context() -> CallableContext:
    return CallableContext(auth_uid=get_caller_uid(), data=get_callable_data())


@bp.route("/generateAgoraChatToken", methods=["POST"])
@require_callable_request
@resolve_firebase_caller
def generate_agora_chat_token():
    return jsonify({"result": issue_chat_token(_context(), get_services())})


@bp.route("/testAuth", methods=["POST"])
@require_callable_request
@resolve_firebase_caller
def test_auth():
    """Alias of generateAgoraChatToken kept for deployed clients."""
    return jsonify({"result": issue_chat_token(_context(), get_services())})


@bp.route("/addAgoraUser", methods=["POST"])
@require_callable_request
@resolve_firebase_caller
def add_agora_user():
    result = provision_account(_context(), get_services(), ProvisionVariant.LEGACY)
    return jsonify({"result": result})


@bp.route("/addUser", methods=["POST"])
@require_callable_request
@resolve_firebase_caller
def add_user():
    result = provision_account(_context(), get_services(), ProvisionVariant.ORG_SCOPED)
    return jsonify({"result": result})


@bp.route("/getRtcToken", methods=["POST"])
@require_callable_request
@resolve_firebase_caller
def get_rtc_token():
    return jsonify({"result": issue_rtc_token(_context(), get_services())})
