"""Request plumbing shared by the views: JSON bodies, caller identity, error mapping."""

import functools
import json
import logging

from django.http import HttpResponseBadRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from core.exceptions import InvalidRequest, NotFound, RealmError
from core.ledger import as_actor_id
from core.models import Actor

logger = logging.getLogger(__name__)

ACTOR_HEADER = "X-Actor-Id"
PANEL_TOKEN_HEADER = "X-Panel-Token"


def api_view(*methods: str):
	"""
	Restrict a view to the given HTTP methods and turn domain errors into
	{"error": code, "message": ...} responses with the error's status.
	"""
	def decorator(view):
		@csrf_exempt
		@functools.wraps(view)
		def wrapper(request, *args, **kwargs):
			if request.method not in methods:
				return HttpResponseBadRequest(f"{'/'.join(methods)} only")
			try:
				return view(request, *args, **kwargs)
			except RealmError as e:
				logger.info("%s %s -> %s: %s", request.method, request.path, e.code, e.message)
				return JsonResponse(e.as_dict(), status=e.status)
		return wrapper
	return decorator


def json_body(request) -> dict:
	try:
		body = json.loads(request.body or b"{}")
	except ValueError:
		raise InvalidRequest("invalid JSON")
	if not isinstance(body, dict):
		raise InvalidRequest("JSON object expected")
	return body


def current_actor(request) -> Actor:
	"""
	The caller, as identified by the upstream identity provider
	"""
	raw = request.headers.get(ACTOR_HEADER)
	if not raw:
		raise InvalidRequest(f"{ACTOR_HEADER} header required")
	try:
		return Actor.objects.get(id=as_actor_id(raw))
	except Actor.DoesNotExist:
		raise NotFound(f"actor not found: {raw}")


def panel_token(request) -> str:
	return request.headers.get(PANEL_TOKEN_HEADER, "")


def required(body: dict, name: str):
	value = body.get(name)
	if value in (None, ""):
		raise InvalidRequest(f"{name} required")
	return value
