"""Operational endpoints that change state (transfers, requests, reviews, spins)."""

from django.http import JsonResponse

from core import access, ledger, lifecycle, services
from core.constants import REVIEW_ROLE, ROLE_MANAGER
from core.exceptions import NotFound
from core.models import Request

from .helpers import api_view, current_actor, json_body, panel_token, required


@api_view("GET")
def health(request):
	return JsonResponse({"ok": True})


@api_view("POST")
def transfer(request):
	"""
	POST: {"to": actor_id, "amount": int, "memo"?: str}
	"""
	actor = current_actor(request)
	body = json_body(request)
	ref_id = ledger.transfer(actor.id, required(body, "to"), body.get("amount"), memo=body.get("memo", ""))
	return JsonResponse({
		"ref_id": str(ref_id),
		"balance": ledger.balance_of(actor.id),
	}, status=201)


# --- Requests ----------------------------------------------------------------

@api_view("POST")
def submit_consultation(request):
	"""
	POST: {"type": "basic" | "advanced" | "surgery" | "intensive" | "complete"}
	"""
	actor = current_actor(request)
	body = json_body(request)
	req = services.request_consultation(actor.id, required(body, "type"))
	return JsonResponse(req.as_dict(), status=201)


@api_view("POST")
def submit_order(request):
	"""
	POST: {"scope": "bar", "items": [{"item_id": 1, "quantity": 2}]}
	"""
	actor = current_actor(request)
	body = json_body(request)
	req = services.place_order(actor.id, required(body, "scope"), body.get("items") or [])
	return JsonResponse(req.as_dict(), status=201)


@api_view("POST")
def submit_bank_document(request):
	"""
	POST: {"document_type", "reason", "amount"?, "description"?}
	"""
	actor = current_actor(request)
	body = json_body(request)
	req = services.request_bank_document(
		actor.id,
		document_type=body.get("document_type", "Extrato"),
		reason=body.get("reason", ""),
		amount=str(body.get("amount", "")),
		description=body.get("description", ""),
	)
	return JsonResponse(req.as_dict(), status=201)


@api_view("POST")
def review(request, request_id):
	"""
	POST: {"decision": "approve" | "reject"} with a panel token for the request's establishment
	"""
	actor = current_actor(request)
	body = json_body(request)
	try:
		target = Request.objects.only("scope", "kind").get(id=request_id)
	except Request.DoesNotExist:
		raise NotFound(f"request not found: {request_id}")
	access.verify_grant(panel_token(request), target.scope, actor_id=actor.id, minimum_role=REVIEW_ROLE[target.kind])

	req = lifecycle.review(request_id, actor.id, required(body, "decision"))
	return JsonResponse(req.as_dict())


# --- Panels ------------------------------------------------------------------

@api_view("POST")
def unlock_panel(request):
	"""
	POST: {"scope": "hospital", "secret": "..."} -> {"role", "token"}
	"""
	actor = current_actor(request)
	body = json_body(request)
	grant = access.elevate(actor.id, body.get("secret", ""), required(body, "scope"))
	return JsonResponse(grant.as_dict())


@api_view("POST")
def rancho(request):
	"""
	POST: {"scope"?: "hospital"} manager-only, restores every player's stats once a day
	"""
	actor = current_actor(request)
	body = json_body(request)
	scope = body.get("scope", "hospital")
	access.verify_grant(panel_token(request), scope, actor_id=actor.id, minimum_role=ROLE_MANAGER)
	restored = services.use_rancho(actor.id, scope)
	return JsonResponse({"restored": restored})


@api_view("GET", "POST")
def menu(request, scope):
	"""
	GET: the establishment's menu.
	POST: create/update an item (manager panel token required).
	"""
	if request.method == "GET":
		return JsonResponse([i.as_dict() for i in services.menu_for(scope)], safe=False)

	actor = current_actor(request)
	access.verify_grant(panel_token(request), scope, actor_id=actor.id, minimum_role=ROLE_MANAGER)
	body = json_body(request)
	item = services.save_menu_item(
		scope,
		name=required(body, "name"),
		category=required(body, "category"),
		price=required(body, "price"),
		description=body.get("description", ""),
		hunger=body.get("hunger", 0),
		thirst=body.get("thirst", 0),
		alcoholism=body.get("alcoholism", 0),
	)
	return JsonResponse(item.as_dict(), status=201)


# --- Roulette & stats --------------------------------------------------------

@api_view("POST")
def spin(request):
	actor = current_actor(request)
	draw = services.spin_roulette(actor.id)
	return JsonResponse({
		"draw": draw.as_dict(),
		"balance": ledger.balance_of(actor.id),
		"stats": services.stats_for(actor.id).as_dict(),
	}, status=201)


@api_view("POST")
def stats_decay(request):
	"""
	POST: apply every decay interval elapsed since the last call
	"""
	actor = current_actor(request)
	stats = services.apply_stats_decay(actor.id)
	return JsonResponse(stats.as_dict())
