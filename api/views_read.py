"""Read-only endpoints: balances, stats, ledger, request queues, cooldowns, prize table."""

from django.http import JsonResponse

from core import access, lifecycle, services
from core.constants import review_role_for_scope
from core.models import LedgerEntry

from .helpers import api_view, current_actor, panel_token


@api_view("GET")
def balance(request):
	"""
	GET: Current coin balance of the caller
	"""
	actor = current_actor(request)
	return JsonResponse({"actor_id": str(actor.id), "display_name": actor.display_name, "balance": actor.balance})


@api_view("GET")
def stats(request):
	actor = current_actor(request)
	return JsonResponse(services.stats_for(actor.id).as_dict())


@api_view("GET")
def ledger_entries(request):
	"""
	GET: Recent balance movements of the caller
	"""
	actor = current_actor(request)
	rows = LedgerEntry.objects.filter(actor=actor).order_by("-created_at")[:50]
	data = [
		{
			"id": str(r.id),
			"side": r.side,
			"amount": r.amount,
			"ref_type": r.ref_type,
			"ref_id": str(r.ref_id),
			"memo": r.memo,
			"created_at": r.created_at.isoformat(),
		}
		for r in rows
	]
	return JsonResponse(data, safe=False)


@api_view("GET")
def list_requests(request):
	"""
	GET: own request history, or ?scope=<establishment> for its pending queue (panel token required)
	"""
	actor = current_actor(request)
	scope = request.GET.get("scope")
	if scope:
		role = review_role_for_scope(scope)
		access.verify_grant(panel_token(request), scope, actor_id=actor.id, minimum_role=role)
		rows = lifecycle.pending_for(scope)
	else:
		rows = lifecycle.history_for(actor.id)
	return JsonResponse([r.as_dict() for r in rows], safe=False)


@api_view("GET")
def cooldown_status(request, scope_key):
	actor = current_actor(request)
	return JsonResponse(services.cooldown_status(actor.id, scope_key).as_dict())


@api_view("GET")
def roulette(request):
	"""
	GET: Prize table with each category's odds, as shown on the roulette page
	"""
	table = services.roulette_table()
	odds = table.probabilities()
	return JsonResponse({
		"categories": [
			{
				"name": c.name,
				"probability": odds[c.name],
				"prizes": [e.as_dict() for e in c.entries],
			}
			for c in table.categories
		],
	})
