"""Demo helpers: seed players, diseases and a menu, and push coins from outside the economy."""

from django.http import JsonResponse

from core.ledger import as_actor_id
from core.services import DemoServices

from .helpers import api_view, json_body, required


@api_view("POST")
def seed(request):
	"""
	POST: Create/fetch the demo players for this run
	"""
	actors = DemoServices.seed_demo_actors()
	return JsonResponse({
		"actors": [{"actor_id": str(a.id), "display_name": a.display_name, "balance": a.balance} for a in actors],
	})


@api_view("POST")
def credit(request):
	"""
	POST: {"actor_id", "amount", "memo"?} simulate a deposit
	"""
	body = json_body(request)
	actor_id = as_actor_id(required(body, "actor_id"))
	new_balance = DemoServices.demo_credit(actor_id, body.get("amount"), body.get("memo", "demo"))
	return JsonResponse({"actor_id": str(actor_id), "balance": new_balance}, status=201)
