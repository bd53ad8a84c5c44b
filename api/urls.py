"""Public API surface.

- /demo/* endpoints: convenience helpers to seed players and simulate deposits
- /transfer, /requests/*: balance movements and the approval workflow
- /panel/unlock: trade an establishment secret for a panel token
- /roulette, /rancho, /stats/decay, /cooldown/*: daily actions and timers
- /balance, /stats, /ledger, /menu/*: read views for the UI
"""

from django.urls import path
from .views_demo import seed, credit
from .views_ops import (
	health, transfer, submit_consultation, submit_order, submit_bank_document, review, unlock_panel, rancho, menu,
	spin, stats_decay,
)
from .views_read import balance, stats, ledger_entries, list_requests, cooldown_status, roulette


urlpatterns = [
	path("health", health),
	path("demo/seed", seed),
	path("demo/credit", credit),
	path("balance", balance),
	path("stats", stats),
	path("stats/decay", stats_decay),
	path("ledger", ledger_entries),
	path("transfer", transfer),
	path("requests", list_requests),
	path("requests/consultation", submit_consultation),
	path("requests/order", submit_order),
	path("requests/bank-document", submit_bank_document),
	path("requests/<uuid:request_id>/review", review, name="review_request"),
	path("panel/unlock", unlock_panel),
	path("cooldown/<str:scope_key>", cooldown_status),
	path("roulette", roulette),
	path("roulette/spin", spin),
	path("rancho", rancho),
	path("menu/<str:scope>", menu),
]
