"""HTTP client the chat UI uses to talk to the establishment backend.

Every call carries an explicit timeout. Error responses from the backend
come back as ApiError with the backend's error code; network failures and
timeouts come back as TransientError so callers can keep their local state
and retry on the next refresh tick.
"""

import logging
import os

import httpx

logger = logging.getLogger(__name__)

API_BASE = os.getenv("ROLEPLAY_CITY_API", "http://127.0.0.1:8000/api")
TIMEOUT_SECONDS = float(os.getenv("ROLEPLAY_CITY_TIMEOUT", "10"))


class ApiError(Exception):
	"""
	The backend refused the call: `code` is its error code (insufficient_funds, ...)
	"""

	def __init__(self, code: str, message: str = "", status: int = 400, payload: dict | None = None):
		self.code = code
		self.message = message or code
		self.status = status
		self.payload = payload or {}
		super().__init__(f"{code}: {self.message}")

	@property
	def remaining_seconds(self) -> int | None:
		return self.payload.get("remaining_seconds")


class TransientError(Exception):
	"""Network failure or timeout; nothing is known about the outcome."""


class RealmClient:

	def __init__(self, actor_id: str, base_url: str = API_BASE, timeout: float = TIMEOUT_SECONDS, transport: httpx.BaseTransport | None = None):
		self.actor_id = str(actor_id)
		self.panel_tokens: dict[str, str] = {}
		self.http = httpx.Client(
			base_url=base_url,
			headers={"X-Actor-Id": self.actor_id},
			timeout=timeout,
			transport=transport,
		)

	def close(self):
		self.http.close()

	def __enter__(self):
		return self

	def __exit__(self, *exc):
		self.close()

	def _call(self, method: str, path: str, *, json: dict | None = None, params: dict | None = None, scope: str | None = None):
		headers = {}
		if scope and scope in self.panel_tokens:
			headers["X-Panel-Token"] = self.panel_tokens[scope]
		try:
			resp = self.http.request(method, path, json=json, params=params, headers=headers)
		except httpx.TransportError as e:
			logger.warning("%s %s failed: %s", method, path, e)
			raise TransientError(str(e)) from e

		if resp.status_code >= 400:
			try:
				data = resp.json()
			except ValueError:
				data = {}
			if not isinstance(data, dict):
				data = {}
			raise ApiError(data.get("error", "http_error"), data.get("message", resp.text), resp.status_code, data)
		return resp.json()

	# --- Balance -------------------------------------------------------------

	def current_balance(self) -> int:
		return self._call("GET", "/balance")["balance"]

	def transfer_balance(self, to_actor_id: str, amount: int, memo: str = "") -> dict:
		return self._call("POST", "/transfer", json={"to": str(to_actor_id), "amount": amount, "memo": memo})

	# --- Requests ------------------------------------------------------------

	def submit_consultation(self, consultation_type: str) -> dict:
		return self._call("POST", "/requests/consultation", json={"type": consultation_type})

	def submit_order(self, scope: str, items: list[dict]) -> dict:
		return self._call("POST", "/requests/order", json={"scope": scope, "items": items})

	def submit_bank_document(self, reason: str, document_type: str = "Extrato", amount: str = "", description: str = "") -> dict:
		return self._call("POST", "/requests/bank-document", json={
			"document_type": document_type,
			"reason": reason,
			"amount": amount,
			"description": description,
		})

	def review_request(self, request_id: str, decision: str, scope: str) -> dict:
		"""
		decision: "approve" | "reject". Needs an unlocked panel for `scope`.
		"""
		return self._call("POST", f"/requests/{request_id}/review", json={"decision": decision}, scope=scope)

	def list_requests(self, scope: str | None = None) -> list[dict]:
		if scope:
			return self._call("GET", "/requests", params={"scope": scope}, scope=scope)
		return self._call("GET", "/requests")

	# --- Panels --------------------------------------------------------------

	def unlock_panel(self, scope: str, secret: str) -> dict:
		"""
		Trade the establishment secret for a panel token, kept for later calls.
		"""
		grant = self._call("POST", "/panel/unlock", json={"scope": scope, "secret": secret})
		self.panel_tokens[scope] = grant["token"]
		return grant

	def lock_panel(self, scope: str):
		self.panel_tokens.pop(scope, None)

	# --- Daily actions -------------------------------------------------------

	def cooldown_status(self, scope_key: str) -> dict:
		return self._call("GET", f"/cooldown/{scope_key}")

	def draw_outcome(self) -> dict:
		return self._call("POST", "/roulette/spin")

	def roulette_table(self) -> dict:
		return self._call("GET", "/roulette")

	def stats(self) -> dict:
		return self._call("GET", "/stats")

	def apply_stats_decay(self) -> dict:
		return self._call("POST", "/stats/decay")
