"""HTTP client for the manufacturing dashboard API.

Blocking ``requests`` calls; run them through a RequestRunner so they
never execute on the UI thread. Every endpoint answers with a JSON
object; anything else is surfaced as UnexpectedResponseError rather
than parsed as success.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from mfgboard.api.errors import RequestFailedError, UnexpectedResponseError
from mfgboard.constants import (
    ACTIONS_PATH,
    CARDS_PATH,
    CONFIG_PATH,
    DEFAULT_API_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT_S,
    EQUIPMENT_PATH,
    PROCESSES_PATH,
    USERS_PATH,
)
from mfgboard.core.serializers import (
    cards_from_payload,
    changes_to_wire,
    config_to_dict,
    dict_to_card,
    dict_to_config,
)
from mfgboard.models.board import BoardConfig, default_board_config
from mfgboard.models.card import Card

logger = logging.getLogger(__name__)

_BODY_EXCERPT_CHARS = 100


class KanbanApiClient:
    """Thin wrapper over the dashboard's REST endpoints.

    Args:
        base_url: API root, e.g. ``http://localhost:3000/api``.
        timeout: Per-request timeout in seconds.
        session: Optional pre-configured requests.Session.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_S,
        session: requests.Session | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        form: dict[str, str] | None = None,
        default_error: str = "Request failed",
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            RequestFailedError: Transport error, non-2xx status, or a
                ``{"success": false}`` body.
            UnexpectedResponseError: Body is not JSON.
        """
        url = self._url(path)
        try:
            resp = self._session.request(
                method,
                url,
                json=json_body,
                data=form,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise RequestFailedError(f"Network error: {e}") from e

        content_type = resp.headers.get("Content-Type")
        if not content_type or "application/json" not in content_type.lower():
            excerpt = resp.text[:_BODY_EXCERPT_CHARS]
            logger.warning(
                "%s %s returned %s (%s) instead of JSON: %r",
                method, url, resp.status_code, content_type, excerpt,
            )
            raise UnexpectedResponseError(resp.status_code, content_type, excerpt)

        try:
            payload = resp.json()
        except ValueError as e:
            excerpt = resp.text[:_BODY_EXCERPT_CHARS]
            raise UnexpectedResponseError(resp.status_code, content_type, excerpt) from e

        error = payload.get("error") if isinstance(payload, dict) else None
        if not resp.ok:
            logger.warning("%s %s → %s: %s", method, url, resp.status_code, error)
            raise RequestFailedError(error or default_error, status=resp.status_code)
        if isinstance(payload, dict) and payload.get("success") is False:
            raise RequestFailedError(error or default_error, status=resp.status_code)
        return payload

    # ------------------------------------------------------------------
    # Card actions (form-encoded action endpoint)
    # ------------------------------------------------------------------

    def move_card(self, card_id: str, column_id: str) -> dict:
        """Move a card to another column (``moveCard`` action)."""
        return self._request(
            "POST", ACTIONS_PATH,
            form={"action": "moveCard", "cardId": card_id, "columnId": column_id},
            default_error="Failed to move card",
        )

    def update_due_date(self, card_id: str, due_date: str | None) -> dict:
        """Set or clear a card's due date (``updateDueDate`` action)."""
        return self._request(
            "POST", ACTIONS_PATH,
            form={"action": "updateDueDate", "cardId": card_id, "dueDate": due_date or ""},
            default_error="Failed to update due date",
        )

    # ------------------------------------------------------------------
    # Card CRUD
    # ------------------------------------------------------------------

    def list_cards(self) -> tuple[Card, ...]:
        payload = self._request("GET", CARDS_PATH, default_error="Failed to fetch cards")
        return cards_from_payload(payload)

    def create_card(self, fields: dict) -> Card:
        """Create a card in the first column.

        Args:
            fields: Card attributes (snake_case) — ``title`` required.
        """
        payload = self._request(
            "POST", CARDS_PATH,
            json_body=changes_to_wire(fields),
            default_error="Failed to create card",
        )
        return dict_to_card(payload["card"])

    def update_card(self, card_id: str, changes: dict) -> Card | None:
        """PATCH card fields (snake_case attribute names)."""
        payload = self._request(
            "PATCH", f"{CARDS_PATH}/{card_id}",
            json_body=changes_to_wire(changes),
            default_error="Failed to update card",
        )
        card = payload.get("card") if isinstance(payload, dict) else None
        return dict_to_card(card) if card else None

    def assign_card(self, card_id: str, assignee: str | None) -> Card | None:
        payload = self._request(
            "POST", f"{CARDS_PATH}/{card_id}/assign",
            json_body={"assignee": assignee},
            default_error="Failed to assign card",
        )
        card = payload.get("card") if isinstance(payload, dict) else None
        return dict_to_card(card) if card else None

    def delete_card(self, card_id: str) -> None:
        self._request(
            "DELETE", f"{CARDS_PATH}/{card_id}", default_error="Failed to delete card",
        )

    # ------------------------------------------------------------------
    # Board config
    # ------------------------------------------------------------------

    def get_config(self) -> BoardConfig:
        """Fetch the board config; the default board when none is stored."""
        payload = self._request(
            "GET", CONFIG_PATH, default_error="Failed to fetch Kanban config",
        )
        if not isinstance(payload, dict) or not isinstance(payload.get("columns"), list):
            return default_board_config()
        return dict_to_config(payload)

    def save_config(self, config: BoardConfig) -> BoardConfig:
        """Persist the full column list in one write."""
        payload = self._request(
            "PUT", CONFIG_PATH,
            json_body=config_to_dict(config),
            default_error="Failed to save configuration",
        )
        saved = payload.get("config") if isinstance(payload, dict) else None
        logger.info("Saved board config (%d columns)", len(config.columns))
        return dict_to_config(saved) if saved else config

    # ------------------------------------------------------------------
    # Lookups for bulk edit choices
    # ------------------------------------------------------------------

    def list_users(self) -> list[dict]:
        payload = self._request("GET", USERS_PATH, default_error="Failed to fetch users")
        if isinstance(payload, dict):
            return list(payload.get("users") or [])
        return list(payload or [])

    def list_equipment(self) -> list[dict]:
        payload = self._request(
            "GET", EQUIPMENT_PATH, default_error="Failed to fetch equipment",
        )
        if isinstance(payload, dict):
            return list(payload.get("equipment") or [])
        return list(payload or [])

    def list_processes(self) -> list[dict]:
        """Manufacturing processes (``{id, name, ...}``) used for grouping."""
        payload = self._request(
            "GET", PROCESSES_PATH, default_error="Failed to fetch processes",
        )
        if isinstance(payload, dict):
            return list(payload.get("processes") or [])
        return list(payload or [])
