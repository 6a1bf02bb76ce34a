from __future__ import annotations

import json
import logging
from typing import Dict, Optional

from axis_browser.config.model import Settings
from axis_browser.core.state import RuntimeState
from axis_browser.services.storage import StorageBackend, safe_key
from axis_browser.validation.errors import ValidationError
from axis_browser.validation.state_validation import validate_state_dict

logger = logging.getLogger(__name__)


class SessionService:
    """
    Persists runtime states between interactions.

    One JSON blob per (session, endpoint) holds ``{binding_id: state}``.
    Invalid entries are logged and dropped so the binding starts fresh.
    """

    def __init__(self, storage: StorageBackend, settings: Optional[Settings] = None):
        self.storage = storage
        self.settings = settings or Settings()

    def _path(self, session_id: str, endpoint: str) -> str:
        return f"{safe_key(session_id)}/{safe_key(endpoint)}.json"

    def load_states(self, session_id: str, endpoint: str) -> Dict[int, RuntimeState]:
        """Load an endpoint's states; empty when nothing (valid) is stored."""
        path = self._path(session_id, endpoint)
        if not self.storage.exists(path):
            return {}
        try:
            raw = json.loads(self.storage.read_bytes(path))
        except (OSError, ValueError):
            logger.exception(
                "Failed to read session state",
                extra={"session_id": session_id, "endpoint": endpoint},
            )
            return {}

        if not isinstance(raw, dict):
            logger.warning(
                "Discarding malformed session blob",
                extra={"session_id": session_id, "endpoint": endpoint},
            )
            return {}

        states: Dict[int, RuntimeState] = {}
        for key, data in raw.items():
            try:
                validate_state_dict(data)
                state = RuntimeState.from_dict(
                    data,
                    min_per_page=self.settings.min_per_page,
                    max_per_page=self.settings.max_per_page,
                    max_sorts=self.settings.max_sorts,
                )
            except (ValidationError, KeyError, TypeError, ValueError) as e:
                logger.warning(
                    "Discarding invalid runtime state",
                    extra={
                        "session_id": session_id,
                        "endpoint": endpoint,
                        "binding_key": key,
                        "error": str(e),
                    },
                )
                continue
            states[state.binding_id] = state
        return states

    def save_states(
            self,
            session_id: str,
            endpoint: str,
            states: Dict[int, RuntimeState],
    ) -> None:
        path = self._path(session_id, endpoint)
        data = {str(bid): state.to_dict() for bid, state in sorted(states.items())}
        self.storage.write_bytes(path, json.dumps(data, indent=2).encode("utf-8"))
        logger.debug(
            "Session state saved",
            extra={"session_id": session_id, "endpoint": endpoint, "n_states": len(data)},
        )

    def clear(self, session_id: str, endpoint: Optional[str] = None) -> None:
        """Forget one endpoint's states, or every endpoint of the session."""
        if endpoint is not None:
            self.storage.delete(self._path(session_id, endpoint))
            return
        for key in self.storage.list_keys(f"{safe_key(session_id)}/"):
            self.storage.delete(key)
