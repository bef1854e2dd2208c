"""
Run global action handlers in order; first rejection wins.
"""
import inspect
import logging
from typing import Any, List, Optional, Tuple

from nile.core.logs import log_error
from nile.policies.protocol import ActionEvent, GateDecision, OnActionHandler, decision_from, reject

logger = logging.getLogger(__name__)


def as_handlers(value: Any) -> List[OnActionHandler]:
    """Accept a single callable, a list/tuple of callables, or None."""
    if value is None:
        return []
    if callable(value):
        return [value]
    return [h for h in value if h is not None]


async def run_action_handlers(
    handlers: List[OnActionHandler],
    event: ActionEvent,
    action: Any,
    payload: Any,
) -> Tuple[bool, Optional[GateDecision]]:
    """
    (True, None) when every handler allows; (False, decision) on the first rejection.
    A handler that raises rejects the call.
    """
    for handler in handlers:
        try:
            verdict = handler(event, action, payload)
            if inspect.isawaitable(verdict):
                verdict = await verdict
        except Exception as e:
            error_id = log_error(
                logger,
                f"on_action_handler raised during {event.get('stage')} stage",
                at_function="run_action_handlers",
                data={"action_name": event.get("action_name"), "service_name": event.get("service_name")},
                exc_info=e,
            )
            return False, reject(f"{event.get('stage', 'before').capitalize()} hook failed", {"error_id": error_id})
        decision = decision_from(verdict)
        if not decision["allowed"]:
            return False, decision
    return True, None
