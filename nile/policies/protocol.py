"""
Global action handler protocol: on_action_handler(event, action, payload) -> verdict.
Called once before validation (stage="before") and once after execution (stage="after").
Accepted verdicts: True, None, an Ok SafeResult (allow); False, {"error": str},
or an Err SafeResult (reject).
"""
from typing import Any, Awaitable, Callable, Optional, TypedDict, Union


class ActionEvent(TypedDict, total=False):
    action_name: str
    service_name: str
    payload: Any
    stage: str  # before | after
    result: Any  # after stage only


class GateDecision(TypedDict):
    allowed: bool
    message: str
    detail: Optional[Any]


OnActionHandler = Callable[[ActionEvent, Any, Any], Union[Any, Awaitable[Any]]]


def allow() -> GateDecision:
    return {"allowed": True, "message": "OK", "detail": None}


def reject(message: str, detail: Any = None) -> GateDecision:
    return {"allowed": False, "message": message or "Action rejected", "detail": detail}


def decision_from(verdict: Any) -> GateDecision:
    """Interpret whatever a global handler returned."""
    if verdict is None or verdict is True:
        return allow()
    if verdict is False:
        return reject("Action rejected")
    if isinstance(verdict, dict):
        if "error" in verdict:
            return reject(str(verdict.get("error") or "Action rejected"), verdict)
        if verdict.get("status") is True:
            return allow()
        if verdict.get("status") is False:
            return reject(verdict.get("message") or "Action rejected", verdict.get("data"))
    return reject(f"Unsupported on_action_handler result: {type(verdict).__name__}")
