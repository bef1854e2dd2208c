from nile.policies.protocol import ActionEvent, GateDecision, OnActionHandler, decision_from
from nile.policies.runner import as_handlers, run_action_handlers

__all__ = ["ActionEvent", "GateDecision", "OnActionHandler", "as_handlers", "decision_from", "run_action_handlers"]
