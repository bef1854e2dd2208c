"""
Catalog discovery shared by the REST, WebSocket and RPC adapters.
Everything here is filtered by the calling protocol's visibility flags.
"""
from typing import Any, Dict, List, Optional, Tuple

from nile.actions.protocol import Action, Service
from nile.actions.registry import ActionCatalog, sanitize_for_url_safety
from nile.actions.validation import json_schema
from nile.core.result import ErrorKind, SafeResult, ok, safe_error


def visible_actions(service: Service, protocol: str) -> List[Action]:
    return [a for a in service.actions if a.visibility.allows(protocol)]


def _hooks_to_dict(action: Action) -> Optional[Dict[str, Any]]:
    if not action.hooks:
        return None
    return {
        "before": [{"name": h.name, "can_fail": h.can_fail} for h in action.hooks.before],
        "after": [{"name": h.name, "can_fail": h.can_fail} for h in action.hooks.after],
    }


def describe_action(catalog: ActionCatalog, service: Service, action: Action) -> Dict[str, Any]:
    return {
        "name": action.name,
        "description": action.description,
        "validation": json_schema(catalog.validation_model(service.name, action.name)),
        "is_protected": action.is_protected is not False,
        "type": action.type,
        "hooks": _hooks_to_dict(action),
        "pipeline": action.wants_pipeline,
        "content_type": action.content_type or "application/json",
    }


def resolve_action(
    catalog: ActionCatalog,
    service_name: str,
    action_name: str,
    protocol: str,
) -> Tuple[Optional[Service], Optional[Action], Optional[SafeResult]]:
    """Slug-tolerant lookup. Actions hidden from the protocol are reported as not found."""
    service = catalog.find_service_by_slug(service_name)
    if service is None:
        return None, None, safe_error(f"Service '{service_name}' not found", ErrorKind.SERVICE_NOT_FOUND)
    action = catalog.get_action(service.name, action_name)
    if action is None:
        slug = sanitize_for_url_safety(action_name)
        action = next((a for a in service.actions if sanitize_for_url_safety(a.name) == slug), None)
    if action is None or not action.visibility.allows(protocol):
        return service, None, safe_error(
            f"Action '{action_name}' not found in service '{service_name}'",
            ErrorKind.ACTION_NOT_FOUND,
        )
    return service, action, None


def get_services(catalog: ActionCatalog, server_name: str, protocol: str) -> SafeResult:
    names = [sanitize_for_url_safety(s.name) for s in catalog.services if visible_actions(s, protocol)]
    return ok(names, f"List of all available services on {server_name}.")


def get_service_details(catalog: ActionCatalog, service_name: str, protocol: str) -> SafeResult:
    service = catalog.find_service_by_slug(service_name)
    if service is None:
        return safe_error(f"Service '{service_name}' not found", ErrorKind.SERVICE_NOT_FOUND)
    return ok(
        {
            "name": service.name,
            "description": service.description,
            "available_actions": [a.name for a in visible_actions(service, protocol)],
        },
        "Service Details",
    )


def get_action_details(catalog: ActionCatalog, service_name: str, action_name: str, protocol: str) -> SafeResult:
    service, action, error = resolve_action(catalog, service_name, action_name, protocol)
    if error is not None:
        return error
    return ok(describe_action(catalog, service, action), "Action Details")


def get_schemas(catalog: ActionCatalog, server_name: str, protocol: str) -> SafeResult:
    schemas = [
        {service.name: [describe_action(catalog, service, a) for a in visible_actions(service, protocol)]}
        for service in catalog.services
        if visible_actions(service, protocol)
    ]
    return ok(schemas, f"{server_name} Services actions Schemas")
