"""
Action catalog: services and actions assembled once from a ServerConfig, then frozen.
Lookups are by exact (service, action) name; the executor never mutates the catalog.
Auto services are expanded here: each sub-service becomes its own service with
generated CRUD actions plus any custom actions it declares.
"""
import dataclasses
import logging
import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from nile.actions.factory import generate_actions
from nile.actions.protocol import Action, Service, SubService
from nile.actions.validation import build_validation_model
from nile.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

ActionKey = Tuple[str, str]


def sanitize_for_url_safety(name: str) -> str:
    """'User Profiles!' -> 'user-profiles'."""
    value = re.sub(r"[^a-z0-9]", "-", (name or "").strip().lower())
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def validate_server_config(config: Any) -> None:
    """Raise ConfigurationError for a catalog that can never serve a request."""
    services = getattr(config, "services", None)
    if not services:
        raise ConfigurationError("Server configuration must declare at least one service")
    for i, service in enumerate(services):
        name = getattr(service, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"Service at index {i} has no name")
        actions = getattr(service, "actions", None)
        if actions is None or isinstance(actions, (str, bytes)) or not isinstance(actions, Sequence):
            raise ConfigurationError(f"Service '{name}' must declare a sequence of actions")
        for j, action in enumerate(actions):
            action_name = getattr(action, "name", None)
            if not isinstance(action_name, str) or not action_name.strip():
                raise ConfigurationError(f"Action at index {j} of service '{name}' has no name")
            if not callable(getattr(action, "handler", None)):
                raise ConfigurationError(f"Action '{name}.{action_name}' has no callable handler")


def _with_service_meta(action: Action, meta: Dict[str, Any]) -> Action:
    if not meta:
        return action
    return dataclasses.replace(action, meta={**meta, **(action.meta or {})})


def _expand_sub(sub: SubService, tables: Mapping[str, Any]) -> Optional[Service]:
    if "*" in sub.disabled:
        return None
    store = tables.get(sub.table_name)
    if store is None:
        raise ConfigurationError(f"No table store registered for '{sub.table_name}' (sub-service '{sub.name}')")
    generated = [a for a in generate_actions(sub, store) if a.name not in sub.disabled]
    custom_names = {a.name for a in sub.actions}
    actions = list(sub.actions) + [a for a in generated if a.name not in custom_names]
    return Service(
        name=sub.name,
        actions=tuple(_with_service_meta(a, sub.meta) for a in actions),
        description=sub.description,
        meta=dict(sub.meta),
    )


def assemble_services(config: Any) -> List[Service]:
    """Own services first, then generated sub-services; services without actions are dropped."""
    db = getattr(config, "db", None)
    own: List[Service] = []
    generated: List[Service] = []
    for service in config.services:
        own.append(
            dataclasses.replace(
                service,
                actions=tuple(_with_service_meta(a, service.meta) for a in service.actions),
            )
        )
        if service.auto_service and service.subs:
            if db is None or not getattr(db, "tables", None):
                raise ConfigurationError(f"Auto service '{service.name}' requires db.tables")
            for sub in service.subs:
                expanded = _expand_sub(sub, db.tables)
                if expanded is not None:
                    generated.append(expanded)
    return [s for s in own + generated if s.actions]


class ActionCatalog:
    """Read-only (service, action) -> Action mapping with compiled validation models."""

    def __init__(self, config: Any):
        services = assemble_services(config)
        actions: Dict[ActionKey, Action] = {}
        models: Dict[ActionKey, Any] = {}
        global_hooks: Dict[str, Action] = {}
        by_service: Dict[str, Dict[str, Action]] = {}

        for service in services:
            if service.name in by_service:
                raise ConfigurationError(f"Duplicate service name '{service.name}'")
            own: Dict[str, Action] = {}
            for action in service.actions:
                key = (service.name, action.name)
                if key in actions:
                    raise ConfigurationError(f"Duplicate action '{service.name}.{action.name}'")
                actions[key] = action
                models[key] = build_validation_model(action.validation)
                own[action.name] = action
                global_hooks.setdefault(action.name, action)
            by_service[service.name] = own

        self.services: Tuple[Service, ...] = tuple(services)
        self.actions: Mapping[ActionKey, Action] = MappingProxyType(actions)
        self._models: Mapping[ActionKey, Any] = MappingProxyType(models)
        self._by_service = MappingProxyType({k: MappingProxyType(v) for k, v in by_service.items()})
        self._hooks = MappingProxyType(
            {name: MappingProxyType({**global_hooks, **local}) for name, local in by_service.items()}
        )
        self._by_name = MappingProxyType({s.name: s for s in services})
        self._by_slug = MappingProxyType({sanitize_for_url_safety(s.name): s for s in services})
        self._warn_missing_hooks()

    def _warn_missing_hooks(self) -> None:
        for (service_name, action_name), action in self.actions.items():
            if not action.hooks:
                continue
            resolvable = self._hooks[service_name]
            for hook in tuple(action.hooks.before) + tuple(action.hooks.after):
                if hook.name not in resolvable:
                    logger.warning(
                        f"Action '{service_name}.{action_name}' references unknown hook '{hook.name}'"
                    )

    def find_service(self, name: str) -> Optional[Service]:
        return self._by_name.get(name)

    def find_service_by_slug(self, slug: str) -> Optional[Service]:
        return self.find_service(slug) or self._by_slug.get(sanitize_for_url_safety(slug))

    def get_action(self, service_name: str, action_name: str) -> Optional[Action]:
        return self.actions.get((service_name, action_name))

    def service_actions(self, service_name: str) -> Mapping[str, Action]:
        return self._by_service.get(service_name, MappingProxyType({}))

    def validation_model(self, service_name: str, action_name: str) -> Any:
        return self._models.get((service_name, action_name))

    def hook_actions(self, service_name: str) -> Mapping[str, Action]:
        """Actions a hook name can resolve to: the owning service first, then any service."""
        return self._hooks.get(service_name, MappingProxyType({}))
