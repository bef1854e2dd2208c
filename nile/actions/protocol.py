"""
Declarative action/service model.
Every transport executes the same Action records; handler(payload, context) -> SafeResult.
Hooks are ordinary actions referenced by name.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Tuple, Union

from nile.core.result import SafeResult

ActionHandler = Callable[[Any, Any], Union[SafeResult, Awaitable[SafeResult]]]


@dataclass(frozen=True)
class HookDefinition:
    name: str
    can_fail: bool = False


@dataclass(frozen=True)
class ActionHooks:
    before: Tuple[HookDefinition, ...] = ()
    after: Tuple[HookDefinition, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.before or self.after)


@dataclass(frozen=True)
class ActionResultConfig:
    pipeline: bool = False


@dataclass(frozen=True)
class Visibility:
    rest: bool = True
    rpc: bool = True
    ws: bool = True

    def allows(self, protocol: str) -> bool:
        return getattr(self, protocol, True) is not False


@dataclass(frozen=True)
class Action:
    """A named, invocable unit of business logic. Protected unless is_protected=False."""

    name: str
    handler: ActionHandler
    description: str = ""
    validation: Any = None  # pydantic model class or Validation
    is_protected: bool = True
    hooks: Optional[ActionHooks] = None
    result: Optional[ActionResultConfig] = None
    meta: Dict[str, Any] = field(default_factory=dict)
    visibility: Visibility = field(default_factory=Visibility)
    type: str = "custom"  # custom | auto
    agentic: bool = True
    content_type: Optional[str] = None  # multipart/form-data for upload actions; JSON when None

    @property
    def wants_pipeline(self) -> bool:
        return bool(self.result and self.result.pipeline)


@dataclass(frozen=True)
class SubService:
    """Table-backed sub-service; its CRUD actions are generated at catalog assembly."""

    name: str
    table_name: str
    model: Any = None  # pydantic row model
    id_name: str = "id"
    description: str = ""
    actions: Sequence[Action] = ()
    public_actions: Sequence[str] = ()
    disabled: Sequence[str] = ()
    validation: Any = None
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Service:
    name: str
    actions: Sequence[Action] = ()
    description: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)
    auto_service: bool = False
    subs: Sequence[SubService] = ()
