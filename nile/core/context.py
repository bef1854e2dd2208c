"""
Per-call execution contexts.
NileContext carries the resolved identity and a free-form store for one inbound call;
HookContext carries the hook pipeline state and audit log for one action execution.
Neither is ever shared between calls.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol


class RequestContext(Protocol):
    """Capability set handlers may rely on regardless of transport."""

    def get_header(self, name: str) -> Optional[str]: ...

    def get_cookie(self, name: str) -> Optional[str]: ...

    def get_identity(self) -> Optional[Dict[str, Any]]: ...

    def get_store(self) -> Dict[str, Any]: ...


class TransportContext:
    """Back-reference to the originating transport. Adapters subclass this."""

    protocol: str = "internal"

    def __init__(self, raw: Any = None):
        self.raw = raw

    def get_header(self, name: str) -> Optional[str]:
        return None

    def get_cookie(self, name: str) -> Optional[str]:
        return None


class MappingTransport(TransportContext):
    """Transport built from plain header/cookie mappings (RPC, tests)."""

    def __init__(
        self,
        protocol: str = "rpc",
        headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
        raw: Any = None,
    ):
        super().__init__(raw)
        self.protocol = protocol
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}
        self._cookies = dict(cookies or {})

    def get_header(self, name: str) -> Optional[str]:
        return self._headers.get(name.lower())

    def get_cookie(self, name: str) -> Optional[str]:
        return self._cookies.get(name)


@dataclass
class NileContext:
    """Request-scoped context handed to action handlers."""

    transport: Optional[TransportContext] = None
    auth: Optional[Dict[str, Any]] = None
    hook_state: Optional[Dict[str, Any]] = None
    _store: Dict[str, Any] = field(default_factory=dict, repr=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self._store.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    def get_auth(self) -> Optional[Dict[str, Any]]:
        return self.auth

    def get_user(self) -> Optional[Dict[str, Any]]:
        if not self.auth:
            return None
        return self.auth

    def get_identity(self) -> Optional[Dict[str, Any]]:
        return self.get_user()

    def get_store(self) -> Dict[str, Any]:
        return self._store

    def get_header(self, name: str) -> Optional[str]:
        return self.transport.get_header(name) if self.transport else None

    def get_cookie(self, name: str) -> Optional[str]:
        return self.transport.get_cookie(name) if self.transport else None


@dataclass(frozen=True)
class HookLogEntry:
    name: str
    input: Any
    output: Any
    passed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "input": self.input, "output": self.output, "passed": self.passed}


@dataclass
class HookContext:
    """Pipeline state for a single action execution."""

    action_name: str
    input: Any
    output: Any = None
    error: Optional[BaseException] = None
    state: Dict[str, Any] = field(default_factory=dict)
    log: Dict[str, List[HookLogEntry]] = field(default_factory=lambda: {"before": [], "after": []})

    def log_to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {phase: [e.to_dict() for e in entries] for phase, entries in self.log.items()}
