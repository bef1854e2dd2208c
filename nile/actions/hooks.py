"""
Hook pipeline: before hooks -> handler -> after hooks.
Each step's Ok data feeds the next step. A failing hook aborts the call unless it is
declared can_fail, in which case the chain continues with the input the hook received.
Every hook that ran gets exactly one log entry.
"""
import copy
import inspect
import logging
from typing import Any, Mapping, Sequence, Tuple

from nile.actions.protocol import Action, HookDefinition
from nile.core.context import HookContext, HookLogEntry, NileContext
from nile.core.errors import HookNotFoundError
from nile.core.logs import log_error
from nile.core.result import SafeResult, is_ok, is_safe_result, ok, safe_error

logger = logging.getLogger(__name__)


async def call_handler(handler: Any, data: Any, context: Any) -> Any:
    """Handlers may be sync or async."""
    result = handler(data, context)
    if inspect.isawaitable(result):
        result = await result
    return result


def enhance_context(external_context: Any, hook_context: HookContext) -> Any:
    """Bind hook_state to the pipeline's state dict (by reference) without mutating the caller's context."""
    if external_context is None:
        return NileContext(hook_state=hook_context.state)
    if isinstance(external_context, dict):
        return {**external_context, "hook_state": hook_context.state}
    enhanced = copy.copy(external_context)
    enhanced.hook_state = hook_context.state
    return enhanced


class HookExecutor:
    """Runs an action with its declared hooks. Hook names resolve through the given mapping."""

    def __init__(self, actions: Mapping[str, Action]):
        self._actions = actions

    def _resolve(self, name: str) -> Action:
        action = self._actions.get(name)
        if action is None:
            raise HookNotFoundError(name)
        return action

    async def _run_hook(
        self,
        hook: HookDefinition,
        data: Any,
        context: Any,
    ) -> Tuple[bool, Any, HookLogEntry]:
        """Returns (continue, output_or_error_result, log_entry)."""
        action = self._resolve(hook.name)
        try:
            result = await call_handler(action.handler, data, context)
        except Exception as e:
            error_id = log_error(
                logger,
                f"Hook '{hook.name}' threw an error",
                at_function="_run_hook",
                data={"input": data},
                exc_info=e,
            )
            entry = HookLogEntry(name=hook.name, input=data, output=str(e), passed=False)
            if hook.can_fail:
                return True, data, entry
            return False, safe_error(f"Hook '{hook.name}' failed", error_id), entry

        if not is_safe_result(result):
            error_id = log_error(logger, f"Hook '{hook.name}' returned a malformed result", at_function="_run_hook")
            entry = HookLogEntry(name=hook.name, input=data, output=result, passed=False)
            if hook.can_fail:
                return True, data, entry
            return False, safe_error(f"Hook '{hook.name}' failed", error_id), entry

        if is_ok(result):
            return True, result.get("data"), HookLogEntry(name=hook.name, input=data, output=result.get("data"), passed=True)

        entry = HookLogEntry(name=hook.name, input=data, output=result.get("data"), passed=False)
        if hook.can_fail:
            return True, data, entry
        return False, result, entry

    async def _run_phase(
        self,
        phase: str,
        hooks: Sequence[HookDefinition],
        data: Any,
        hook_context: HookContext,
        context: Any,
    ) -> Tuple[bool, Any]:
        current = data
        for hook in hooks:
            passed, output, entry = await self._run_hook(hook, current, context)
            hook_context.log[phase].append(entry)
            if not passed:
                return False, output
            current = output
        return True, current

    async def execute_action_with_hooks(self, action: Action, data: Any, external_context: Any = None) -> SafeResult:
        hook_context = HookContext(action_name=action.name, input=data)
        try:
            context = enhance_context(external_context, hook_context)
            hooks = action.hooks
            current = data

            if hooks and hooks.before:
                passed, output = await self._run_phase("before", hooks.before, current, hook_context, context)
                if not passed:
                    return output
                current = output

            main_context = context if external_context is not None else hook_context
            result = await call_handler(action.handler, current, main_context)
            if not is_safe_result(result):
                error_id = log_error(
                    logger,
                    f"Action '{action.name}' returned a malformed result",
                    at_function="execute_action_with_hooks",
                )
                return safe_error(f"Action '{action.name}' returned a malformed result", error_id)
            if not is_ok(result):
                hook_context.error = RuntimeError(result.get("message") or "")
                return result
            hook_context.output = result.get("data")
            current = hook_context.output

            if hooks and hooks.after:
                passed, output = await self._run_phase("after", hooks.after, current, hook_context, context)
                if not passed:
                    return output
                current = output

            if action.wants_pipeline:
                return ok(
                    {
                        "result": current,
                        "pipeline": {"state": hook_context.state, "log": hook_context.log_to_dict()},
                    }
                )
            return ok(current)
        except Exception as e:
            error_id = log_error(
                logger,
                f"Action '{action.name}' pipeline failed",
                at_function="execute_action_with_hooks",
                data={"log": hook_context.log_to_dict()},
                exc_info=e,
            )
            return safe_error(f"Action '{action.name}' pipeline failed", error_id)
