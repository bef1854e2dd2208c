from unittest.mock import Mock

import pytest

from nile.actions.hooks import HookExecutor, enhance_context
from nile.actions.protocol import Action, ActionHooks, ActionResultConfig, HookDefinition
from nile.core.context import HookContext, NileContext
from nile.core.result import ok, safe_error


def hook_a(data, context):
    return ok({**data, "a": True})


def hook_b(data, context):
    return safe_error("B always fails", "b-failed")


def hook_c(data, context):
    context.hook_state["c_input"] = dict(data)
    return ok({**data, "c": True})


def main_handler(data, context):
    return ok({"main": data})


def executor_for(*actions):
    return HookExecutor({a.name: a for a in actions})


A = Action(name="A", handler=hook_a)
B = Action(name="B", handler=hook_b)
C = Action(name="C", handler=hook_c)


@pytest.mark.asyncio
async def test_hooks_chain_in_order_and_failed_optional_hook_is_skipped():
    action = Action(
        name="main",
        handler=main_handler,
        hooks=ActionHooks(
            before=(HookDefinition("A"), HookDefinition("B", can_fail=True), HookDefinition("C")),
        ),
        result=ActionResultConfig(pipeline=True),
    )
    r = await executor_for(A, B, C, action).execute_action_with_hooks(action, {"x": 1})

    assert r["status"] is True
    pipeline = r["data"]["pipeline"]
    before = pipeline["log"]["before"]
    assert [e["name"] for e in before] == ["A", "B", "C"]
    assert [e["passed"] for e in before] == [True, False, True]
    # C sees A's output, not B's error
    assert before[2]["input"] == before[0]["output"] == {"x": 1, "a": True}
    assert pipeline["state"]["c_input"] == {"x": 1, "a": True}
    assert r["data"]["result"] == {"main": {"x": 1, "a": True, "c": True}}


@pytest.mark.asyncio
async def test_required_before_hook_failure_aborts_without_calling_handler():
    spy = Mock(return_value=ok("should not run"))
    action = Action(name="main", handler=spy, hooks=ActionHooks(before=(HookDefinition("B"),)))
    r = await executor_for(B, action).execute_action_with_hooks(action, {"x": 1})

    spy.assert_not_called()
    assert r["status"] is False
    assert r["message"] == "B always fails"
    assert r["data"]["error_id"] == "b-failed"


@pytest.mark.asyncio
async def test_raising_hook_becomes_hook_failed_error():
    def explode(data, context):
        raise RuntimeError("kaboom")

    boom = Action(name="boom", handler=explode)
    action = Action(name="main", handler=main_handler, hooks=ActionHooks(before=(HookDefinition("boom"),)))
    r = await executor_for(boom, action).execute_action_with_hooks(action, {})
    assert r["status"] is False
    assert r["message"] == "Hook 'boom' failed"


@pytest.mark.asyncio
async def test_missing_hook_reference_fails_the_pipeline():
    spy = Mock(return_value=ok())
    action = Action(name="main", handler=spy, hooks=ActionHooks(before=(HookDefinition("ghost"),)))
    r = await executor_for(action).execute_action_with_hooks(action, {})

    spy.assert_not_called()
    assert r["status"] is False
    assert r["message"] == "Action 'main' pipeline failed"
    assert len(r["data"]["error_id"]) == 32


@pytest.mark.asyncio
async def test_handler_error_skips_after_hooks():
    after = Mock(return_value=ok())
    after_action = Action(name="after", handler=after)
    action = Action(
        name="main",
        handler=lambda data, context: safe_error("main failed", "main-failed"),
        hooks=ActionHooks(after=(HookDefinition("after"),)),
    )
    r = await executor_for(after_action, action).execute_action_with_hooks(action, {})
    after.assert_not_called()
    assert r["data"]["error_id"] == "main-failed"


@pytest.mark.asyncio
async def test_after_hooks_transform_output():
    async def add_footer(data, context):
        return ok({**data, "footer": True})

    footer = Action(name="footer", handler=add_footer)
    action = Action(name="main", handler=main_handler, hooks=ActionHooks(after=(HookDefinition("footer"),)))
    r = await executor_for(footer, action).execute_action_with_hooks(action, {"x": 1})
    assert r["data"] == {"main": {"x": 1}, "footer": True}


@pytest.mark.asyncio
async def test_required_after_hook_failure_returns_its_error():
    action = Action(name="main", handler=main_handler, hooks=ActionHooks(after=(HookDefinition("B"),)))
    r = await executor_for(B, action).execute_action_with_hooks(action, {})
    assert r["data"]["error_id"] == "b-failed"


@pytest.mark.asyncio
async def test_pipeline_toggle_off_has_no_pipeline_key():
    action = Action(name="main", handler=main_handler, hooks=ActionHooks(before=(HookDefinition("A"),)))
    r = await executor_for(A, action).execute_action_with_hooks(action, {"x": 1})
    assert r["data"] == {"main": {"x": 1, "a": True}}
    assert "pipeline" not in r["data"]


@pytest.mark.asyncio
async def test_dict_context_gets_shared_hook_state():
    def remember(data, context):
        context["hook_state"]["seen"] = context["tenant"]
        return ok(data)

    def read_state(data, context):
        return ok({"seen": context["hook_state"]["seen"]})

    remember_action = Action(name="remember", handler=remember)
    action = Action(name="main", handler=read_state, hooks=ActionHooks(before=(HookDefinition("remember"),)))
    caller_context = {"tenant": "t-1"}
    r = await executor_for(remember_action, action).execute_action_with_hooks(action, {}, caller_context)
    assert r["data"] == {"seen": "t-1"}
    assert "hook_state" not in caller_context


def test_enhance_context_variants():
    hook_context = HookContext(action_name="a", input=None)

    fresh = enhance_context(None, hook_context)
    assert isinstance(fresh, NileContext)
    assert fresh.hook_state is hook_context.state

    original = NileContext(auth={"user_id": "u"})
    enhanced = enhance_context(original, hook_context)
    assert enhanced is not original
    assert enhanced.hook_state is hook_context.state
    assert enhanced.auth == {"user_id": "u"}
    assert original.hook_state is None
