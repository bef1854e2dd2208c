from nile.core.result import (
    ErrorKind,
    error_kind,
    is_error,
    is_ok,
    is_safe_result,
    normalize,
    ok,
    safe_error,
)


def test_ok_discriminants_agree():
    r = ok({"a": 1})
    assert r["status"] is True
    assert r["is_ok"] is True
    assert r["is_error"] is False
    assert r["message"] == "Success"
    assert is_ok(r) and not is_error(r)


def test_error_discriminants_agree():
    r = safe_error("boom", "some-id", extra=1)
    assert r["status"] is False
    assert r["is_ok"] is False
    assert r["is_error"] is True
    assert r["data"] == {"error_id": "some-id", "extra": 1}
    assert is_error(r) and not is_ok(r)


def test_error_kind_enum_is_stored_as_string():
    r = safe_error("nope", ErrorKind.AUTH_FAILED)
    assert r["data"]["error_id"] == "auth-failed"
    assert error_kind(r) is ErrorKind.AUTH_FAILED


def test_error_kind_none_for_correlation_ids_and_success():
    assert error_kind(safe_error("x", "3f2a9c")) is None
    assert error_kind(ok()) is None


def test_is_safe_result_shapes():
    assert is_safe_result(ok())
    assert is_safe_result(normalize(ok(1)))
    assert is_safe_result(safe_error("x", "id"))
    assert not is_safe_result(None)
    assert not is_safe_result({"status": True})
    assert not is_safe_result({"status": False, "message": "x", "data": None})
    assert not is_safe_result({"status": True, "data": 1, "is_ok": False})
    assert not is_safe_result("ok")


def test_normalize_strips_discriminants():
    assert normalize(ok([1, 2], "Listed")) == {"status": True, "message": "Listed", "data": [1, 2]}
    n = normalize(safe_error("bad", ErrorKind.VALIDATION_FAILED, errors=[]))
    assert set(n) == {"status", "message", "data"}
    assert n["data"]["error_id"] == "validation-failed"
