"""Tests for ConstructionResult."""

import dataclasses

import pytest

from bot_storage import ConstructionResult, FileBackend


def test_ok():
    backend = FileBackend(":memory:")
    r = ConstructionResult.ok(backend)
    assert r.backend is backend
    assert r.kind == "file"
    assert r.reason == ""
    assert r.error is None


def test_failed():
    err = ConnectionRefusedError("connection refused")
    r = ConstructionResult.failed("mongodb", err)
    assert r.backend is None
    assert r.kind == "mongodb"
    assert r.reason == "connection refused"
    assert r.error is err


def test_failed_without_message_uses_exception_name():
    r = ConstructionResult.failed("mongodb", ImportError())
    assert r.reason == "ImportError"


def test_immutable():
    r = ConstructionResult.failed("mongodb", RuntimeError("x"))
    with pytest.raises(dataclasses.FrozenInstanceError):
        r.reason = "other"  # type: ignore[misc]
