import json

from newsroom.api.envelope import error_envelope, success_envelope, workflow_error_envelope
from newsroom.core.context import set_request_id
from newsroom.core.errors import ConflictError


def test_success_envelope_shape() -> None:
    response = success_envelope({"value": 1})
    body = json.loads(response.body.decode("utf-8"))
    assert body["ok"] is True
    assert body["data"] == {"value": 1}
    assert body["error"] is None
    assert isinstance(body.get("meta"), dict)


def test_error_envelope_shape() -> None:
    response = error_envelope(code="bad_request", message="Invalid", status_code=400, details={"field": "x"})
    body = json.loads(response.body.decode("utf-8"))
    assert body["ok"] is False
    assert body["error"]["code"] == "bad_request"
    assert body["error"]["message"] == "Invalid"


def test_workflow_error_envelope_uses_error_status_and_code() -> None:
    set_request_id("req-envelope")
    try:
        response = workflow_error_envelope(
            ConflictError("Busy", code="transition_conflict", details={"entity": "article:4"}),
            meta={"path": "/api/v1/workflow"},
        )
    finally:
        set_request_id("")

    body = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 409
    assert body["error"] == {"code": "transition_conflict", "message": "Busy", "details": {"entity": "article:4"}}
    assert body["meta"]["request_id"] == "req-envelope"
    assert body["meta"]["path"] == "/api/v1/workflow"
