import json
import logging

from fastapi.testclient import TestClient

from archnorm import __version__
from archnorm.api.server import ServiceConfig, create_app
from archnorm.core.options import NormalizationOptions

RECORD = {
    "ochre": {
        "uuid": "r1",
        "resource": {
            "uuid": "r1",
            "identification": {"label": {"content": [{"lang": "eng", "string": "Tablet"}]}},
            "description": {"content": [{"lang": "eng", "string": [{"text": "Fine", "rend": "bold"}]}]},
        },
    }
}

SET_RECORD = {
    "set": {
        "uuid": "s1",
        "items": {"resource": [{"uuid": "r1"}], "concept": [{"uuid": "c1"}]},
    }
}

XML = b"""<ochre uuid="r1"><resource uuid="r1"><identification><label>Tablet</label></identification></resource></ochre>"""


def _client(**kwargs) -> TestClient:
    return TestClient(create_app(ServiceConfig(**kwargs)))


def test_health() -> None:
    r = _client(max_body_bytes=2048).get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["version"] == __version__
    assert body["languages"] == ["eng"]
    assert body["max_body_bytes"] == 2048


def test_normalize_json() -> None:
    r = _client().post("/normalize", json=RECORD)
    assert r.status_code == 200
    body = r.json()
    assert body["category"] == "resource"
    assert body["languages"] == ["eng"]
    assert body["record"]["item"]["identification"]["label"] == {"eng": "Tablet"}
    assert body["record"]["item"]["description"] == {"eng": "Fine"}


def test_normalize_rich_text_query() -> None:
    r = _client().post("/normalize", params={"rich_text": "true"}, json=RECORD)
    assert r.status_code == 200
    assert r.json()["record"]["item"]["description"] == {"eng": "**Fine**"}


def test_server_default_options() -> None:
    client = _client(options=NormalizationOptions(is_rich_text=True))
    r = client.post("/normalize", json=RECORD)
    assert r.json()["record"]["item"]["description"] == {"eng": "**Fine**"}


def test_set_item_categories() -> None:
    r = _client().post("/normalize", params={"item_category": "concept,resource"}, json=SET_RECORD)
    assert r.status_code == 200
    assert r.json()["item_categories"] == ["concept", "resource"]


def test_shape_violation_is_422() -> None:
    r = _client().post("/normalize", params={"category": "concept"}, json=RECORD)
    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "shape_violation"
    assert 'missing "concept" key' in body["detail"]


def test_language_failure_is_422() -> None:
    r = _client().post("/normalize", params={"languages": "fra"}, json=RECORD)
    assert r.status_code == 422
    assert r.json()["error"] == "language_not_found"


def test_invalid_language_code_is_value_violation() -> None:
    r = _client().post("/normalize", params={"languages": "french"}, json=RECORD)
    assert r.status_code == 422
    assert r.json()["error"] == "value_violation"


def test_invalid_json_is_400() -> None:
    r = _client().post("/normalize", content=b"{not json", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json()["detail"] == "invalid_json"


def test_body_too_large_is_413() -> None:
    payload = json.dumps(RECORD).encode("utf-8")
    r = _client(max_body_bytes=16).post("/normalize", content=payload, headers={"content-type": "application/json"})
    assert r.status_code == 413
    assert r.json()["detail"] == "body_too_large"


def test_normalize_xml_upload() -> None:
    r = _client().post("/normalize/xml", files={"file": ("record.xml", XML, "application/xml")})
    assert r.status_code == 200
    assert r.json()["record"]["item"]["identification"]["label"] == {"eng": "Tablet"}


def test_malformed_xml_upload_is_422() -> None:
    r = _client().post("/normalize/xml", files={"file": ("record.xml", b"<ochre>", "application/xml")})
    assert r.status_code == 422
    assert r.json()["error"] == "invalid_xml"


def test_xml_upload_too_large() -> None:
    r = _client(max_body_bytes=16).post("/normalize/xml", files={"file": ("record.xml", XML, "application/xml")})
    assert r.status_code == 413
    assert r.json()["detail"] == "upload_too_large"


def test_request_id_echoed_or_generated() -> None:
    client = _client()
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    generated = client.get("/health").headers["X-Request-ID"]
    assert len(generated) == 32


def test_request_id_with_unsafe_characters_is_replaced() -> None:
    r = _client().get("/health", headers={"X-Request-ID": "abc 123;drop"})
    assert r.headers["X-Request-ID"] != "abc 123;drop"
    assert len(r.headers["X-Request-ID"]) == 32


def test_normalize_call_logs_requested_options(caplog) -> None:
    client = _client()
    with caplog.at_level(logging.INFO, logger="archnorm.api"):
        r = client.post(
            "/normalize?category=resource&languages=eng&rich_text=true",
            content=json.dumps(RECORD),
            headers={"content-type": "application/json", "X-Request-ID": "req-1"},
        )
    assert r.status_code == 200
    (entry,) = [rec for rec in caplog.records if rec.getMessage() == "normalize_request"]
    assert entry.request_id == "req-1"
    assert entry.input == "json"
    assert entry.category == "resource"
    assert entry.languages == "eng"
    assert entry.rich_text == "true"
    assert entry.declared_bytes == len(json.dumps(RECORD))
    assert entry.status_code == 200
    assert "Tablet" not in entry.getMessage()
