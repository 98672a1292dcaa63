"""Tests for the HTTP endpoints."""

import logging

import pytest
from fastapi.testclient import TestClient

from useradmin import main
from useradmin.filters import new_configuration


@pytest.fixture
def client(registry, monkeypatch):
    monkeypatch.setattr(main, "REG", registry)
    return TestClient(main.app)


def _ids(config):
    group = config["groups"][0]
    return group["id"], group["conditions"][0]["id"]


def test_health(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert set(r.json()["entities"]) == {"users", "clients", "team_members"}


def test_operators(client):
    ops = client.get("/operators").json()["operators"]
    assert len(ops) == 16
    assert ops[0] == {"value": "eq", "label": "Equals"}


def test_fields(client):
    r = client.get("/fields/users")
    assert r.status_code == 200
    role = next(f for f in r.json()["fields"] if f["name"] == "role")
    assert role["operators"] == ["eq", "neq", "in", "notIn"]
    assert role["options"][0] == {"value": "ADMIN", "label": "Admin"}


def test_unknown_entity_is_404(client):
    assert client.get("/fields/projects").status_code == 404


def test_edit_flow(client):
    config = client.post("/filters/new").json()["filterConfig"]
    group_id, cond_id = _ids(config)

    r = client.post("/filters/conditions/field", json={
        "filterConfig": config, "groupId": group_id, "conditionId": cond_id, "field": "role",
    })
    assert r.status_code == 200
    config = r.json()["filterConfig"]
    cond = config["groups"][0]["conditions"][0]
    assert (cond["field"], cond["operator"], cond["valueType"], cond["value"]) == (
        "role", "eq", "select", ""
    )

    config = client.post("/filters/conditions/operator", json={
        "filterConfig": config, "groupId": group_id, "conditionId": cond_id, "operator": "in",
    }).json()["filterConfig"]
    config = client.post("/filters/conditions/value", json={
        "filterConfig": config, "groupId": group_id, "conditionId": cond_id,
        "value": ["ADMIN", "STAFF"],
    }).json()["filterConfig"]
    cond = config["groups"][0]["conditions"][0]
    assert (cond["operator"], cond["value"]) == ("in", ["ADMIN", "STAFF"])

    config = client.post("/filters/conditions/add", json={
        "filterConfig": config, "groupId": group_id,
    }).json()["filterConfig"]
    assert len(config["groups"][0]["conditions"]) == 2
    added_id = config["groups"][0]["conditions"][1]["id"]

    config = client.post("/filters/conditions/remove", json={
        "filterConfig": config, "groupId": group_id, "conditionId": cond_id,
    }).json()["filterConfig"]
    assert [c["id"] for c in config["groups"][0]["conditions"]] == [added_id]


def test_unknown_field_is_noop(client):
    config = new_configuration().to_dict()
    group_id, cond_id = _ids(config)
    r = client.post("/filters/conditions/field", json={
        "filterConfig": config, "groupId": group_id, "conditionId": cond_id, "field": "nickname",
    })
    assert r.status_code == 200
    assert r.json()["filterConfig"] == config


def test_unknown_group_is_404(client):
    config = new_configuration().to_dict()
    r = client.post("/filters/conditions/add", json={"filterConfig": config, "groupId": "nope"})
    assert r.status_code == 404


def test_bad_operator_is_422(client):
    config = new_configuration().to_dict()
    group_id, cond_id = _ids(config)
    r = client.post("/filters/conditions/operator", json={
        "filterConfig": config, "groupId": group_id, "conditionId": cond_id, "operator": "like",
    })
    assert r.status_code == 422


def test_invalid_configuration_is_400(client):
    r = client.post("/filters/validate", json={"filterConfig": {"logic": "AND", "groups": []}})
    assert r.status_code == 400


def test_group_edits(client):
    config = new_configuration().to_dict()
    root_group = config["groups"][0]["id"]

    config = client.post("/filters/groups/toggle", json={"filterConfig": config}).json()["filterConfig"]
    assert config["logic"] == "OR"

    config = client.post("/filters/groups/toggle", json={
        "filterConfig": config, "groupId": root_group,
    }).json()["filterConfig"]
    assert config["groups"][0]["logic"] == "OR"

    config = client.post("/filters/groups/add", json={
        "filterConfig": config, "parentId": root_group,
    }).json()["filterConfig"]
    nested = config["groups"][0]["nestedGroups"]
    assert len(nested) == 1

    config = client.post("/filters/groups/remove", json={
        "filterConfig": config, "parentId": root_group, "groupId": nested[0]["id"],
    }).json()["filterConfig"]
    assert config["groups"][0]["nestedGroups"] == []

    config = client.post("/filters/groups/add", json={"filterConfig": config}).json()["filterConfig"]
    assert len(config["groups"]) == 2

    for g in list(config["groups"]):
        config = client.post("/filters/groups/remove", json={
            "filterConfig": config, "groupId": g["id"],
        }).json()["filterConfig"]
    assert len(config["groups"]) == 1
    assert config["groups"][0]["id"] not in {root_group}


def test_validate(client, nested_config):
    r = client.post("/filters/validate", json={"filterConfig": nested_config.to_dict()})
    assert r.json() == {"valid": True, "problems": []}

    data = nested_config.to_dict()
    data["groups"][1]["conditions"][0]["value"] = "BANNED"
    r = client.post("/filters/validate", json={"filterConfig": data})
    assert r.json()["valid"] is False
    assert r.json()["problems"] == ["Values not allowed for status: BANNED"]


def test_sql(client, nested_config):
    r = client.post("/filters/sql", json={
        "filterConfig": nested_config.to_dict(), "paramstyle": "pyformat",
    })
    assert r.status_code == 200
    body = r.json()
    assert body["where"].startswith("WHERE (role IN (%(p1)s, %(p2)s)")
    assert body["params"]["p5"] == "SUSPENDED"


def test_sql_rejects_disallowed_operator(client):
    config = new_configuration().to_dict()
    cond = config["groups"][0]["conditions"][0]
    cond.update(field="role", operator="contains", value="AD", valueType="select")
    r = client.post("/filters/sql", json={"filterConfig": config})
    assert r.status_code == 400
    assert "not allowed" in r.json()["detail"]


def test_apply(client, nested_config):
    records = [
        {"role": "ADMIN", "experienceYears": 9, "hourlyRate": 80, "status": "ACTIVE"},
        {"role": "CLIENT", "experienceYears": 0, "hourlyRate": 0, "status": "ACTIVE"},
    ]
    r = client.post("/filters/apply", json={
        "filterConfig": nested_config.to_dict(), "records": records,
    })
    assert r.status_code == 200
    body = r.json()
    assert body["rows"] == records[:1]
    assert body["filterConfig"]["metadata"]["resultCount"] == 1
    assert "appliedAt" in body["filterConfig"]["metadata"]


def test_expand_preset(client, nested_config):
    payload = {
        "id": "p-1",
        "name": "Review",
        "entityType": "users",
        "filterConfig": nested_config.to_dict(),
        "usageCount": 1,
    }
    r = client.post("/presets/expand", json=payload)
    assert r.status_code == 200
    body = r.json()
    assert body["preset"]["usageCount"] == 2
    assert body["preset"]["lastUsedAt"] is not None
    assert body["filterConfig"] == nested_config.to_dict()


def test_expand_preset_unknown_entity(client, nested_config):
    payload = {"name": "X", "entityType": "projects", "filterConfig": nested_config.to_dict()}
    assert client.post("/presets/expand", json=payload).status_code == 404


def _half_filled_range():
    config = new_configuration().to_dict()
    config["groups"][0]["conditions"][0].update(
        field="createdAt", operator="between", value=["2024-01-01", ""], valueType="dateRange",
    )
    return config


def test_apply_half_filled_range(client):
    records = [{"createdAt": "2023-05-01"}, {"createdAt": "2024-05-01"}]
    r = client.post("/filters/apply", json={"filterConfig": _half_filled_range(), "records": records})
    assert r.status_code == 200
    assert r.json()["rows"] == records


def test_sql_half_filled_range(client):
    r = client.post("/filters/sql", json={"filterConfig": _half_filled_range()})
    assert r.status_code == 200
    assert r.json()["where"] == "WHERE 1=1"
    assert r.json()["params"] == []


def test_apply_skips_unreadable_record_values(client):
    config = new_configuration().to_dict()
    config["groups"][0]["conditions"][0].update(
        field="hourlyRate", operator="gt", value="30", valueType="number",
    )
    records = [{"hourlyRate": "n/a"}, {"hourlyRate": 45}]
    r = client.post("/filters/apply", json={"filterConfig": config, "records": records})
    assert r.status_code == 200
    assert r.json()["rows"] == [{"hourlyRate": 45}]


def test_rejected_sql_is_logged(client, caplog):
    config = new_configuration().to_dict()
    config["groups"][0]["conditions"][0].update(
        field="role", operator="contains", value="AD", valueType="select",
    )
    with caplog.at_level(logging.WARNING, logger="api"):
        r = client.post("/filters/sql", json={"filterConfig": config})
    assert r.status_code == 400
    assert any("SQL build rejected" in rec.getMessage() for rec in caplog.records)


def test_apply_unexpected_failure_is_500(client, nested_config, monkeypatch, caplog):
    def broken(config, records):
        raise RuntimeError("boom")

    monkeypatch.setattr(main, "apply_filter", broken)
    with caplog.at_level(logging.ERROR, logger="api"):
        r = client.post("/filters/apply", json={"filterConfig": nested_config.to_dict(), "records": []})
    assert r.status_code == 500
    assert r.json()["detail"] == "Filter evaluation failed"
    assert any(rec.exc_info for rec in caplog.records if rec.name == "api")
