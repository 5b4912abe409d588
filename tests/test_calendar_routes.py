from unittest.mock import Mock

import pytest

from clinic_console import _default_config, create_app


def _set_date(client, day="2024-06-12"):
    response = client.post("/calendar/date", json={"date": day})
    assert response.status_code == 200
    return response.get_json()


def _cell(payload, day):
    return next(cell for cell in payload["cells"] if cell["date"] == day)


def test_default_view_is_week(client):
    payload = client.get("/calendar").get_json()
    assert payload["state"]["view_mode"] == "week"
    assert payload["state"]["filters"] == {"doctor_id": "all", "status": "all", "type": "all", "query": ""}
    assert len(payload["cells"]) == 7


def test_week_grid_with_layout(client):
    payload = _set_date(client)
    assert payload["success"] is True
    assert payload["title"] == "Week of June 12, 2024"
    assert payload["range"] == {"start": "2024-06-09", "end": "2024-06-15"}
    wednesday = _cell(payload, "2024-06-12")
    assert [a["id"] for a in wednesday["appointments"]] == ["app-1", "app-2"]
    assert wednesday["boxes"] == [
        {"appointment_id": "app-1", "top_offset": 60, "height": 20, "z_index": 1},
        {"appointment_id": "app-2", "top_offset": 70, "height": 50, "z_index": 2},
    ]
    assert wednesday["appointments"][0]["status_style"] == {"color": "#3f51b5", "label": "Scheduled"}
    assert payload["axis"]["total_minutes"] == 660
    assert payload["axis"]["labels"][0] == {"hour": 8, "text": "8:00 AM", "top_offset": 0}


def test_state_persists_in_session_across_requests(client):
    _set_date(client)
    client.post("/calendar/view-mode", json={"mode": "day"})
    payload = client.get("/calendar").get_json()
    assert payload["state"] == {
        "anchor_date": "2024-06-12",
        "view_mode": "day",
        "filters": {"doctor_id": "all", "status": "all", "type": "all", "query": ""},
    }
    assert len(payload["cells"]) == 1
    assert len(payload["slots"]) == 22
    assert payload["slots"][0]["start"] == "2024-06-12T08:00:00"


def test_navigate_by_week_and_month(client):
    _set_date(client)
    payload = client.post("/calendar/navigate", json={"direction": "next"}).get_json()
    assert payload["state"]["anchor_date"] == "2024-06-19"
    assert [a["id"] for a in _cell(payload, "2024-06-20")["appointments"]] == ["app-3"]

    client.post("/calendar/view-mode", json={"mode": "month"})
    payload = client.post("/calendar/navigate", json={"direction": "previous"}).get_json()
    assert payload["state"]["anchor_date"] == "2024-05-19"
    assert payload["title"] == "May 2024"
    assert len(payload["cells"]) == 42
    assert payload["rows"] == 6


def test_month_view_cells(client):
    _set_date(client)
    payload = client.post("/calendar/view-mode", json={"mode": "month"}).get_json()
    assert payload["cells"][0]["date"] == "2024-05-26"
    assert payload["cells"][0]["is_in_focused_period"] is False
    june_12 = _cell(payload, "2024-06-12")
    assert june_12["is_in_focused_period"] is True
    assert june_12["overflow"] == 0
    assert "boxes" not in june_12
    assert payload["max_visible"] == 3


def test_filters_apply_and_reset(client):
    _set_date(client)
    payload = client.post("/calendar/filters", json={"criterion": "doctor_id", "value": "d-002"}).get_json()
    assert [a["id"] for a in _cell(payload, "2024-06-12")["appointments"]] == ["app-2"]

    payload = client.post("/calendar/filters", json={"criterion": "query", "value": "LAB RESULTS"}).get_json()
    assert _cell(payload, "2024-06-12")["appointments"] == []

    payload = client.post("/calendar/filters", json={"reset": True}).get_json()
    assert len(_cell(payload, "2024-06-12")["appointments"]) == 2


def test_focus_promotes_box(client):
    _set_date(client)
    payload = client.get("/calendar?focus=app-1").get_json()
    boxes = _cell(payload, "2024-06-12")["boxes"]
    assert boxes[-1]["appointment_id"] == "app-1"


def test_today_resets_anchor(client):
    import datetime as dt

    _set_date(client)
    payload = client.post("/calendar/today", json={}).get_json()
    assert payload["state"]["anchor_date"] == dt.date.today().isoformat()


@pytest.mark.parametrize(
    "path,body",
    [
        ("/calendar/navigate", {"direction": "sideways"}),
        ("/calendar/view-mode", {"mode": "year"}),
        ("/calendar/date", {"date": "June 12"}),
        ("/calendar/filters", {"criterion": "room", "value": "1"}),
        ("/calendar/filters", {}),
    ],
)
def test_invalid_input_is_rejected(client, path, body):
    response = client.post(path, json=body)
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_unavailable_source_returns_empty_grid_with_error(app_config):
    app = create_app({**app_config, "CALENDAR_FIXTURE_UNAVAILABLE": True})
    client = app.test_client()
    payload = _set_date(client)
    assert payload["success"] is False
    assert payload["error"] == "Failed to load appointments. Please try again."
    assert all(cell["appointments"] == [] for cell in payload["cells"])

    doctors = client.get("/calendar/doctors").get_json()
    assert doctors["success"] is False
    assert doctors["doctors"] == [{"id": "all", "name": "All Doctors"}]


def test_doctor_choices(client):
    payload = client.get("/calendar/doctors").get_json()
    assert payload["doctors"] == [
        {"id": "all", "name": "All Doctors"},
        {"id": "d-001", "name": "Dr. Sarah Johnson"},
        {"id": "d-002", "name": "Dr. Michael Chen"},
    ]


def test_legend(client):
    payload = client.get("/calendar/legend").get_json()
    assert [entry["value"] for entry in payload["status"]] == ["scheduled", "completed", "canceled", "no-show"]
    assert payload["type"][2] == {"value": "emergency", "color": "#f44336", "label": "Emergency"}


def test_corrupt_session_state_falls_back_to_default(client):
    with client.session_transaction() as sess:
        sess["calendar_state"] = {"anchor_date": "not-a-date"}
    payload = client.get("/calendar").get_json()
    assert payload["state"]["view_mode"] == "week"


def test_security_headers_and_no_store(client):
    response = client.get("/calendar")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Cache-Control"] == "no-store"


def test_csrf_required_on_posts_when_enabled(app_config):
    app = create_app({**app_config, "WTF_CSRF_ENABLED": True})
    response = app.test_client().post("/calendar/navigate", json={"direction": "next"})
    assert response.status_code == 400
    assert "CSRF" in response.get_json()["errors"][0]


class TestAuthentication:
    @pytest.fixture
    def secured_app(self, app_config):
        app = create_app({**app_config, "LOGIN_DISABLED": False})
        app.extensions["clinic_api"] = Mock()
        return app

    def test_anonymous_request_is_unauthorized(self, secured_app):
        assert secured_app.test_client().get("/calendar").status_code == 401

    def test_bearer_token_with_permission(self, secured_app):
        secured_app.extensions["clinic_api"].current_user.return_value = {
            "id": "u-1",
            "email": "reception@clinic.test",
            "role": "receptionist",
            "permissions": ["view:appointments"],
        }
        response = secured_app.test_client().get("/calendar", headers={"Authorization": "Bearer good"})
        assert response.status_code == 200
        assert response.get_json()["can_create"] is False
        secured_app.extensions["clinic_api"].current_user.assert_called_with("good")

    def test_missing_permission_is_forbidden(self, secured_app):
        secured_app.extensions["clinic_api"].current_user.return_value = {
            "id": "u-2",
            "permissions": ["view:patients"],
        }
        response = secured_app.test_client().get("/calendar", headers={"Authorization": "Bearer meh"})
        assert response.status_code == 403

    def test_rejected_token_is_unauthorized(self, secured_app):
        secured_app.extensions["clinic_api"].current_user.return_value = None
        response = secured_app.test_client().get("/calendar", headers={"Authorization": "Bearer expired"})
        assert response.status_code == 401


class TestDatabaseConfig:
    def test_sqlite_uri_allows_cross_thread_connections(self, monkeypatch, tmp_path):
        monkeypatch.delenv("CLINIC_DATABASE_URL", raising=False)
        monkeypatch.setenv("CLINIC_DB_PATH", str(tmp_path / "clinic.db"))
        config = _default_config(tmp_path)
        assert config["SQLALCHEMY_DATABASE_URI"] == f"sqlite:///{tmp_path / 'clinic.db'}"
        assert config["SQLALCHEMY_ENGINE_OPTIONS"] == {"connect_args": {"check_same_thread": False}}

    def test_server_database_gets_no_sqlite_connect_args(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CLINIC_DATABASE_URL", "postgresql://clinic@db.internal/clinic")
        config = _default_config(tmp_path)
        assert config["SQLALCHEMY_DATABASE_URI"] == "postgresql://clinic@db.internal/clinic"
        assert config["SQLALCHEMY_ENGINE_OPTIONS"] == {}
