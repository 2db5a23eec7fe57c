"""Tests covering the control API and the host lifespan."""

from __future__ import annotations

from fastapi.testclient import TestClient

from rimehost.api.server import create_app, host_lifespan
from rimehost.models import EngineState
from rimehost.notifications import RELOAD_NOTIFICATION, WILL_POWER_OFF


def test_lifespan_launches_deploys_and_quits(harness) -> None:
    controller = harness.controller
    app = create_app(controller=controller)

    with TestClient(app) as client:
        status = client.get("/status").json()
        assert status["state"] == "running"
        assert status["configLoaded"] is True
        assert status["subscriptions"] == 2
        assert ("start_maintenance", False) in harness.calls

    names = [call[0] for call in harness.calls]
    assert names.index("cleanup_all_sessions") < names.index("hide")
    assert controller.state is EngineState.TERMINATED
    assert controller.workspace_center.subscriber_count() == 0
    assert controller.distributed_center.subscriber_count() == 0


def test_reload_notification_redeploys(harness) -> None:
    app = create_app(controller=harness.controller)

    with TestClient(app) as client:
        harness.clear()
        response = client.post(f"/notifications/{RELOAD_NOTIFICATION}")

        assert response.status_code == 202
        assert response.json() == {"name": RELOAD_NOTIFICATION, "center": "distributed", "delivered": 1}
        assert ("start_maintenance", True) in harness.calls
        assert [call[0] for call in harness.calls][:2] == ["close", "finalize"]


def test_power_off_notification_terminates_engine(harness) -> None:
    app = create_app(controller=harness.controller)

    with TestClient(app) as client:
        response = client.post(f"/notifications/{WILL_POWER_OFF}")

        assert response.status_code == 202
        assert client.get("/status").json()["state"] == "terminated"


def test_unknown_notification_is_404(harness) -> None:
    app = create_app(controller=harness.controller)

    with TestClient(app) as client:
        assert client.post("/notifications/somethingElse").status_code == 404
        names = client.get("/notifications").json()["notifications"]
        assert RELOAD_NOTIFICATION in names and WILL_POWER_OFF in names


def test_maintenance_endpoint(make_harness) -> None:
    harness = make_harness(maintenance_results=(True, False))
    app = create_app(controller=harness.controller, lifespan=host_lifespan(initial_full_check=True))

    with TestClient(app) as client:
        assert ("start_maintenance", True) in harness.calls
        response = client.post("/maintenance", json={"fullCheck": False})

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "running"
        assert body["degraded"] is True
        assert harness.calls[-1] == ("start_maintenance", False)


def test_healthz(harness) -> None:
    with TestClient(create_app(controller=harness.controller)) as client:
        assert client.get("/healthz").json() == {"status": "ok"}
