"""
Tests for work item and workflow transition endpoints.
"""
import pytest

from shopfloor.core.status_config import HoldReason, ItemStatus, Priority, WorkflowStep

from tests.factories import create_test_item, create_test_order


BASE = "/api/v1/work-items"


class TestListWorkItems:
    """Tests for GET /api/v1/work-items/"""

    @pytest.mark.api
    def test_list_all(self, client, store):
        create_test_item(store)
        create_test_item(store, current_step=WorkflowStep.QC)

        response = client.get(f"{BASE}/")

        assert response.status_code == 200
        assert len(response.json()) == 2

    @pytest.mark.api
    def test_list_filters(self, client, store):
        target = create_test_item(store, current_step=WorkflowStep.QC, priority=Priority.URGENT)
        create_test_item(store, current_step=WorkflowStep.QC)
        create_test_item(store, priority=Priority.URGENT)

        response = client.get(f"{BASE}/", params={"step": "QC", "priority": "Urgent"})

        assert response.status_code == 200
        data = response.json()
        assert [d["id"] for d in data] == [target.id]
        assert data[0]["current_step"] == "QC"

    @pytest.mark.api
    def test_list_by_status_and_hold(self, client, store):
        held = create_test_item(store, hold_reason=HoldReason.MACHINE_ISSUE)
        create_test_item(store, status=ItemStatus.IN_PROGRESS)

        response = client.get(f"{BASE}/", params={"status": "Pending", "on_hold": "true"})

        assert [d["id"] for d in response.json()] == [held.id]

    @pytest.mark.api
    def test_list_invalid_step(self, client):
        response = client.get(f"{BASE}/", params={"step": "Paint"})
        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestGetWorkItem:
    """Tests for GET /api/v1/work-items/{item_id}"""

    @pytest.mark.api
    def test_get_item(self, client, store):
        item = create_test_item(store, current_step=WorkflowStep.CNC, status=ItemStatus.IN_PROGRESS)

        response = client.get(f"{BASE}/{item.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == item.id
        assert data["status"] == "In Progress"
        assert data["next_step"] == "QC"
        assert data["previous_step"] == "Thread"
        assert data["can_complete"] is True
        assert data["audit_history"] == []

    @pytest.mark.api
    def test_get_item_not_found(self, client):
        response = client.get(f"{BASE}/NOPE")
        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "NOT_FOUND"
        assert "timestamp" in body

    @pytest.mark.api
    def test_history_newest_first(self, client, store, operator_auth):
        item = create_test_item(store)
        client.post(f"{BASE}/{item.id}/start", json={"station": "Saw"}, headers=operator_auth)
        client.post(f"{BASE}/{item.id}/complete", json={"station": "Saw"}, headers=operator_auth)

        response = client.get(f"{BASE}/{item.id}/history")

        assert response.status_code == 200
        actions = [e["action"] for e in response.json()]
        assert actions == ["Completed", "Started"]

    @pytest.mark.api
    def test_can_ship(self, client, store):
        ready = create_test_item(store, current_step=WorkflowStep.SHIP)
        upstream = create_test_item(store, current_step=WorkflowStep.QC)

        assert client.get(f"{BASE}/{ready.id}/can-ship").json() == {
            "item_id": ready.id, "can_ship": True, "reason": None,
        }
        data = client.get(f"{BASE}/{upstream.id}/can-ship").json()
        assert data["can_ship"] is False
        assert data["reason"] == "Item is at QC, not ready for shipping"


class TestIdentity:
    """Operator identity headers"""

    @pytest.mark.api
    def test_missing_operator(self, client, store):
        item = create_test_item(store)

        response = client.post(f"{BASE}/{item.id}/start", json={"station": "Saw"})

        assert response.status_code == 401
        assert response.json()["error"] == "AUTHENTICATION_ERROR"
        assert item.status == ItemStatus.PENDING

    @pytest.mark.api
    def test_unknown_role(self, client, store):
        item = create_test_item(store)
        response = client.post(
            f"{BASE}/{item.id}/start",
            json={"station": "Saw"},
            headers={"X-Operator-Id": "OP-1", "X-Operator-Role": "Janitor"},
        )
        assert response.status_code == 400

    @pytest.mark.api
    def test_role_not_allowed_at_station(self, client, store, inspector_auth):
        item = create_test_item(store)

        response = client.post(
            f"{BASE}/{item.id}/start", json={"station": "Saw"}, headers=inspector_auth
        )

        assert response.status_code == 403
        assert response.json()["details"]["station"] == "Saw"
        assert item.audit_history == []

    @pytest.mark.api
    def test_name_defaults_to_id(self, client, store):
        item = create_test_item(store)
        client.post(
            f"{BASE}/{item.id}/start",
            json={"station": "Saw"},
            headers={"X-Operator-Id": "OP-777"},
        )
        entry = item.audit_history[-1]
        assert entry.operator_id == "OP-777"
        assert entry.operator_name == "OP-777"


class TestStationTransitions:
    """Tests for start/complete endpoints"""

    @pytest.mark.api
    def test_start_and_complete(self, client, store, operator_auth):
        item = create_test_item(store)

        started = client.post(f"{BASE}/{item.id}/start", json={"station": "Saw"}, headers=operator_auth)
        assert started.status_code == 200
        assert started.json()["status"] == "In Progress"

        completed = client.post(
            f"{BASE}/{item.id}/complete", json={"station": "Saw"}, headers=operator_auth
        )
        assert completed.status_code == 200
        data = completed.json()
        assert data["current_step"] == "Thread"
        assert data["status"] == "Pending"
        assert len(data["audit_history"]) == 2
        assert data["audit_history"][0]["operator_name"] == "Mike Johnson"

    @pytest.mark.api
    def test_start_from_wrong_station(self, client, store, operator_auth):
        item = create_test_item(store, current_step=WorkflowStep.THREAD)

        response = client.post(
            f"{BASE}/{item.id}/start", json={"station": "CNC"}, headers=operator_auth
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "STATION_MISMATCH"
        assert body["details"]["current_step"] == "Thread"
        assert item.status == ItemStatus.PENDING

    @pytest.mark.api
    def test_start_twice(self, client, store, operator_auth):
        item = create_test_item(store, status=ItemStatus.IN_PROGRESS)

        response = client.post(f"{BASE}/{item.id}/start", json={"station": "Saw"}, headers=operator_auth)

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "INVALID_STATE"
        assert body["details"]["current_state"]["status"] == "In Progress"

    @pytest.mark.api
    def test_complete_not_started(self, client, store, operator_auth):
        item = create_test_item(store)
        response = client.post(
            f"{BASE}/{item.id}/complete", json={"station": "Saw"}, headers=operator_auth
        )
        assert response.status_code == 409

    @pytest.mark.api
    def test_start_unknown_item(self, client, operator_auth):
        response = client.post(f"{BASE}/NOPE/start", json={"station": "Saw"}, headers=operator_auth)
        assert response.status_code == 404

    @pytest.mark.api
    def test_invalid_station_value(self, client, store, operator_auth):
        item = create_test_item(store)
        response = client.post(
            f"{BASE}/{item.id}/start", json={"station": "Paint"}, headers=operator_auth
        )
        assert response.status_code == 422


class TestHoldEndpoints:
    """Tests for hold, release and rework"""

    @pytest.mark.api
    def test_hold_and_release(self, client, store, operator_auth, supervisor_auth):
        item = create_test_item(store, status=ItemStatus.IN_PROGRESS)

        held = client.post(
            f"{BASE}/{item.id}/hold",
            json={"reason": "Machine Issue", "notes": "Spindle alarm"},
            headers=operator_auth,
        )
        assert held.status_code == 200
        data = held.json()
        assert data["on_hold"] is True
        assert data["hold_reason"] == "Machine Issue"
        assert data["hold_timestamp"] is not None
        assert data["audit_history"][0]["notes"] == "Reason: Machine Issue; Spindle alarm"

        released = client.post(f"{BASE}/{item.id}/release", json={}, headers=supervisor_auth)
        assert released.status_code == 200
        data = released.json()
        assert data["on_hold"] is False
        assert data["hold_reason"] is None
        assert data["status"] == "In Progress"

    @pytest.mark.api
    def test_hold_twice(self, client, store, operator_auth):
        item = create_test_item(store, hold_reason=HoldReason.MACHINE_ISSUE)

        response = client.post(
            f"{BASE}/{item.id}/hold", json={"reason": "Material Defect"}, headers=operator_auth
        )

        assert response.status_code == 409
        assert item.hold_reason == HoldReason.MACHINE_ISSUE

    @pytest.mark.api
    def test_hold_unknown_reason(self, client, store, operator_auth):
        item = create_test_item(store)
        response = client.post(
            f"{BASE}/{item.id}/hold", json={"reason": "Lunch"}, headers=operator_auth
        )
        assert response.status_code == 422

    @pytest.mark.api
    def test_release_not_held(self, client, store, supervisor_auth):
        item = create_test_item(store)
        response = client.post(f"{BASE}/{item.id}/release", json={}, headers=supervisor_auth)
        assert response.status_code == 409

    @pytest.mark.api
    def test_rework(self, client, store, inspector_auth):
        item = create_test_item(
            store, current_step=WorkflowStep.QC, hold_reason=HoldReason.DIMENSION_ERROR
        )

        response = client.post(f"{BASE}/{item.id}/rework", json={}, headers=inspector_auth)

        assert response.status_code == 200
        data = response.json()
        assert data["current_step"] == "Saw"
        assert data["status"] == "Pending"
        assert data["on_hold"] is False
        entry = data["audit_history"][0]
        assert entry["action"] == "Sent to Rework"
        assert entry["step"] == "QC"


class TestQualityControlEndpoints:

    @pytest.mark.api
    def test_pass_qc(self, client, store, inspector_auth):
        item = create_test_item(store, current_step=WorkflowStep.QC, status=ItemStatus.IN_PROGRESS)

        response = client.post(f"{BASE}/{item.id}/qc/pass", headers=inspector_auth)

        assert response.status_code == 200
        assert response.json()["current_step"] == "Ship"
        assert response.json()["status"] == "Pending"

    @pytest.mark.api
    def test_fail_qc(self, client, store, inspector_auth):
        item = create_test_item(store, current_step=WorkflowStep.QC, status=ItemStatus.IN_PROGRESS)

        response = client.post(
            f"{BASE}/{item.id}/qc/fail", json={"reason": "Material Defect"}, headers=inspector_auth
        )

        assert response.status_code == 200
        data = response.json()
        assert data["on_hold"] is True
        assert data["hold_reason"] == "Material Defect"
        assert data["current_step"] == "QC"

    @pytest.mark.api
    def test_operator_cannot_pass_qc(self, client, store, operator_auth):
        item = create_test_item(store, current_step=WorkflowStep.QC, status=ItemStatus.IN_PROGRESS)
        response = client.post(f"{BASE}/{item.id}/qc/pass", headers=operator_auth)
        assert response.status_code == 403

    @pytest.mark.api
    def test_pass_qc_not_at_qc(self, client, store, inspector_auth):
        item = create_test_item(store, current_step=WorkflowStep.CNC)
        response = client.post(f"{BASE}/{item.id}/qc/pass", headers=inspector_auth)
        assert response.status_code == 409


class TestShipEndpoint:

    @pytest.mark.api
    def test_ship(self, client, store, shipper_auth):
        item = create_test_item(store, current_step=WorkflowStep.SHIP, status=ItemStatus.IN_PROGRESS)

        response = client.post(f"{BASE}/{item.id}/ship", json={}, headers=shipper_auth)

        assert response.status_code == 200
        assert response.json()["status"] == "Completed"
        assert response.json()["audit_history"][0]["action"] == "Shipped"

    @pytest.mark.api
    def test_ship_held_item(self, client, store, shipper_auth):
        item = create_test_item(
            store, current_step=WorkflowStep.SHIP, hold_reason=HoldReason.CUSTOMER_REQUEST
        )

        response = client.post(f"{BASE}/{item.id}/ship", json={}, headers=shipper_auth)

        assert response.status_code == 409
        assert response.json()["message"] == "QC HOLD ACTIVE"
        assert item.audit_history == []

    @pytest.mark.api
    def test_ship_from_other_station(self, client, store, supervisor_auth):
        item = create_test_item(store, current_step=WorkflowStep.SHIP)
        response = client.post(f"{BASE}/{item.id}/ship", json={"station": "QC"}, headers=supervisor_auth)
        assert response.status_code == 409
        assert response.json()["error"] == "STATION_MISMATCH"


class TestIntakeEndpoint:
    """Tests for POST /api/v1/work-items/"""

    @pytest.mark.api
    def test_intake_general_stock(self, client, store, operator_auth):
        response = client.post(f"{BASE}/", json={"item_id": "X-1"}, headers=operator_auth)

        assert response.status_code == 201
        data = response.json()
        assert data["order_id"] == "GENERAL-STOCK"
        assert data["current_step"] == "Saw"
        assert data["status"] == "Pending"
        assert data["audit_history"][0]["action"] == "Created"
        assert store.get_order("GENERAL-STOCK") is not None

    @pytest.mark.api
    def test_intake_known_order(self, client, store, operator_auth):
        order = create_test_order(store)
        response = client.post(
            f"{BASE}/",
            json={"item_id": "X-2", "order_id": order.id, "name": "Flange", "quantity": 3,
                  "priority": "High"},
            headers=operator_auth,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["order_id"] == order.id
        assert data["quantity"] == 3
        assert data["priority"] == "High"

    @pytest.mark.api
    def test_intake_duplicate(self, client, store, operator_auth):
        item = create_test_item(store)

        response = client.post(f"{BASE}/", json={"item_id": item.id}, headers=operator_auth)

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_ERROR"

    @pytest.mark.api
    def test_intake_invalid_quantity(self, client, operator_auth):
        response = client.post(
            f"{BASE}/", json={"item_id": "X-3", "quantity": 0}, headers=operator_auth
        )
        assert response.status_code == 422
