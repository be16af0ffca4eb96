"""
Tests for order and station queue endpoints.
"""
import pytest
from datetime import timedelta

from shopfloor.core.status_config import HoldReason, ItemStatus, Priority, WorkflowStep

from tests.factories import create_test_item, create_test_order


class TestListOrders:
    """Tests for GET /api/v1/orders/"""

    @pytest.mark.api
    def test_list_orders(self, client, store):
        order = create_test_order(store, customer_name="GlobalTech Solutions")
        create_test_item(store, order)
        create_test_item(store, order)

        response = client.get("/api/v1/orders/")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["customer_name"] == "GlobalTech Solutions"
        assert data[0]["item_count"] == 2
        assert data[0]["is_ready_to_ship"] is False

    @pytest.mark.api
    def test_filter_overdue(self, client, store):
        # Factory due dates are in early 2026, so push one far ahead
        late = create_test_order(store, due_in=timedelta(days=-1))
        create_test_order(store, due_in=timedelta(days=3650))

        response = client.get("/api/v1/orders/", params={"overdue": "true"})

        assert [o["id"] for o in response.json()] == [late.id]

    @pytest.mark.api
    def test_ready_to_ship(self, client, store):
        ready = create_test_order(store)
        create_test_item(store, ready, current_step=WorkflowStep.SHIP)
        blocked = create_test_order(store)
        create_test_item(
            store, blocked, current_step=WorkflowStep.SHIP, hold_reason=HoldReason.CUSTOMER_REQUEST
        )

        response = client.get("/api/v1/orders/ready-to-ship")

        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [ready.id]


class TestGetOrder:
    """Tests for GET /api/v1/orders/{order_id}"""

    @pytest.mark.api
    def test_get_order_with_items(self, client, store):
        order = create_test_order(store)
        first = create_test_item(store, order)
        second = create_test_item(store, order, current_step=WorkflowStep.CNC)

        response = client.get(f"/api/v1/orders/{order.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == order.id
        assert [i["id"] for i in data["items"]] == [first.id, second.id]
        assert data["items"][1]["current_step"] == "CNC"

    @pytest.mark.api
    def test_get_order_not_found(self, client):
        response = client.get("/api/v1/orders/NOPE")
        assert response.status_code == 404


class TestPackingSlip:
    """Tests for GET /api/v1/orders/{order_id}/items/{item_id}/packing-slip"""

    @pytest.mark.api
    def test_packing_slip(self, client, store):
        order = create_test_order(store)
        item = create_test_item(store, order, current_step=WorkflowStep.SHIP)

        response = client.get(f"/api/v1/orders/{order.id}/items/{item.id}/packing-slip")

        assert response.status_code == 200
        data = response.json()
        assert data["shipped"] is False
        assert data["order"]["id"] == order.id
        assert data["item"]["id"] == item.id
        assert data["generated_at"]

    @pytest.mark.api
    def test_packing_slip_after_shipping(self, client, store, shipper_auth):
        order = create_test_order(store)
        item = create_test_item(store, order, current_step=WorkflowStep.SHIP)
        client.post(f"/api/v1/work-items/{item.id}/ship", json={}, headers=shipper_auth)

        response = client.get(f"/api/v1/orders/{order.id}/items/{item.id}/packing-slip")

        assert response.status_code == 200
        assert response.json()["shipped"] is True

    @pytest.mark.api
    def test_packing_slip_not_ready(self, client, store):
        order = create_test_order(store)
        item = create_test_item(store, order, current_step=WorkflowStep.QC)

        response = client.get(f"/api/v1/orders/{order.id}/items/{item.id}/packing-slip")

        assert response.status_code == 409

    @pytest.mark.api
    def test_packing_slip_item_on_other_order(self, client, store):
        order = create_test_order(store)
        other = create_test_item(store, current_step=WorkflowStep.SHIP)

        response = client.get(f"/api/v1/orders/{order.id}/items/{other.id}/packing-slip")

        assert response.status_code == 404


class TestStationQueue:
    """Tests for GET /api/v1/stations/{step}/queue"""

    @pytest.mark.api
    def test_queue(self, client, store):
        held = create_test_item(store, hold_reason=HoldReason.MACHINE_ISSUE, priority=Priority.URGENT)
        normal = create_test_item(store)
        urgent = create_test_item(store, priority=Priority.URGENT)
        create_test_item(store, current_step=WorkflowStep.QC)

        response = client.get("/api/v1/stations/Saw/queue")

        assert response.status_code == 200
        assert [i["id"] for i in response.json()] == [urgent.id, normal.id, held.id]

    @pytest.mark.api
    def test_queue_excludes_shipped(self, client, store):
        create_test_item(store, current_step=WorkflowStep.SHIP, status=ItemStatus.COMPLETED)
        response = client.get("/api/v1/stations/Ship/queue")
        assert response.json() == []

    @pytest.mark.api
    def test_unknown_station(self, client):
        response = client.get("/api/v1/stations/Paint/queue")
        assert response.status_code == 422
