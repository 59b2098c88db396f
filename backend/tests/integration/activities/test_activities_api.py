"""Integration tests for activity and customer activity endpoints"""

from uuid import UUID, uuid4

from logiflow.models import Activity, CustomerActivity


class TestActivityCatalog:
    """Test /api/v1/activities"""

    def test_create_global_activity(self, admin_client):
        response = admin_client.post(
            "/api/v1/activities",
            json={"name": "Wrapping", "type": "WRAPPING", "unit": "pallet", "default_price": "4.50"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["customer_id"] is None
        assert data["type"] == "WRAPPING"
        assert data["default_price"] == "4.50"
        assert data["is_active"] is True

    def test_create_for_unknown_customer(self, admin_client):
        response = admin_client.post(
            "/api/v1/activities", json={"name": "Special", "customer_id": str(uuid4())}
        )

        assert response.status_code == 404

    def test_invalid_type_rejected(self, admin_client):
        response = admin_client.post("/api/v1/activities", json={"name": "X", "type": "FLYING"})

        assert response.status_code == 422

    def test_list_scoped_to_customer(self, admin_client, db_session, acme, globex, loading):
        db_session.add_all([
            Activity(customer_id=acme.id, name="Acme special", unit="hour"),
            Activity(customer_id=globex.id, name="Globex special", unit="hour"),
        ])
        db_session.commit()

        response = admin_client.get("/api/v1/activities", params={"customer_id": str(acme.id)})

        assert response.status_code == 200
        assert [a["name"] for a in response.json()] == ["Acme special", "Loading"]

    def test_update_and_clear_default_price(self, admin_client, loading):
        response = admin_client.put(
            f"/api/v1/activities/{loading.id}", json={"name": "Truck loading", "default_price": None}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Truck loading"
        assert data["default_price"] is None

    def test_deactivate(self, admin_client, loading):
        response = admin_client.delete(f"/api/v1/activities/{loading.id}")
        assert response.status_code == 204

        listed = admin_client.get("/api/v1/activities").json()
        assert listed == []

        listed = admin_client.get("/api/v1/activities", params={"include_inactive": True}).json()
        assert listed[0]["is_active"] is False

    def test_unknown_activity(self, admin_client):
        response = admin_client.put(f"/api/v1/activities/{uuid4()}", json={"name": "X"})

        assert response.status_code == 404

    def test_team_leader_forbidden(self, team_leader_client):
        response = team_leader_client.get("/api/v1/activities")

        assert response.status_code == 403


class TestCustomerActivities:
    """Test customer-owned activities and their catalog entries"""

    def test_create_customer_activity(self, admin_client, db_session, acme):
        response = admin_client.post(
            "/api/v1/customer-activities",
            json={
                "customer_id": str(acme.id),
                "name": "Acme unloading",
                "type": "CONTAINER_UNLOADING",
                "unit": "container",
                "default_price": "200.00",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["order_id"] is None
        assert data["quantity"] == 1
        assert data["unit_price"] == "200.00"
        assert data["line_total"] == "200.00"
        assert data["base_price"] == "200.00"
        assert data["price_source"] == "default"
        assert data["activity"]["name"] == "Acme unloading"

        activity = db_session.query(Activity).filter(Activity.id == UUID(data["activity_id"])).one()
        assert activity.customer_id == acme.id

    def test_create_requires_default_price(self, admin_client, acme):
        response = admin_client.post(
            "/api/v1/customer-activities",
            json={"customer_id": str(acme.id), "name": "No price"},
        )

        assert response.status_code == 422

    def test_create_for_unknown_customer(self, admin_client):
        response = admin_client.post(
            "/api/v1/customer-activities",
            json={"customer_id": str(uuid4()), "name": "X", "default_price": "1.00"},
        )

        assert response.status_code == 404

    def test_list_catalog(self, admin_client, team_leader_client, acme):
        admin_client.post(
            "/api/v1/customer-activities",
            json={"customer_id": str(acme.id), "name": "Acme wrapping", "default_price": "3.00"},
        )

        response = team_leader_client.get(f"/api/v1/customers/{acme.id}/activities")

        assert response.status_code == 200
        assert [e["activity"]["name"] for e in response.json()] == ["Acme wrapping"]

    def test_deactivate_entry(self, admin_client, acme, globex):
        created = admin_client.post(
            "/api/v1/customer-activities",
            json={"customer_id": str(acme.id), "name": "Acme wrapping", "default_price": "3.00"},
        ).json()

        response = admin_client.delete(f"/api/v1/customers/{globex.id}/activities/{created['id']}")
        assert response.status_code == 404

        response = admin_client.delete(f"/api/v1/customers/{acme.id}/activities/{created['id']}")
        assert response.status_code == 204
        assert admin_client.get(f"/api/v1/customers/{acme.id}/activities").json() == []

    def test_employee_forbidden(self, employee_client, acme):
        response = employee_client.get(f"/api/v1/customers/{acme.id}/activities")

        assert response.status_code == 403


class TestMyActivities:
    """Test /api/v1/customers/me/activities"""

    def test_lists_own_catalog(self, admin_client, customer_client, acme, globex):
        """Given entries for two customers, when a CUSTOMER user lists, then only theirs come back"""
        for customer, name in ((acme, "Acme wrapping"), (globex, "Globex wrapping")):
            admin_client.post(
                "/api/v1/customer-activities",
                json={"customer_id": str(customer.id), "name": name, "default_price": "3.00"},
            )

        response = customer_client.get("/api/v1/customers/me/activities")

        assert response.status_code == 200
        assert [e["activity"]["name"] for e in response.json()] == ["Acme wrapping"]

    def test_staff_forbidden(self, admin_client):
        response = admin_client.get("/api/v1/customers/me/activities")

        assert response.status_code == 403

    def test_token_without_customer(self, unlinked_customer_client):
        response = unlinked_customer_client.get("/api/v1/customers/me/activities")

        assert response.status_code == 404


class TestAvailableActivities:
    """Test GET /api/v1/customers/{id}/activities/available"""

    def test_only_activities_with_valid_tiers(self, admin_client, acme, loading, container_unloading):
        admin_client.post(
            f"/api/v1/customers/{acme.id}/prices",
            json={
                "activity_id": str(loading.id),
                "max_quantity": 10,
                "price": "8.00",
                "effective_from": "2024-01-01",
            },
        )
        admin_client.post(
            f"/api/v1/customers/{acme.id}/prices",
            json={
                "activity_id": str(loading.id),
                "min_quantity": 11,
                "max_quantity": 50,
                "price": "7.00",
                "effective_from": "2024-01-01",
            },
        )
        admin_client.post(
            f"/api/v1/customers/{acme.id}/prices",
            json={
                "activity_id": str(container_unloading.id),
                "max_quantity": 5,
                "price": "120.00",
                "effective_from": "2025-01-01",
            },
        )

        response = admin_client.get(
            f"/api/v1/customers/{acme.id}/activities/available", params={"as_of": "2024-06-01"}
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["activity"]["name"] == "Loading"
        assert [t["min_quantity"] for t in data[0]["tiers"]] == [1, 11]


class TestActivityStatistics:
    """Test GET /api/v1/customers/{id}/activities/statistics"""

    def test_aggregates_per_activity(self, admin_client, db_session, acme, loading):
        admin_client.post(
            "/api/v1/orders",
            json={
                "customer_id": str(acme.id),
                "scheduled_date": "2024-06-01",
                "activities": [
                    {"activity_id": str(loading.id), "quantity": 2},
                    {"activity_id": str(loading.id), "quantity": 3},
                ],
            },
        )

        response = admin_client.get(f"/api/v1/customers/{acme.id}/activities/statistics")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["activity_name"] == "Loading"
        assert data[0]["total_quantity"] == 5
        assert data[0]["total_amount"] == "50.00"
        assert data[0]["count"] == 2

    def test_date_range_excludes_rows(self, admin_client, db_session, acme, loading):
        admin_client.post(
            "/api/v1/orders",
            json={
                "customer_id": str(acme.id),
                "scheduled_date": "2024-06-01",
                "activities": [{"activity_id": str(loading.id), "quantity": 2}],
            },
        )

        response = admin_client.get(
            f"/api/v1/customers/{acme.id}/activities/statistics",
            params={"end_date": "2000-01-01"},
        )

        assert response.status_code == 200
        assert response.json() == []
        assert db_session.query(CustomerActivity).count() == 1
