"""Integration tests for the credits page, checkout and payment return."""


class TestCreditsPage:

    def test_lists_backend_products(self, logged_in_client, backend, json_response, profile):
        backend.add("GET", "/api/user", json_response(200, {"success": True, "data": dict(profile, credits=7)}))
        backend.add("GET", "/api/payment/products", json_response(200, {"success": True, "data": [
            {"id": "credit_100", "name": "100 Credits", "price": 499, "credits": 100},
        ]}))

        response = logged_in_client.get("/dashboard/credits")

        assert response.status_code == 200
        assert b"<strong>7</strong>" in response.data
        assert b"$4.99" in response.data
        assert b"500 Credits" not in response.data

    def test_falls_back_to_catalog(self, logged_in_client, backend, json_response, profile):
        backend.add("GET", "/api/user", json_response(200, {"data": profile}))
        backend.add("GET", "/api/payment/products", json_response(503, {"message": "unavailable"}))

        response = logged_in_client.get("/dashboard/credits")

        for price in (b"$4.99", b"$19.99", b"$34.99"):
            assert price in response.data


class TestCheckout:

    def test_checkout_renders_payment_form(self, logged_in_client, backend, json_response):
        backend.add("POST", "/api/payment/create-payment-intent", json_response(200, {"success": True, "data": {
            "clientSecret": "pi_123_secret_456", "amount": 1999, "currency": "cad", "credits": 500,
            "productName": "500 Credits",
        }}))

        response = logged_in_client.post("/dashboard/credits/checkout", data={"product_id": "credit_500"})

        assert response.status_code == 200
        assert b'data-client-secret="pi_123_secret_456"' in response.data
        assert b'data-publishable-key="pk_test_123"' in response.data
        assert b"/dashboard/credits/complete" in response.data
        assert backend.calls_to("/api/payment/create-payment-intent")[0]["json"] == {"product_id": "credit_500"}

    def test_checkout_requires_product(self, logged_in_client, backend):
        response = logged_in_client.post("/dashboard/credits/checkout", data={})
        assert response.status_code == 302
        assert backend.calls == []

    def test_checkout_backend_error(self, logged_in_client, backend, json_response, profile):
        backend.add("POST", "/api/payment/create-payment-intent", json_response(400, {"message": "Unknown product"}))
        backend.add("GET", "/api/user", json_response(200, {"data": profile}))

        response = logged_in_client.post(
            "/dashboard/credits/checkout", data={"product_id": "bogus"}, follow_redirects=True
        )
        assert b"Unknown product" in response.data


class TestPaymentComplete:

    def test_success(self, logged_in_client, backend, json_response, profile):
        backend.add("GET", "/api/user", json_response(200, {"data": profile}))

        response = logged_in_client.get(
            "/dashboard/credits/complete?payment_intent=pi_1&redirect_status=succeeded", follow_redirects=True
        )
        assert b"Payment successful!" in response.data

    def test_processing(self, logged_in_client, mocker):
        mocker.patch("routes.billing.stripe_svc.confirm_payment", return_value="processing")
        response = logged_in_client.get("/dashboard/credits/complete?payment_intent=pi_1")
        assert response.status_code == 302
        with logged_in_client.session_transaction() as sess:
            assert sess["_flashes"][0][1].startswith("Your payment is processing")

    def test_failed(self, logged_in_client):
        logged_in_client.get("/dashboard/credits/complete?payment_intent=pi_1&redirect_status=failed")
        with logged_in_client.session_transaction() as sess:
            assert sess["_flashes"][0] == ("error", "Payment was not completed. You have not been charged.")
