"""
Tests for customer, payment method and card token routes.
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe


def _card(pm_id, brand="visa", last4="4242"):
    return SimpleNamespace(
        id=pm_id,
        created=1700000000,
        card=SimpleNamespace(brand=brand, last4=last4, exp_month=12, exp_year=2030),
    )


@patch("payments.stripe_service.stripe.Customer.create")
@patch("payments.stripe_service.stripe.Customer.list")
def test_create_customer_reuses_existing(mock_list, mock_create, client):
    mock_list.return_value = SimpleNamespace(
        data=[SimpleNamespace(id="cus_existing", email="a@example.com")]
    )

    response = client.post("/create-customer", json={"email": "a@example.com"})

    assert response.status_code == 200
    assert response.json() == {
        "customerId": "cus_existing",
        "email": "a@example.com",
        "message": "Customer ready",
    }
    mock_create.assert_not_called()


@patch("payments.stripe_service.stripe.Customer.create")
@patch("payments.stripe_service.stripe.Customer.list")
def test_create_customer_creates_when_missing(mock_list, mock_create, client):
    mock_list.return_value = SimpleNamespace(data=[])
    mock_create.return_value = SimpleNamespace(id="cus_new", email="b@example.com")

    response = client.post(
        "/create-customer", json={"email": "b@example.com", "phone": "+15555550100"}
    )

    assert response.status_code == 200
    assert response.json()["customerId"] == "cus_new"
    mock_create.assert_called_once_with(email="b@example.com", phone="+15555550100")


def test_create_customer_requires_email(client):
    response = client.post("/create-customer", json={"phone": "+15555550100"})

    assert response.status_code == 400
    assert response.json() == {"error": "Email is required"}


@patch("payments.stripe_service.stripe.Customer.list")
def test_create_customer_provider_error(mock_list, client):
    mock_list.side_effect = stripe.AuthenticationError("Invalid API Key provided")

    response = client.post("/create-customer", json={"email": "a@example.com"})

    assert response.status_code == 500
    assert response.json() == {"error": "Invalid API Key provided"}


@patch("payments.stripe_service.stripe.EphemeralKey.create")
def test_get_ephemeral_key(mock_create, client):
    mock_create.return_value = SimpleNamespace(secret="ek_test_secret")

    response = client.post("/get-ephemeral-key", json={"customerId": "cus_1"})

    assert response.status_code == 200
    assert response.json() == {"ephemeralKey": "ek_test_secret"}
    mock_create.assert_called_once_with(customer="cus_1", stripe_version="2023-10-16")


def test_get_ephemeral_key_requires_customer(client):
    response = client.post("/get-ephemeral-key", json={})

    assert response.status_code == 400


@patch("payments.stripe_service.stripe.PaymentMethod.list")
def test_get_payment_methods_returns_raw_objects(mock_list, client):
    raw = [{"id": "pm_1", "type": "card", "card": {"brand": "visa"}}]
    mock_list.return_value = SimpleNamespace(data=raw, has_more=False)

    response = client.post("/get-payment-methods", json={"customer_id": "cus_1"})

    assert response.status_code == 200
    assert response.json() == {"payment_methods": raw}
    mock_list.assert_called_once_with(customer="cus_1", type="card")


@patch("payments.stripe_service.stripe.PaymentMethod.list")
def test_list_payment_methods_summarizes_cards(mock_list, client):
    mock_list.return_value = SimpleNamespace(
        data=[_card("pm_1"), _card("pm_2", brand="mastercard", last4="4444")],
        has_more=True,
    )

    response = client.post("/list-payment-methods", json={"customer_id": "cus_1"})

    assert response.status_code == 200
    data = response.json()
    assert data["has_more"] is True
    assert data["payment_methods"][1] == {
        "id": "pm_2",
        "brand": "mastercard",
        "last4": "4444",
        "exp_month": 12,
        "exp_year": 2030,
        "created": 1700000000,
    }


@pytest.mark.parametrize("path", ["/get-payment-methods", "/list-payment-methods"])
def test_payment_method_listing_requires_customer(client, path):
    response = client.post(path, json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Customer ID is required"}


@patch("payments.stripe_service.stripe.PaymentMethod.list")
def test_list_payment_methods_provider_error(mock_list, client):
    mock_list.side_effect = stripe.InvalidRequestError(
        "No such customer: 'cus_x'", param="customer"
    )

    response = client.post("/list-payment-methods", json={"customer_id": "cus_x"})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to list payment methods"


@patch("payments.stripe_service.stripe.PaymentMethod.detach")
def test_delete_payment_method(mock_detach, client):
    mock_detach.return_value = SimpleNamespace(id="pm_1")

    response = client.post("/delete-payment-method", json={"payment_method_id": "pm_1"})

    assert response.status_code == 200
    assert response.json() == {
        "message": "Payment method deleted successfully",
        "payment_method_id": "pm_1",
    }
    mock_detach.assert_called_once_with("pm_1")


def test_delete_payment_method_requires_id(client):
    response = client.post("/delete-payment-method", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Payment method ID is required"}


@patch("payments.stripe_service.stripe.Customer.create_source")
def test_attach_token_to_customer(mock_create_source, client):
    mock_create_source.return_value = {"id": "card_1", "object": "card"}

    response = client.post(
        "/attach-token-to-customer", json={"customerId": "cus_1", "tokenId": "tok_1"}
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "card": {"id": "card_1", "object": "card"},
        "message": "Card added to customer successfully",
    }
    mock_create_source.assert_called_once_with("cus_1", source="tok_1")


@patch("payments.stripe_service.stripe.Customer.create_source")
def test_attach_token_failure_shape(mock_create_source, client):
    mock_create_source.side_effect = stripe.CardError(
        "Your card's security code is incorrect.", param="cvc", code="incorrect_cvc"
    )

    response = client.post(
        "/attach-token-to-customer", json={"customerId": "cus_1", "tokenId": "tok_1"}
    )

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Your card's security code is incorrect.",
    }


@patch("payments.stripe_service.stripe.Customer.modify_source")
def test_update_cvc_token(mock_modify_source, client):
    mock_modify_source.return_value = {"id": "card_1", "cvc_check": "pass"}

    response = client.post(
        "/update-cvc-token",
        json={"customerId": "cus_1", "cardId": "card_1", "token": "cvctok_1"},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Card updated to customer successfully"
    mock_modify_source.assert_called_once_with(
        "cus_1", "card_1", cvc_update_token="cvctok_1"
    )


def test_update_cvc_token_requires_all_fields(client):
    response = client.post(
        "/update-cvc-token", json={"customerId": "cus_1", "cardId": "card_1"}
    )

    assert response.status_code == 400
