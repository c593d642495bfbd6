"""API tests for checkout, verification and the demo payment path."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock, patch

import requests
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings import services as booking_services
from apps.bookings.models import Booking
from apps.payments.models import Payment
from apps.payments.tasks import reconcile_open_sessions
from apps.rooms.models import Room
from apps.users.models import User


def stripe_response(payload: dict, status_code: int = 200) -> Mock:
    response = Mock(status_code=status_code)
    response.json.return_value = payload
    return response


class PaymentTestMixin:
    def setUp(self) -> None:
        self.room = Room.objects.create(
            name="Deluxe 201",
            category=Room.Category.DELUXE,
            price_per_night=Decimal("100.00"),
            capacity=2,
        )
        check_in = timezone.localdate() + timedelta(days=20)
        self.booking = booking_services.create_booking(
            room=self.room,
            check_in=check_in,
            check_out=check_in + timedelta(days=3),
            guests=2,
            contact=booking_services.GuestContact(name="Jane Guest", email="jane@example.com"),
        )
        self.checkout_url = reverse("payment-checkout")
        self.verify_url = reverse("payment-verify")
        self.demo_url = reverse("payment-demo")


@override_settings(PAYMENT_GATEWAY="stripe", STRIPE_SECRET_KEY="sk_test_dummy", PAYMENT_GATEWAY_TIMEOUT=7)
class StripeCheckoutTests(PaymentTestMixin, APITestCase):
    def _open_session(self, session_id: str = "cs_test_1") -> Payment:
        with patch("apps.payments.gateways.requests.request") as request:
            request.return_value = stripe_response(
                {"id": session_id, "url": f"https://checkout.stripe.com/c/pay/{session_id}"}
            )
            response = self.client.post(
                self.checkout_url,
                {"reference": self.booking.reference, "email": "jane@example.com"},
                format="json",
            )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return Payment.objects.get(session_id=session_id)

    def test_checkout_sends_amount_in_cents(self) -> None:
        with patch("apps.payments.gateways.requests.request") as request:
            request.return_value = stripe_response(
                {"id": "cs_test_1", "url": "https://checkout.stripe.com/c/pay/cs_test_1"}
            )
            response = self.client.post(
                self.checkout_url,
                {"reference": self.booking.reference, "email": "JANE@example.com"},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["url"], "https://checkout.stripe.com/c/pay/cs_test_1")
        method, url = request.call_args.args
        kwargs = request.call_args.kwargs
        self.assertEqual(method, "POST")
        self.assertTrue(url.endswith("checkout/sessions"))
        self.assertEqual(kwargs["timeout"], 7)
        self.assertEqual(kwargs["auth"], ("sk_test_dummy", ""))
        self.assertEqual(kwargs["data"]["line_items[0][price_data][unit_amount]"], 30000)
        self.assertEqual(kwargs["data"]["line_items[0][price_data][currency]"], "usd")
        self.assertEqual(kwargs["data"]["metadata[bookingReference]"], self.booking.reference)
        self.assertEqual(kwargs["data"]["customer_email"], "jane@example.com")

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_session_id, "cs_test_1")
        self.assertEqual(self.booking.status, Booking.Status.PENDING)
        payment = Payment.objects.get()
        self.assertEqual(payment.provider, Payment.Provider.STRIPE)
        self.assertEqual(payment.amount, Decimal("300.00"))

    def test_checkout_requires_matching_email_for_guests(self) -> None:
        response = self.client.post(
            self.checkout_url,
            {"reference": self.booking.reference, "email": "someone@example.com"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Payment.objects.exists())

    def test_anonymous_checkout_by_booking_id_is_not_found(self) -> None:
        with patch("apps.payments.gateways.requests.request") as request:
            response = self.client.post(
                self.checkout_url,
                {"booking_id": self.booking.id, "email": "jane@example.com"},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Booking not found.")
        request.assert_not_called()
        self.assertFalse(Payment.objects.exists())

    def test_checkout_needs_reference_or_booking_id(self) -> None:
        response = self.client.post(self.checkout_url, {"email": "jane@example.com"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("reference", response.data)

    def test_checkout_allowed_for_owning_customer_without_email(self) -> None:
        customer = User.objects.create_user(email="owner@example.com", password="OwnerPass123")
        Booking.objects.filter(pk=self.booking.pk).update(customer=customer)
        self.client.force_authenticate(customer)

        with patch("apps.payments.gateways.requests.request") as request:
            request.return_value = stripe_response({"id": "cs_test_2", "url": "https://checkout.stripe.com/x"})
            response = self.client.post(self.checkout_url, {"booking_id": self.booking.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_provider_timeout_leaves_booking_pending(self) -> None:
        with patch("apps.payments.gateways.requests.request", side_effect=requests.exceptions.Timeout()):
            response = self.client.post(
                self.checkout_url,
                {"reference": self.booking.reference, "email": "jane@example.com"},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)
        self.assertEqual(self.booking.payment_status, Booking.PaymentStatus.PENDING)
        self.assertEqual(self.booking.payment_session_id, "")
        self.assertFalse(Payment.objects.exists())

    def test_provider_error_is_reported(self) -> None:
        with patch("apps.payments.gateways.requests.request") as request:
            request.return_value = stripe_response({"error": {"message": "Invalid API Key"}}, status_code=401)
            response = self.client.post(
                self.checkout_url,
                {"reference": self.booking.reference, "email": "jane@example.com"},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertIn("try again", response.data["detail"])

    def test_checkout_rejected_for_confirmed_booking(self) -> None:
        booking_services.confirm_booking_payment(self.booking.id)

        response = self.client.post(
            self.checkout_url,
            {"reference": self.booking.reference, "email": "jane@example.com"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_paid_session_confirms_booking_once(self) -> None:
        self._open_session()
        paid = stripe_response(
            {"id": "cs_test_1", "status": "complete", "payment_status": "paid", "payment_intent": "pi_123"}
        )

        with patch("apps.payments.gateways.requests.request", return_value=paid):
            with self.captureOnCommitCallbacks() as first_callbacks:
                first = self.client.post(
                    self.verify_url, {"session_id": "cs_test_1", "booking_id": self.booking.id}, format="json"
                )
            with self.captureOnCommitCallbacks() as second_callbacks:
                second = self.client.post(
                    self.verify_url, {"session_id": "cs_test_1", "booking_id": self.booking.id}, format="json"
                )

        self.assertEqual(first.status_code, status.HTTP_200_OK, first.data)
        self.assertTrue(first.data["success"])
        self.assertEqual(first.data["booking"]["status"], Booking.Status.CONFIRMED)
        self.assertTrue(second.data["success"])
        self.assertEqual(len(first_callbacks), 1)
        self.assertEqual(len(second_callbacks), 0)

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, Booking.PaymentStatus.PAID)
        self.assertEqual(self.booking.payment_reference, "pi_123")
        payment = Payment.objects.get()
        self.assertEqual(payment.status, Payment.Status.PAID)
        self.assertIsNotNone(payment.paid_at)

    def test_unpaid_session_leaves_booking_pending(self) -> None:
        self._open_session()
        unpaid = stripe_response({"id": "cs_test_1", "status": "open", "payment_status": "unpaid"})

        with patch("apps.payments.gateways.requests.request", return_value=unpaid):
            response = self.client.post(
                self.verify_url, {"session_id": "cs_test_1", "booking_id": self.booking.id}, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["payment_status"], "pending")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)
        self.assertEqual(Payment.objects.get().status, Payment.Status.PENDING)

    def test_completed_session_without_funds_marks_payment_unpaid(self) -> None:
        self._open_session()
        delayed = stripe_response({"id": "cs_test_1", "status": "complete", "payment_status": "unpaid"})

        with patch("apps.payments.gateways.requests.request", return_value=delayed):
            response = self.client.post(
                self.verify_url, {"session_id": "cs_test_1", "booking_id": self.booking.id}, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["payment_status"], "pending")
        self.assertEqual(Payment.objects.get().status, Payment.Status.UNPAID)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)

    def test_expired_session_marks_payment_failed(self) -> None:
        self._open_session()
        expired = stripe_response({"id": "cs_test_1", "status": "expired", "payment_status": "unpaid"})

        with patch("apps.payments.gateways.requests.request", return_value=expired):
            response = self.client.post(
                self.verify_url, {"session_id": "cs_test_1", "booking_id": self.booking.id}, format="json"
            )

        self.assertEqual(response.data["payment_status"], "failed")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)
        self.assertEqual(self.booking.payment_status, Booking.PaymentStatus.FAILED)
        self.assertEqual(Payment.objects.get().status, Payment.Status.FAILED)

    def test_status_timeout_is_unknown_outcome(self) -> None:
        self._open_session()

        with patch("apps.payments.gateways.requests.request", side_effect=requests.exceptions.ReadTimeout()):
            response = self.client.post(
                self.verify_url, {"session_id": "cs_test_1", "booking_id": self.booking.id}, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)
        self.assertEqual(Payment.objects.get().status, Payment.Status.PENDING)

    def test_session_of_another_booking_is_rejected(self) -> None:
        self._open_session()
        other = booking_services.create_booking(
            room=self.room,
            check_in=self.booking.check_out,
            check_out=self.booking.check_out + timedelta(days=1),
            guests=1,
            contact=booking_services.GuestContact(name="Other Guest", email="other@example.com"),
        )

        response = self.client.post(
            self.verify_url, {"session_id": "cs_test_1", "booking_id": other.id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        other.refresh_from_db()
        self.assertEqual(other.status, Booking.Status.PENDING)

    def test_paid_session_for_cancelled_booking_needs_refund(self) -> None:
        self._open_session()
        booking_services.cancel_booking(self.booking, source=Booking.CancellationSource.GUEST)
        paid = stripe_response({"id": "cs_test_1", "status": "complete", "payment_status": "paid", "payment_intent": "pi_9"})

        with patch("apps.payments.gateways.requests.request", return_value=paid):
            response = self.client.post(
                self.verify_url, {"session_id": "cs_test_1", "booking_id": self.booking.id}, format="json"
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["payment_status"], "cancelled")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CANCELLED)

    def test_periodic_reconciliation_confirms_abandoned_sessions(self) -> None:
        payment = self._open_session()
        Payment.objects.filter(pk=payment.pk).update(created_at=timezone.now() - timedelta(minutes=30))
        paid = stripe_response({"id": "cs_test_1", "status": "complete", "payment_status": "paid", "payment_intent": "pi_7"})

        with patch("apps.payments.gateways.requests.request", return_value=paid):
            result = reconcile_open_sessions()

        self.assertEqual(result, {"checked": 1, "confirmed": 1})
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)

    def test_periodic_reconciliation_confirms_delayed_funds(self) -> None:
        payment = self._open_session()
        Payment.objects.filter(pk=payment.pk).update(
            status=Payment.Status.UNPAID,
            created_at=timezone.now() - timedelta(hours=2),
        )
        paid = stripe_response({"id": "cs_test_1", "status": "complete", "payment_status": "paid", "payment_intent": "pi_8"})

        with patch("apps.payments.gateways.requests.request", return_value=paid):
            result = reconcile_open_sessions()

        self.assertEqual(result, {"checked": 1, "confirmed": 1})
        payment.refresh_from_db()
        self.assertEqual(payment.status, Payment.Status.PAID)


class DemoPaymentTests(PaymentTestMixin, APITestCase):
    def test_demo_payment_confirms_booking(self) -> None:
        response = self.client.post(
            self.demo_url, {"reference": self.booking.reference, "email": "jane@example.com"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["success"])
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)
        self.assertEqual(self.booking.payment_status, Booking.PaymentStatus.PAID)
        self.assertTrue(self.booking.payment_reference.startswith("demo_pi_"))
        payment = Payment.objects.get()
        self.assertEqual(payment.provider, Payment.Provider.DEMO)
        self.assertTrue(payment.session_id.startswith("demo_cs_"))

    def test_demo_payment_follows_state_machine(self) -> None:
        booking_services.cancel_booking(self.booking, source=Booking.CancellationSource.ADMIN)

        response = self.client.post(
            self.demo_url, {"reference": self.booking.reference, "email": "jane@example.com"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CANCELLED)

    @override_settings(DEMO_PAYMENTS_ENABLED=False)
    def test_demo_payment_can_be_disabled(self) -> None:
        response = self.client.post(
            self.demo_url, {"reference": self.booking.reference, "email": "jane@example.com"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Demo payments are disabled.")

    def test_demo_payment_hides_foreign_bookings(self) -> None:
        response = self.client.post(
            self.demo_url, {"reference": self.booking.reference, "email": "mallory@example.com"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_anonymous_demo_payment_by_booking_id_is_not_found(self) -> None:
        response = self.client.post(
            self.demo_url, {"booking_id": self.booking.id, "email": "jane@example.com"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)
        self.assertFalse(Payment.objects.exists())

    def test_demo_payment_result_reports_booking_state(self) -> None:
        response = self.client.post(
            self.demo_url, {"reference": self.booking.reference, "email": "jane@example.com"}, format="json"
        )

        self.assertEqual(response.data["booking"]["reference"], self.booking.reference)
        self.assertEqual(response.data["booking"]["effective_status"], Booking.Status.CONFIRMED)
