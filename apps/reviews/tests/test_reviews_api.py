"""Tests for the reviews API."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.db.models import Avg
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings import services
from apps.bookings.models import Booking
from apps.reviews.models import Review
from apps.rooms.models import Room
from apps.users.models import User


class ReviewAPITests(APITestCase):
    def setUp(self) -> None:
        self.customer = User.objects.create_user(
            email="customer@example.com",
            password="CustomerPass123",
            full_name="Carla Customer",
        )
        self.stranger = User.objects.create_user(
            email="stranger@example.com",
            password="StrangerPass123",
        )
        self.room = Room.objects.create(
            name="Deluxe 201",
            price_per_night=Decimal("100.00"),
            capacity=2,
        )
        self.other_room = Room.objects.create(
            name="Standard 101",
            price_per_night=Decimal("70.00"),
            capacity=2,
        )
        self.list_url = reverse("review-list")

    def _stay(self, room: Room, *, customer=None, email="carla@example.com", finished=True, offset=0) -> Booking:
        check_in = timezone.localdate() + timedelta(days=10 + offset)
        booking = services.create_booking(
            room=room,
            check_in=check_in,
            check_out=check_in + timedelta(days=2),
            guests=1,
            contact=services.GuestContact(name="Carla Customer", email=email),
            customer=customer,
        )
        services.confirm_booking_payment(booking.id, payment_reference="pi_test")
        if finished:
            # move the confirmed stay into the past
            past = timezone.localdate() - timedelta(days=20 - offset)
            Booking.objects.filter(pk=booking.pk).update(check_in=past, check_out=past + timedelta(days=2))
        booking.refresh_from_db()
        return booking

    def test_customer_reviews_completed_stay(self) -> None:
        booking = self._stay(self.room, customer=self.customer)
        self.client.force_authenticate(self.customer)

        response = self.client.post(
            self.list_url,
            {"booking_id": booking.id, "rating": 5, "comment": "Lovely view"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["room"], self.room.id)
        self.assertEqual(response.data["booking_reference"], booking.reference)
        review = Review.objects.get(booking=booking)
        self.assertEqual(review.author, self.customer)

    def test_guest_reviews_with_booking_email(self) -> None:
        booking = self._stay(self.room, email="guest@example.com")

        response = self.client.post(
            self.list_url,
            {"reference": booking.reference.lower(), "email": "GUEST@example.com", "rating": 4},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(Review.objects.get(booking=booking).author)

    def test_wrong_email_looks_like_missing_booking(self) -> None:
        booking = self._stay(self.room, email="guest@example.com")

        response = self.client.post(
            self.list_url,
            {"reference": booking.reference, "email": "intruder@example.com", "rating": 1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Booking not found.")

    def test_anonymous_review_by_booking_id_is_not_found(self) -> None:
        booking = self._stay(self.room, email="guest@example.com")

        response = self.client.post(
            self.list_url,
            {"booking_id": booking.id, "email": "guest@example.com", "rating": 5},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Review.objects.exists())

    def test_other_customer_cannot_review(self) -> None:
        booking = self._stay(self.room, customer=self.customer)
        self.client.force_authenticate(self.stranger)

        response = self.client.post(self.list_url, {"booking_id": booking.id, "rating": 3}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_upcoming_stay_cannot_be_reviewed(self) -> None:
        booking = self._stay(self.room, customer=self.customer, finished=False)
        self.client.force_authenticate(self.customer)

        response = self.client.post(self.list_url, {"booking_id": booking.id, "rating": 5}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Review.objects.exists())

    def test_one_review_per_booking(self) -> None:
        booking = self._stay(self.room, customer=self.customer)
        self.client.force_authenticate(self.customer)
        self.client.post(self.list_url, {"booking_id": booking.id, "rating": 5}, format="json")

        response = self.client.post(self.list_url, {"booking_id": booking.id, "rating": 2}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "This booking has already been reviewed.")
        self.assertEqual(Review.objects.filter(booking=booking).count(), 1)

    def test_rating_out_of_range(self) -> None:
        booking = self._stay(self.room, customer=self.customer)
        self.client.force_authenticate(self.customer)

        response = self.client.post(self.list_url, {"booking_id": booking.id, "rating": 6}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("rating", response.data)

    def test_list_filtered_by_room_and_room_average(self) -> None:
        first = self._stay(self.room, email="a@example.com")
        second = self._stay(self.room, email="b@example.com", offset=3)
        third = self._stay(self.other_room, email="c@example.com")
        Review.objects.create(room=self.room, booking=first, rating=5)
        Review.objects.create(room=self.room, booking=second, rating=4)
        Review.objects.create(room=self.other_room, booking=third, rating=2)

        response = self.client.get(self.list_url, {"room": self.room.id})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(self.room.reviews.aggregate(avg=Avg("rating"))["avg"], 4.5)

        room_response = self.client.get(reverse("room-detail", args=[self.room.id]))
        self.assertEqual(room_response.data["average_rating"], 4.5)
        self.assertEqual(room_response.data["review_count"], 2)

    def test_author_deletes_review_but_stranger_cannot(self) -> None:
        booking = self._stay(self.room, customer=self.customer)
        review = Review.objects.create(room=self.room, booking=booking, author=self.customer, rating=3)
        url = reverse("review-detail", args=[review.id])

        self.client.force_authenticate(self.stranger)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.customer)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Review.objects.filter(pk=review.pk).exists())
