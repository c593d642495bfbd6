"""Integration tests for the room catalogue API."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings import services
from apps.rooms.models import Room
from apps.users.models import User


class RoomAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="AdminPass123",
            role=User.RoleChoices.ADMIN,
        )
        self.customer = User.objects.create_user(
            email="customer@example.com",
            password="CustomerPass123",
        )
        self.standard = Room.objects.create(
            name="Standard 101",
            category=Room.Category.STANDARD,
            price_per_night=Decimal("80.00"),
            capacity=2,
        )
        self.deluxe = Room.objects.create(
            name="Deluxe 201",
            category=Room.Category.DELUXE,
            price_per_night=Decimal("140.00"),
            capacity=3,
        )
        self.closed = Room.objects.create(
            name="Standard 102",
            price_per_night=Decimal("80.00"),
            capacity=2,
            is_available=False,
        )
        self.list_url = reverse("room-list")
        self.start = timezone.localdate() + timedelta(days=20)

    def _book(self, room: Room, check_in, check_out):
        return services.create_booking(
            room=room,
            check_in=check_in,
            check_out=check_out,
            guests=1,
            contact=services.GuestContact(name="Jane Guest", email="jane@example.com"),
        )

    def test_public_list_hides_switched_off_rooms(self) -> None:
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [room["name"] for room in response.data]
        self.assertEqual(names, ["Standard 101", "Deluxe 201"])
        self.assertIsNone(response.data[0]["average_rating"])
        self.assertEqual(response.data[0]["review_count"], 0)

    def test_admin_sees_every_room(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.get(self.list_url)

        self.assertEqual(len(response.data), 3)

    def test_filters_by_category_and_party_size(self) -> None:
        response = self.client.get(self.list_url, {"category": "deluxe"})
        self.assertEqual([room["id"] for room in response.data], [self.deluxe.id])

        response = self.client.get(self.list_url, {"guests": 3})
        self.assertEqual([room["id"] for room in response.data], [self.deluxe.id])

        response = self.client.get(self.list_url, {"price_max": "100"})
        self.assertEqual([room["id"] for room in response.data], [self.standard.id])

    def test_admin_creates_room(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            self.list_url,
            {
                "name": "Suite 501",
                "category": "executive_suite",
                "price_per_night": "320.00",
                "capacity": 4,
                "amenities": ["Sea view", "Minibar"],
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["category_display"], "Executive suite")
        self.assertEqual(response.data["amenities"], ["Sea view", "Minibar"])

    def test_customer_cannot_create_room(self) -> None:
        self.client.force_authenticate(self.customer)

        response = self.client.post(
            self.list_url,
            {"name": "Rogue", "price_per_night": "1.00", "capacity": 1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_create_room(self) -> None:
        response = self.client.post(
            self.list_url,
            {"name": "Rogue", "price_per_night": "1.00", "capacity": 1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_negative_price_rejected(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            self.list_url,
            {"name": "Bad", "price_per_night": "-5.00", "capacity": 1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("price_per_night", response.data)

    def test_admin_switches_room_off(self) -> None:
        self.client.force_authenticate(self.admin)
        url = reverse("room-detail", args=[self.standard.id])

        response = self.client.patch(url, {"is_available": False}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["is_available"])

    def test_room_with_bookings_cannot_be_deleted(self) -> None:
        self._book(self.standard, self.start, self.start + timedelta(days=2))
        self.client.force_authenticate(self.admin)

        response = self.client.delete(reverse("room-detail", args=[self.standard.id]))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Room.objects.filter(pk=self.standard.id).exists())

    def test_room_without_bookings_is_deleted(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.delete(reverse("room-detail", args=[self.deluxe.id]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Room.objects.filter(pk=self.deluxe.id).exists())

    def test_availability_for_a_single_room(self) -> None:
        self._book(self.standard, self.start, self.start + timedelta(days=3))
        url = reverse("room-availability", args=[self.standard.id])

        busy = self.client.get(
            url,
            {"check_in": str(self.start + timedelta(days=2)), "check_out": str(self.start + timedelta(days=4))},
        )
        free = self.client.get(
            url,
            {"check_in": str(self.start + timedelta(days=3)), "check_out": str(self.start + timedelta(days=5))},
        )

        self.assertEqual(busy.status_code, status.HTTP_200_OK)
        self.assertFalse(busy.data["available"])
        self.assertTrue(free.data["available"])

    def test_availability_rejects_inverted_range(self) -> None:
        url = reverse("room-availability", args=[self.standard.id])

        response = self.client.get(url, {"check_in": str(self.start), "check_out": str(self.start)})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("check_out", response.data)

    def test_available_rooms_for_stay(self) -> None:
        self._book(self.standard, self.start, self.start + timedelta(days=2))

        response = self.client.get(
            reverse("room-available"),
            {
                "check_in": str(self.start + timedelta(days=1)),
                "check_out": str(self.start + timedelta(days=3)),
            },
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([room["id"] for room in response.data], [self.deluxe.id])

    def test_available_rooms_respect_party_size(self) -> None:
        response = self.client.get(
            reverse("room-available"),
            {
                "check_in": str(self.start),
                "check_out": str(self.start + timedelta(days=1)),
                "guests": 3,
            },
        )

        self.assertEqual([room["id"] for room in response.data], [self.deluxe.id])

    def test_cancelled_booking_frees_the_room(self) -> None:
        booking = self._book(self.standard, self.start, self.start + timedelta(days=2))
        services.cancel_booking(booking, source="admin")

        response = self.client.get(
            reverse("room-availability", args=[self.standard.id]),
            {"check_in": str(self.start), "check_out": str(self.start + timedelta(days=2))},
        )

        self.assertTrue(response.data["available"])
