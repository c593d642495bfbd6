"""Room API views."""

from __future__ import annotations

from django.db.models import Avg, Count, ProtectedError  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.permissions import AllowAny  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.services import is_room_available, rooms_available_for
from apps.users.permissions import IsHotelAdminOrReadOnly, is_hotel_admin

from .filters import RoomFilterSet
from .models import Room
from .serializers import RoomSerializer, RoomWriteSerializer, StayQuerySerializer


class RoomViewSet(viewsets.ModelViewSet):
    """Public room catalogue; administrators create, edit and delete rooms."""

    queryset = Room.objects.all()
    permission_classes = [IsHotelAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = RoomFilterSet
    ordering_fields = ["price_per_night", "capacity", "name", "created_at"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset().annotate(
            average_rating=Avg("reviews__rating"),
            review_count=Count("reviews", distinct=True),
        )
        if not is_hotel_admin(self.request.user):
            qs = qs.filter(is_available=True)
        return qs

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return RoomWriteSerializer
        return RoomSerializer

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        room = serializer.save()
        read_serializer = RoomSerializer(room, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        room = serializer.save()
        return Response(RoomSerializer(room, context=self.get_serializer_context()).data)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        room = self.get_object()
        try:
            room.delete()
        except ProtectedError:
            return Response(
                {"detail": "Room has bookings; switch it off instead of deleting it."},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"], permission_classes=[AllowAny])
    def availability(self, request, pk=None):  # type: ignore
        """Whether the room is free for ``check_in``..``check_out`` (check-out exclusive)."""
        room = self.get_object()
        query = StayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        check_in = query.validated_data["check_in"]
        check_out = query.validated_data["check_out"]
        available = room.is_available and is_room_available(room, check_in, check_out)
        return Response(
            {
                "room": room.id,
                "check_in": check_in,
                "check_out": check_out,
                "available": available,
            }
        )

    @action(detail=False, methods=["get"], permission_classes=[AllowAny])
    def available(self, request):  # type: ignore
        """Rooms that can be booked for the requested stay and party size."""
        query = StayQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        rooms = rooms_available_for(
            query.validated_data["check_in"],
            query.validated_data["check_out"],
            guests=query.validated_data["guests"],
        )
        qs = self.filter_queryset(self.get_queryset().filter(pk__in=rooms.values("pk")))
        serializer = RoomSerializer(qs, many=True, context=self.get_serializer_context())
        return Response(serializer.data)
