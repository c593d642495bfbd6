"""URL declarations for the users app."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import CustomerListView, MeView

urlpatterns = [
    path('me/', MeView.as_view(), name='user-me'),
    path('customers/', CustomerListView.as_view(), name='customer-list'),
]
