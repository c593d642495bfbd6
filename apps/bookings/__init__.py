"""Bookings app package.

This app owns the booking lifecycle: availability checks, reference
generation, the pending/confirmed/completed/cancelled state machine and
the per-night rows that keep a room from being sold twice for the same
night.
"""
