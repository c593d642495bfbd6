"""Payments app package.

Creates hosted checkout sessions for bookings and reconciles their
outcome back into booking state. Stripe Checkout is the production
gateway; a demo gateway stands in for it during development.
"""
