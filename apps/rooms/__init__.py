"""Rooms app package.

Holds the hotel's room catalogue: category, nightly price, capacity,
amenities, photos and the manual on/off switch administrators use to
take a room out of sale. Date-based availability is answered by the
bookings app.
"""
