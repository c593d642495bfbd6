"""Reviews app package.

Guests rate a room after a completed stay: one review per booking, a
1-5 rating, an optional comment and photo links. Room listings show the
average of these ratings.
"""
