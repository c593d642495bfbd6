"""Notifications app package.

Sends the booking confirmation and cancellation e-mails. Delivery is a
side effect of booking events published after commit; a failed e-mail
is logged and recorded but never undoes the booking change behind it.
"""
