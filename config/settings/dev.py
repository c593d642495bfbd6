"""Development settings for the hotel booking project.

Debug on, every host allowed, e-mails printed to the console and the
demo checkout enabled so bookings can be confirmed without Stripe keys.
"""

from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ['*']
CORS_ALLOW_ALL_ORIGINS = True

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

PAYMENT_GATEWAY = os.environ.get('PAYMENT_GATEWAY', 'demo')
DEMO_PAYMENTS_ENABLED = True
