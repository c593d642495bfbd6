"""ASGI config for the hotel booking project.

Exposes the ASGI application for async-capable servers such as uvicorn or
daphne. The booking API itself is plain HTTP; refer to the official Django
documentation for deployment details.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

# Use the development settings by default. Production servers should set
# DJANGO_SETTINGS_MODULE accordingly.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
