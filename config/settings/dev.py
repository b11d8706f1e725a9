"""Development settings for Scootal.

This module extends the base settings with development specific
configuration, such as enabling debug, allowing all hosts, a readable
console log and using the console email backend. Do not use these
settings in production!
"""

import structlog

from .base import *  # noqa: F401,F403

# Enable debug mode for development (Stripe calls are emulated)
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Use console email backend during development
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

# Human-readable logs instead of JSON
LOGGING["formatters"]["json"]["processor"] = structlog.dev.ConsoleRenderer()  # noqa: F405
