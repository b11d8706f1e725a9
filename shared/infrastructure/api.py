"""
REST framework glue

Maps domain errors raised anywhere under a view onto HTTP responses, so
views can call services and command handlers without catching each error.
"""

import logging

from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


def domain_exception_handler(exc, context):
    """EXCEPTION_HANDLER for REST_FRAMEWORK settings"""
    if isinstance(exc, DomainError):
        view = context.get('view')
        logger.warning(
            "%s rejected with %s: %s",
            view.__class__.__name__ if view else 'request', exc.code, exc.message,
        )
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)
