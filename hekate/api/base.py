"""Shared plumbing for the endpoint wrappers."""
import functools
import logging

import httpx

from hekate.domain.exceptions import ApiRequestError, HekateError
from hekate.services.api_client import ApiClient

logger = logging.getLogger(__name__)


def api_call(error_message: str):
    """
    Give an endpoint wrapper the uniform error policy.

    Client errors (already carrying the server's message) propagate as is;
    transport and parsing failures are wrapped in ApiRequestError with a
    static, user-presentable message.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HekateError:
                raise
            except (httpx.HTTPError, OSError, ValueError, KeyError, TypeError) as e:
                logger.error(f"{func.__qualname__} failed: {e}")
                raise ApiRequestError(error_message) from e
        return wrapper
    return decorator


class BaseApi:
    """Endpoint group bound to one ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client
