"""Customer domain exceptions.

Raised by the Service Layer; the views translate them into HTTP
responses.
"""

from __future__ import annotations


class CustomerNotFound(Exception):
    """The requested customer does not exist or has been soft-deleted."""


class CustomerAlreadyExists(Exception):
    """Another live customer already uses this WhatsApp number."""


class AddressNotFound(Exception):
    pass


class AddressLimitReached(Exception):
    """The customer already has the maximum number of saved addresses."""
