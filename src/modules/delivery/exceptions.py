"""Delivery trip planner exceptions."""


class TripNotFound(Exception):
    """The requested delivery trip does not exist."""


class InvalidTrip(Exception):
    """The order or status change does not fit the trip."""
