"""Baking domain exceptions."""


class BakingTaskNotFound(Exception):
    """The requested baking task does not exist (or was removed)."""


class InvalidBakingTask(Exception):
    """The operation does not fit the task's kind or status."""


class InventoryItemNotFound(Exception):
    """The requested inventory row does not exist."""
