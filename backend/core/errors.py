"""Inventory error taxonomy.

- Unauthorized: no authenticated caller
- ValidationError: bad input caught before reaching the store
- StoreError: anything the store reports (policy denial, constraint, transport)
"""


class InventoryError(Exception):
    default_message = "Inventory operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(InventoryError):
    default_message = "Not authenticated"


class ValidationError(InventoryError):
    default_message = "Invalid input"


class StoreError(InventoryError):
    default_message = "Could not reach the inventory store"


class PolicyViolation(StoreError):
    default_message = "Row-level security policy violation"


class ItemNotFound(StoreError):
    default_message = "Inventory item not found"
