"""
Inventory records (single owner per row).

Models:
- InventoryItem (one product line with its stock count)

Access goes through InventoryStore, which applies the owner row policies.
"""
