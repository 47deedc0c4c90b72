"""Services Layer - async orchestration of pure core policies around the object store.

Invariants:
    - Services receive an ObjectStore and Notifier; they never build SQL themselves
    - Every public operation maps to one lifecycle transition or one read
"""
