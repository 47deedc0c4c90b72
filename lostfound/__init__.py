"""Lost & Found - found-object registry with claim matching and devolution tracking.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

__version__ = "1.0.0"
