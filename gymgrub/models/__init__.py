"""SQLAlchemy models for Gym and Grub.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from gymgrub.models.subscription import Subscription

__all__ = [
    "Subscription",
]
