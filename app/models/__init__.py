from .user import User
from .vow import Vow, VowStatus
from .activity import Activity, ActivityCategory
from .kv_entry import KeyValueEntry

__all__ = [
    "User",
    "Vow",
    "VowStatus",
    "Activity",
    "ActivityCategory",
    "KeyValueEntry",
]
