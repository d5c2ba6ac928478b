from .adapter import RemoteSyncAdapter
from .strategy import LocalPatchStrategy, ResyncBucketStrategy, SyncStrategy, create_strategy

__all__ = [
    "LocalPatchStrategy",
    "RemoteSyncAdapter",
    "ResyncBucketStrategy",
    "SyncStrategy",
    "create_strategy",
]
