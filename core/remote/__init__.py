"""Remote translation store shared between clients."""

from core.remote.store import NullRemoteStore, RemoteStoreError, RemoteTranslationStore, RestTranslationStore

__all__: list[str] = [
    "NullRemoteStore",
    "RemoteStoreError",
    "RemoteTranslationStore",
    "RestTranslationStore",
]
