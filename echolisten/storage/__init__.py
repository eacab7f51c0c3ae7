"""On-disk storage for audio bytes and cached dictionary entries."""
from echolisten.storage.blob_store import AUDIO_STORE, DICTIONARY_STORE, BlobStore, audio_store, dictionary_store

__all__ = ["AUDIO_STORE", "DICTIONARY_STORE", "BlobStore", "audio_store", "dictionary_store"]
