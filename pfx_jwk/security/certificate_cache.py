"""
Shared, synchronized cache of loaded certificate bundles keyed by file path.
"""
import hashlib
import logging
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, Optional

from ..models.certificate import CertificateBundle, CertificateMetadata
from ..models.errors import CertificateLoadError, ConfigurationError
from .certificate_loader import CertificateLoader
from .metadata_extractor import CertificateMetadataExtractor


@dataclass
class CacheEntry:
    """A validated bundle and the file state it was loaded from."""
    path: str
    bundle: CertificateBundle
    metadata: CertificateMetadata
    mtime_ns: int
    size: int
    passphrase_fingerprint: str
    loaded_at: float
    leases: int = 0
    evicted: bool = field(default=False, repr=False)


def _fingerprint(passphrase: str) -> str:
    return hashlib.sha256(passphrase.encode('utf-8')).hexdigest()


class CertificateCache:
    """
    Keeps one loaded bundle per path until the file changes, the passphrase
    changes or the TTL expires. A ttl_seconds of 0 disables time-based expiry.

    Entries are handed out through lease(); an evicted bundle releases its
    private key only once the last lease on it has ended.
    """

    def __init__(self, loader: Optional[CertificateLoader] = None,
                 metadata_extractor: Optional[CertificateMetadataExtractor] = None,
                 ttl_seconds: int = 300,
                 clock: Callable[[], float] = time.monotonic):
        self.loader = loader or CertificateLoader()
        self.metadata_extractor = metadata_extractor or CertificateMetadataExtractor()
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._reload_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self.logger = logging.getLogger(__name__)

    @contextmanager
    def lease(self, path: Optional[str], passphrase: Optional[str]) -> Iterator[CacheEntry]:
        """Borrow the current entry for path, reloading it if stale."""
        entry = self._acquire(path, passphrase)
        try:
            yield entry
        finally:
            with self._lock:
                entry.leases -= 1
                if entry.evicted and entry.leases == 0:
                    entry.bundle.release()

    def _acquire(self, path: Optional[str], passphrase: Optional[str]) -> CacheEntry:
        if not path or not passphrase:
            raise ConfigurationError("Certificate PFX path or passphrase is not configured")

        try:
            stat = os.stat(path)
        except OSError as e:
            self.invalidate(path)
            raise CertificateLoadError(f"Certificate file not found: {path}", cause=e) from e

        fingerprint = _fingerprint(passphrase)

        with self._lock:
            entry = self._entries.get(path)
            if entry and self._is_fresh(entry, stat, fingerprint):
                self._hits += 1
                entry.leases += 1
                return entry
            reload_lock = self._reload_locks.setdefault(path, threading.Lock())

        # One reload per path at a time; waiters re-check once it is done.
        with reload_lock:
            with self._lock:
                entry = self._entries.get(path)
                if entry and self._is_fresh(entry, stat, fingerprint):
                    self._hits += 1
                    entry.leases += 1
                    return entry

            bundle = self.loader.load(path, passphrase)
            new_entry = CacheEntry(
                path=path,
                bundle=bundle,
                metadata=self.metadata_extractor.describe(bundle),
                mtime_ns=stat.st_mtime_ns,
                size=stat.st_size,
                passphrase_fingerprint=fingerprint,
                loaded_at=self._clock(),
                leases=1
            )

            with self._lock:
                self._misses += 1
                old_entry = self._entries.get(path)
                self._entries[path] = new_entry
                if old_entry is not None:
                    self._evict(old_entry)

        self.logger.info(f"Certificate bundle cached: {path}")
        return new_entry

    def _is_fresh(self, entry: CacheEntry, stat: os.stat_result, fingerprint: str) -> bool:
        if entry.mtime_ns != stat.st_mtime_ns or entry.size != stat.st_size:
            return False
        if entry.passphrase_fingerprint != fingerprint:
            return False
        if self.ttl_seconds and self._clock() - entry.loaded_at >= self.ttl_seconds:
            return False
        return True

    def _evict(self, entry: CacheEntry) -> None:
        """Mark an entry evicted. Caller holds self._lock."""
        entry.evicted = True
        if entry.leases == 0:
            entry.bundle.release()

    def invalidate(self, path: Optional[str] = None) -> None:
        """Drop the entry for path, or every entry when path is None."""
        with self._lock:
            paths = [path] if path is not None else list(self._entries)
            for key in paths:
                entry = self._entries.pop(key, None)
                if entry is not None:
                    self._evict(entry)

    def clear(self) -> None:
        self.invalidate()
        self.logger.info("Certificate cache cleared")

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                'entries': len(self._entries),
                'hits': self._hits,
                'misses': self._misses
            }
