#!/usr/bin/env python3
"""
Subscription cache for SubRouter
Stores fetched documents on disk, one file per subscription URL
"""

import hashlib
import os
import threading
from typing import Dict, Optional

from config import CACHE_KEY_LENGTH, CACHE_SUFFIX, get_cache_dir
from error_handling import CacheError
from logger import get_logger

logger = get_logger()

def cache_key(url: str) -> str:
    """Fixed-width hex fingerprint of a subscription URL"""
    return hashlib.sha256(url.encode('utf-8')).hexdigest()[:CACHE_KEY_LENGTH]

class CacheStore:
    """Key-value store mapping subscription URLs to raw documents"""

    def __init__(self, cache_dir: Optional[str] = None):
        self.cache_dir = cache_dir or get_cache_dir()
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, url: str) -> str:
        return os.path.join(self.cache_dir, cache_key(url) + CACHE_SUFFIX)

    def lock_for(self, url: str) -> threading.Lock:
        """Lock serializing updates of one URL"""
        key = cache_key(url)
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def save(self, url: str, data: bytes) -> str:
        """Write data for url, replacing any previous entry"""
        path = self.path_for(url)
        tmp_path = f"{path}.{os.getpid()}.{threading.get_ident()}.tmp"
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            with open(tmp_path, 'wb') as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError as e:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise CacheError(f"Could not write cache file {path}: {str(e)}") from e

        logger.debug(f"Subscription cached to {path}")
        return path

    def load(self, url: str) -> Optional[bytes]:
        """Cached data for url, None if there is no entry"""
        path = self.path_for(url)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheError(f"Could not read cache file {path}: {str(e)}") from e

    def exists(self, url: str) -> bool:
        return os.path.isfile(self.path_for(url))

    def clear(self, url: Optional[str] = None) -> int:
        """Remove the entry for url, or every entry when url is None

        Returns the number of files removed.
        """
        if url is not None:
            paths = [self.path_for(url)]
        else:
            try:
                names = os.listdir(self.cache_dir)
            except FileNotFoundError:
                return 0
            except OSError as e:
                raise CacheError(f"Could not list cache directory {self.cache_dir}: {str(e)}") from e
            paths = [os.path.join(self.cache_dir, n) for n in names if n.endswith(CACHE_SUFFIX)]

        removed = 0
        for path in paths:
            try:
                os.remove(path)
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                raise CacheError(f"Could not remove cache file {path}: {str(e)}") from e

        logger.debug(f"Removed {removed} cached subscription(s)")
        return removed
