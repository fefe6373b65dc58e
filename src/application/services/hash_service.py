"""
Hash service for canonical serialization and fingerprints.

Follows OCP - closed for modification, open for extension.
New hash algorithms can be added without modifying this class.
"""

import hashlib
import json
from abc import ABC, abstractmethod
from typing import Any


class HashAlgorithm(ABC):
    """Abstract base class for hash algorithms (OCP)"""

    @abstractmethod
    def hash(self, data: str) -> str:
        """Compute hash of the input data"""
        pass


class SHA256Algorithm(HashAlgorithm):
    """SHA-256 hash algorithm implementation"""

    def hash(self, data: str) -> str:
        # surrogatepass: scanned text is untrusted and may hold lone surrogates
        return hashlib.sha256(data.encode("utf-8", "surrogatepass")).hexdigest()


class HashService:
    """
    Single source of truth for canonical JSON and envelope fingerprints.

    The fingerprint identifies a physical credential in logs and audit rows
    without storing or printing the envelope itself.
    """

    def __init__(self, algorithm: HashAlgorithm | None = None):
        self.algorithm = algorithm or SHA256Algorithm()

    @staticmethod
    def canonical_json(data: dict[str, Any]) -> str:
        """Convert a dictionary to a canonical JSON string"""
        return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    def fingerprint(self, envelope: str) -> str:
        """Hex digest of an envelope string"""
        return self.algorithm.hash(envelope)
