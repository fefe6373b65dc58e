"""
Credential signing service.

Creates and opens the HMAC-SHA256 envelope carried by scannable credentials:

    envelope = base64(JSON{"data": <canonical payload JSON>, "signature": <hex HMAC>})

This module performs no I/O. The secret is process-wide configuration and is
never part of the envelope; the clock is injectable for tests.
"""

import base64
import binascii
import hashlib
import hmac
import json
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import quote, unquote, urlsplit

from src.application.services.hash_service import HashService
from src.domain.exceptions import (ConfigurationError, CredentialError, MalformedEnvelope,
                                   MalformedPayload, SignatureMismatch, TokenExpired)
from src.domain.value_objects.core import CredentialPayload
from src.infrastructure.config.settings import Settings
from src.shared.utils import current_millis, generate_nonce

DEFAULT_MAX_AGE_MS = 24 * 60 * 60 * 1000
MAX_ENVELOPE_LENGTH = 4096
VERIFY_PATH_SEGMENT = "/verify/"


@dataclass(frozen=True)
class SignedEnvelope:
    """An envelope together with the exact bytes that were signed"""

    envelope: str
    data: str
    signature: str
    payload: CredentialPayload


@dataclass(frozen=True)
class SignatureCheck:
    """Outcome of opening an envelope: either a payload or the failure"""

    valid: bool
    payload: CredentialPayload | None = None
    error: CredentialError | None = None


def extract_envelope(scanned_text: str) -> str:
    """
    Accept either a bare envelope or the verification URL printed in a code.

    URLs are reduced to the part after "/verify/" and percent-decoded.
    """
    text = scanned_text.strip()
    if text.startswith(("http://", "https://")):
        path = urlsplit(text).path
        index = path.find(VERIFY_PATH_SEGMENT)
        if index >= 0:
            return unquote(path[index + len(VERIFY_PATH_SEGMENT):])
        return text
    if "%" in text:
        return unquote(text)
    return text


def build_verification_url(base_url: str, envelope: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(envelope, safe='')}"


class CredentialSigner:
    """
    HMAC envelope signer and verifier.

    Construction fails without a secret, so a signer that exists is always
    ready to serve; there is no separate readiness flag.
    """

    def __init__(
        self,
        secret: str,
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
        clock: Callable[[], int] = current_millis,
        hash_service: HashService | None = None,
    ):
        if not secret:
            raise ConfigurationError("TOKEN_SECRET")
        if max_age_ms <= 0:
            raise ValueError("max_age_ms must be positive")
        self._secret = secret.encode("utf-8")
        self.max_age_ms = max_age_ms
        self.clock = clock
        self.hash_service = hash_service or HashService()

    @classmethod
    def from_settings(
        cls, settings: Settings, clock: Callable[[], int] = current_millis
    ) -> "CredentialSigner":
        return cls(settings.token_secret, max_age_ms=settings.token_max_age_ms, clock=clock)

    def new_payload(self, subject_external_id: str) -> CredentialPayload:
        """Fresh payload stamped with the signer's clock and a random nonce"""
        return CredentialPayload(
            subject_external_id=subject_external_id,
            issued_at=self.clock(),
            nonce=generate_nonce(),
        )

    def compute_signature(self, data: str) -> str:
        return hmac.new(self._secret, data.encode("utf-8"), hashlib.sha256).hexdigest()

    def seal(self, payload: CredentialPayload) -> SignedEnvelope:
        """Serialize canonically, sign, and wrap into an envelope"""
        data = self.hash_service.canonical_json(payload.to_wire())
        signature = self.compute_signature(data)
        wrapper = json.dumps({"data": data, "signature": signature}, separators=(",", ":"))
        envelope = base64.b64encode(wrapper.encode("utf-8")).decode("ascii")
        return SignedEnvelope(envelope=envelope, data=data, signature=signature, payload=payload)

    def sign(self, payload: CredentialPayload) -> str:
        return self.seal(payload).envelope

    def unseal(self, envelope: str) -> CredentialPayload:
        """
        Open an envelope or raise the matching CredentialError.

        Checks run in order: envelope shape, signature, payload shape, age.
        """
        if not isinstance(envelope, str) or not envelope or len(envelope) > MAX_ENVELOPE_LENGTH:
            raise MalformedEnvelope("Envelope is empty or too large")

        try:
            decoded = base64.b64decode(envelope, validate=True).decode("utf-8")
            wrapper = json.loads(decoded)
        except (binascii.Error, ValueError) as e:
            raise MalformedEnvelope("Envelope is not base64 encoded JSON") from e

        if not isinstance(wrapper, dict):
            raise MalformedEnvelope("Envelope must be a JSON object")
        data = wrapper.get("data")
        signature = wrapper.get("signature")
        if not isinstance(data, str) or not data or not isinstance(signature, str) or not signature:
            raise MalformedEnvelope("Envelope is missing data or signature")

        try:
            expected = self.compute_signature(data)
        except UnicodeEncodeError as e:
            raise MalformedEnvelope("Envelope data is not valid UTF-8 text") from e

        # compare_digest only takes ASCII str; anything else cannot be our hex digest
        if not signature.isascii() or not hmac.compare_digest(expected, signature):
            raise SignatureMismatch("Credential signature verification failed")

        try:
            payload = CredentialPayload.from_wire(json.loads(data))
        except ValueError as e:
            raise MalformedPayload("Signed data is not a valid credential payload") from e

        age_ms = self.clock() - payload.issued_at
        if age_ms > self.max_age_ms or age_ms < 0:
            raise TokenExpired(age_ms, self.max_age_ms)

        return payload

    def verify(self, envelope: str) -> SignatureCheck:
        """Non-raising form of unseal()"""
        try:
            return SignatureCheck(valid=True, payload=self.unseal(envelope))
        except CredentialError as e:
            return SignatureCheck(valid=False, error=e)
