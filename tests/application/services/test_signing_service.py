import base64
import json

import pytest

from src.application.services.hash_service import HashService
from src.application.services.signing_service import (
    DEFAULT_MAX_AGE_MS,
    MAX_ENVELOPE_LENGTH,
    CredentialSigner,
    build_verification_url,
    extract_envelope,
)
from src.domain.exceptions import (
    ConfigurationError,
    MalformedEnvelope,
    MalformedPayload,
    SignatureMismatch,
    TokenExpired,
)
from src.domain.value_objects.core import CredentialPayload
from src.shared.enums import DenialReason


NONCE = "0123456789abcdef0123456789abcdef"
FIXED_NOW_MS = 1_700_000_000_000
SECRET = "unit-test-secret"


def wrap(data: str, signature: str) -> str:
    """Build an envelope by hand"""
    wrapper = json.dumps({"data": data, "signature": signature})
    return base64.b64encode(wrapper.encode()).decode()


def open_wrapper(envelope: str) -> dict:
    return json.loads(base64.b64decode(envelope))


class TestSealAndUnseal:
    """Envelope round trip and shape"""

    def test_round_trip_returns_original_payload(self, signer):
        payload = signer.new_payload("EMP-001")

        envelope = signer.sign(payload)

        assert signer.unseal(envelope) == payload

    def test_envelope_carries_canonical_data_and_hex_signature(self, signer):
        payload = CredentialPayload("EMP-001", FIXED_NOW_MS, NONCE)

        wrapper = open_wrapper(signer.sign(payload))

        assert wrapper["data"] == HashService.canonical_json(payload.to_wire())
        assert wrapper["data"].startswith('{"issuedAt":')
        assert len(wrapper["signature"]) == 64
        int(wrapper["signature"], 16)

    def test_internal_identifiers_are_not_in_the_envelope(self, signer):
        wrapper = open_wrapper(signer.sign(signer.new_payload("EMP-001")))

        assert set(json.loads(wrapper["data"])) == {"subjectExternalId", "issuedAt", "nonce"}

    def test_new_payloads_get_distinct_nonces(self, signer):
        first = signer.new_payload("EMP-001")
        second = signer.new_payload("EMP-001")

        assert first.nonce != second.nonce
        assert len(first.nonce) >= 32
        assert first.issued_at == FIXED_NOW_MS

    def test_verify_is_non_raising(self, signer):
        good = signer.verify(signer.sign(signer.new_payload("EMP-001")))
        bad = signer.verify("garbage")

        assert good.valid is True and good.payload is not None
        assert bad.valid is False
        assert isinstance(bad.error, MalformedEnvelope)


class TestSignatureFailures:
    """Any modification of the signed bytes fails the HMAC"""

    def test_flipped_signature_character_is_rejected(self, signer):
        wrapper = open_wrapper(signer.sign(signer.new_payload("EMP-001")))
        signature = wrapper["signature"]
        flipped = ("1" if signature[0] != "1" else "2") + signature[1:]

        with pytest.raises(SignatureMismatch) as exc_info:
            signer.unseal(wrap(wrapper["data"], flipped))

        assert exc_info.value.denial_reason == DenialReason.SIGNATURE

    def test_edited_data_is_rejected(self, signer):
        wrapper = open_wrapper(signer.sign(signer.new_payload("EMP-001")))
        forged = wrapper["data"].replace("EMP-001", "EMP-999")

        with pytest.raises(SignatureMismatch):
            signer.unseal(wrap(forged, wrapper["signature"]))

    def test_envelope_from_another_secret_is_rejected(self, signer, clock):
        other = CredentialSigner("some-other-secret", clock=clock)

        with pytest.raises(SignatureMismatch):
            signer.unseal(other.sign(other.new_payload("EMP-001")))


class TestHostileWrappers:
    """verify() answers every crafted wrapper with a denial, never an exception"""

    @pytest.fixture
    def issued(self, signer) -> dict:
        return open_wrapper(signer.sign(signer.new_payload("EMP-001")))

    @pytest.mark.parametrize(
        "signature",
        [
            "\ud800",
            "é" * 64,
            "zz" * 32,
            "0" * 63,
            "0" * 128,
        ],
    )
    def test_unusable_signature_is_a_mismatch(self, signer, issued, signature):
        check = signer.verify(wrap(issued["data"], signature))

        assert check.valid is False
        assert isinstance(check.error, SignatureMismatch)

    def test_non_ascii_character_inside_valid_signature(self, signer, issued):
        signature = issued["signature"]
        tampered = signature[:10] + "ß" + signature[11:]

        check = signer.verify(wrap(issued["data"], tampered))

        assert isinstance(check.error, SignatureMismatch)

    @pytest.mark.parametrize("data", ["\ud800", '{"subjectExternalId":"\udfff"}'])
    def test_unencodable_data_is_malformed(self, signer, issued, data):
        check = signer.verify(wrap(data, issued["signature"]))

        assert check.valid is False
        assert isinstance(check.error, MalformedEnvelope)

    def test_tampered_data_with_original_signature(self, signer, issued):
        forged = issued["data"].replace("EMP-001", "EMP-ü01")

        check = signer.verify(wrap(forged, issued["signature"]))

        assert isinstance(check.error, SignatureMismatch)

    @pytest.mark.parametrize(
        "wrapper",
        [
            {"data": 1, "signature": "00"},
            {"data": "x", "signature": ["00"]},
            {"data": {"nested": True}, "signature": "00"},
            {"data": "x", "signature": None},
        ],
    )
    def test_wrong_field_types_are_malformed(self, signer, wrapper):
        envelope = base64.b64encode(json.dumps(wrapper).encode()).decode()

        check = signer.verify(envelope)

        assert isinstance(check.error, MalformedEnvelope)

    def test_non_ascii_envelope_is_malformed(self, signer):
        check = signer.verify("\ud800abc")

        assert isinstance(check.error, MalformedEnvelope)


class TestMalformedInput:
    @pytest.mark.parametrize(
        "envelope",
        [
            "",
            "not base64 at all!",
            base64.b64encode(b"not json").decode(),
            base64.b64encode(b"[1, 2, 3]").decode(),
            base64.b64encode(b'{"data": "x"}').decode(),
            base64.b64encode(b'{"data": "", "signature": "abc"}').decode(),
            "A" * (MAX_ENVELOPE_LENGTH + 4),
        ],
    )
    def test_malformed_envelopes_map_to_malformed(self, signer, envelope):
        with pytest.raises(MalformedEnvelope) as exc_info:
            signer.unseal(envelope)

        assert exc_info.value.denial_reason == DenialReason.MALFORMED

    def test_correctly_signed_but_invalid_payload_is_malformed(self, signer):
        data = HashService.canonical_json({"subjectExternalId": "EMP-001", "issuedAt": 1})
        envelope = wrap(data, signer.compute_signature(data))

        with pytest.raises(MalformedPayload) as exc_info:
            signer.unseal(envelope)

        assert exc_info.value.denial_reason == DenialReason.MALFORMED

    def test_boolean_issued_at_is_malformed(self, signer):
        data = HashService.canonical_json(
            {"subjectExternalId": "EMP-001", "issuedAt": True, "nonce": NONCE}
        )

        with pytest.raises(MalformedPayload):
            signer.unseal(wrap(data, signer.compute_signature(data)))


class TestExpiry:
    """Age is judged against the signer's clock, inclusive at the maximum"""

    def test_exactly_max_age_is_accepted(self, signer, clock):
        envelope = signer.sign(CredentialPayload("EMP-001", FIXED_NOW_MS, NONCE))
        clock.advance(DEFAULT_MAX_AGE_MS)

        assert signer.unseal(envelope).subject_external_id == "EMP-001"

    def test_one_millisecond_past_max_age_is_expired(self, signer, clock):
        envelope = signer.sign(CredentialPayload("EMP-001", FIXED_NOW_MS, NONCE))
        clock.advance(DEFAULT_MAX_AGE_MS + 1)

        with pytest.raises(TokenExpired) as exc_info:
            signer.unseal(envelope)

        assert exc_info.value.denial_reason == DenialReason.EXPIRED
        assert exc_info.value.details["age_ms"] == DEFAULT_MAX_AGE_MS + 1

    def test_future_issue_time_is_expired(self, signer):
        envelope = signer.sign(CredentialPayload("EMP-001", FIXED_NOW_MS + 1, NONCE))

        with pytest.raises(TokenExpired):
            signer.unseal(envelope)

    def test_signature_is_checked_before_expiry(self, signer, clock):
        wrapper = open_wrapper(signer.sign(CredentialPayload("EMP-001", FIXED_NOW_MS, NONCE)))
        clock.advance(DEFAULT_MAX_AGE_MS * 2)

        with pytest.raises(SignatureMismatch):
            signer.unseal(wrap(wrapper["data"], "0" * 64))

    def test_custom_max_age(self, clock):
        signer = CredentialSigner(SECRET, max_age_ms=1000, clock=clock)
        envelope = signer.sign(signer.new_payload("EMP-001"))
        clock.advance(1001)

        with pytest.raises(TokenExpired):
            signer.unseal(envelope)


class TestConfiguration:
    def test_empty_secret_refuses_construction(self):
        with pytest.raises(ConfigurationError) as exc_info:
            CredentialSigner("")

        assert exc_info.value.details == {"setting": "TOKEN_SECRET"}

    def test_non_positive_max_age_is_rejected(self):
        with pytest.raises(ValueError):
            CredentialSigner(SECRET, max_age_ms=0)


class TestVerificationUrl:
    def test_url_round_trips_through_extract(self, signer):
        envelope = signer.sign(signer.new_payload("EMP-001"))

        url = build_verification_url("https://gate.example.com/verify/", envelope)

        assert url.startswith("https://gate.example.com/verify/")
        assert "=" not in url.rsplit("/", 1)[1]
        assert extract_envelope(url) == envelope

    def test_bare_envelope_is_returned_stripped(self):
        assert extract_envelope("  abc+/=  ") == "abc+/="

    def test_url_without_verify_segment_is_left_alone(self):
        assert extract_envelope("https://example.com/other") == "https://example.com/other"
