"""
Test suite for signature verification

Covers Signature-Input / Signature parsing and verification round trips with
the Ed25519 and HMAC-SHA256 signers.
"""

import pytest

from http_message_sig import (
    RequestLike,
    ResponseLike,
    SignatureParameters,
    Verifier,
    parse_signature,
    parse_signature_input,
    signature_headers,
    signature_headers_sync,
    verify,
    verify_sync,
    EncodingError,
    MissingComponentError,
    VerificationError,
)
from http_message_sig.crypto import Ed25519Signer, HmacSha256Signer, HmacSha256Verifier


def signed(message, headers):
    """Return a copy of a message carrying the given signature headers."""
    merged = dict(message.headers)
    merged.update(headers)
    if isinstance(message, ResponseLike):
        return ResponseLike(status=message.status, headers=merged)
    return RequestLike(method=message.method, url=message.url, headers=merged)


@pytest.fixture
def sample_request():
    return RequestLike(
        method="POST",
        url="https://example.com/path?query=string",
        headers={
            "Content-Type": "application/json",
            "Digest": "SHA-256=abcdef",
        },
    )


@pytest.fixture
def ed25519_signer():
    return Ed25519Signer(bytes(range(32)), "test-key")


class TestParseSignatureInput:
    """Test Signature-Input parsing"""
    
    def test_single_member(self):
        """Test parsing a single member with parameters"""
        value = 'sig1=("@method" "@path");created=1681004344;keyid="test-key";alg="ed25519"'
        
        parsed = parse_signature_input(value)
        
        assert list(parsed) == ["sig1"]
        member = parsed["sig1"]
        assert member.label == "sig1"
        assert member.components == ["@method", "@path"]
        assert member.parameters == SignatureParameters(created=1681004344, keyid="test-key", alg="ed25519")
        assert member.signature_input == '("@method" "@path");created=1681004344;keyid="test-key";alg="ed25519"'
    
    def test_multiple_members(self):
        """Test members are returned in header order"""
        value = 'sig1=("@method");created=1, foo=("@status");created=2;tag="x"'
        
        parsed = parse_signature_input(value)
        
        assert list(parsed) == ["sig1", "foo"]
        assert parsed["foo"].components == ["@status"]
        assert parsed["foo"].parameters.tag == "x"
        assert parsed["foo"].signature_input == '("@status");created=2;tag="x"'
    
    def test_empty_component_list(self):
        """Test an empty inner list is accepted"""
        parsed = parse_signature_input('sig1=();created=5')
        assert parsed["sig1"].components == []
        assert parsed["sig1"].parameters.created == 5
    
    def test_escaped_string_parameter(self):
        """Test escaped quotes in string parameters are unescaped"""
        parsed = parse_signature_input('sig1=("@method");nonce="a\\"b"')
        assert parsed["sig1"].parameters.nonce == 'a"b'
    
    def test_unknown_parameter_ignored(self):
        """Test unrecognized parameters do not fail parsing"""
        parsed = parse_signature_input('sig1=("@method");created=1;foo=bar')
        assert parsed["sig1"].parameters == SignatureParameters(created=1)
        assert parsed["sig1"].signature_input == '("@method");created=1;foo=bar'
    
    @pytest.mark.parametrize("value", [
        "",
        "sig1",
        'sig1=("@method"',
        'sig1=("@method");created="soon"',
        'sig1=("@method");keyid=5',
        'sig1=("@method";sf)',
        'sig1=("@method"),',
        'Sig1=("@method")',
        'sig1=(@method)',
        'sig1=("Content-Type")',
    ])
    def test_invalid_values(self, value):
        """Test malformed Signature-Input values are rejected"""
        with pytest.raises(VerificationError) as exc_info:
            parse_signature_input(value)
        
        assert exc_info.value.error_code == "INVALID_SIGNATURE_INPUT"


class TestParseSignature:
    """Test Signature parsing"""
    
    def test_single_member(self):
        """Test decoding a byte sequence member"""
        assert parse_signature("sig1=:aGVsbG8=:") == {"sig1": b"hello"}
    
    def test_multiple_members(self):
        """Test multiple members are decoded"""
        parsed = parse_signature("sig1=:aGVsbG8=:, foo=:d29ybGQ=:")
        assert parsed == {"sig1": b"hello", "foo": b"world"}
    
    def test_not_byte_sequence(self):
        """Test non byte-sequence members are rejected"""
        with pytest.raises(VerificationError) as exc_info:
            parse_signature('sig1="hello"')
        
        assert exc_info.value.error_code == "INVALID_SIGNATURE_FORMAT"
    
    def test_invalid_base64(self):
        """Test undecodable base64 is rejected"""
        with pytest.raises(EncodingError):
            parse_signature("sig1=:abc:")


class TestVerifyRoundTrip:
    """Test signing and verifying messages"""
    
    def test_ed25519_request(self, sample_request, ed25519_signer):
        """Test an Ed25519-signed request verifies"""
        headers = signature_headers_sync(sample_request, ed25519_signer, created=1681004344)
        
        parsed = verify_sync(signed(sample_request, headers), ed25519_signer.verifier())
        
        assert parsed.label == "sig1"
        assert parsed.components == ["@method", "@path", "@query", "@authority", "content-type", "digest"]
        assert parsed.parameters.keyid == "test-key"
        assert parsed.parameters.alg == "ed25519"
    
    def test_hmac_response(self):
        """Test an HMAC-signed response verifies"""
        response = ResponseLike(status=201, headers={"Content-Type": "text/plain"})
        signer = HmacSha256Signer(b"shared-secret", "hmac-key")
        
        headers = signature_headers_sync(response, signer, created=1681004344, key="resp")
        
        parsed = verify_sync(signed(response, headers), HmacSha256Verifier(b"shared-secret"), key="resp")
        assert parsed.components == ["@status", "content-type"]
    
    @pytest.mark.asyncio
    async def test_async_verifier(self, sample_request, ed25519_signer):
        """Test verify awaits asynchronous verifiers"""
        inner = ed25519_signer.verifier()
        
        class AsyncVerifier(Verifier):
            async def verify(self, data, signature, parameters):
                return inner.verify(data, signature, parameters)
        
        headers = await signature_headers(sample_request, ed25519_signer, created=1681004344)
        parsed = await verify(signed(sample_request, headers), AsyncVerifier())
        
        assert parsed.label == "sig1"
    
    def test_label_selection(self, sample_request, ed25519_signer):
        """Test a specific label can be verified among several"""
        first = signature_headers_sync(sample_request, ed25519_signer, components=["@method"], created=1)
        second = signature_headers_sync(sample_request, ed25519_signer, components=["@path"], created=2, key="foo")
        combined = {
            "Signature-Input": f"{first['Signature-Input']}, {second['Signature-Input']}",
            "Signature": f"{first['Signature']}, {second['Signature']}",
        }
        message = signed(sample_request, combined)
        
        assert verify_sync(message, ed25519_signer.verifier()).label == "sig1"
        assert verify_sync(message, ed25519_signer.verifier(), key="foo").components == ["@path"]


class TestVerifyFailures:
    """Test verification failures"""
    
    def test_tampered_component(self, sample_request, ed25519_signer):
        """Test a modified covered header fails verification"""
        headers = signature_headers_sync(sample_request, ed25519_signer, created=1681004344)
        message = signed(sample_request, headers)
        tampered = RequestLike(
            method=message.method,
            url=message.url,
            headers={**dict(message.headers), "digest": "SHA-256=000000"}
        )
        
        with pytest.raises(VerificationError) as exc_info:
            verify_sync(tampered, ed25519_signer.verifier())
        
        assert exc_info.value.error_code == "VERIFICATION_FAILED"
    
    def test_tampered_parameters(self, sample_request, ed25519_signer):
        """Test a modified Signature-Input fails verification"""
        headers = signature_headers_sync(sample_request, ed25519_signer, created=1681004344)
        headers["Signature-Input"] = headers["Signature-Input"].replace("1681004344", "1681004345")
        
        with pytest.raises(VerificationError):
            verify_sync(signed(sample_request, headers), ed25519_signer.verifier())
    
    def test_wrong_key(self, sample_request, ed25519_signer):
        """Test a signature does not verify under another key"""
        headers = signature_headers_sync(sample_request, ed25519_signer, created=1681004344)
        other = Ed25519Signer.generate("other")
        
        with pytest.raises(VerificationError):
            verify_sync(signed(sample_request, headers), other.verifier())
    
    def test_algorithm_mismatch(self, sample_request):
        """Test a verifier rejects signatures declaring another algorithm"""
        signer = HmacSha256Signer(b"secret", "k")
        headers = signature_headers_sync(sample_request, signer, created=1)
        ed_verifier = Ed25519Signer.generate("k").verifier()
        
        with pytest.raises(VerificationError):
            verify_sync(signed(sample_request, headers), ed_verifier)
    
    def test_missing_signature_input(self, sample_request, ed25519_signer):
        """Test a message without Signature-Input is rejected"""
        message = signed(sample_request, {"Signature": "sig1=:aGVsbG8=:"})
        
        with pytest.raises(VerificationError) as exc_info:
            verify_sync(message, ed25519_signer.verifier())
        
        assert exc_info.value.error_code == "MISSING_SIGNATURE_INPUT"
    
    def test_missing_signature(self, sample_request, ed25519_signer):
        """Test a message without Signature is rejected"""
        message = signed(sample_request, {"Signature-Input": 'sig1=("@method");created=1'})
        
        with pytest.raises(VerificationError) as exc_info:
            verify_sync(message, ed25519_signer.verifier())
        
        assert exc_info.value.error_code == "MISSING_SIGNATURE"
    
    def test_unknown_label(self, sample_request, ed25519_signer):
        """Test requesting an absent label fails"""
        headers = signature_headers_sync(sample_request, ed25519_signer, created=1)
        
        with pytest.raises(VerificationError) as exc_info:
            verify_sync(signed(sample_request, headers), ed25519_signer.verifier(), key="nope")
        
        assert exc_info.value.error_code == "SIGNATURE_LABEL_NOT_FOUND"
    
    def test_covered_component_removed(self, sample_request, ed25519_signer):
        """Test a covered header missing from the message fails"""
        headers = signature_headers_sync(sample_request, ed25519_signer, components=["digest"], created=1)
        message = RequestLike(
            method=sample_request.method,
            url=sample_request.url,
            headers={"Content-Type": "application/json", **headers}
        )
        
        with pytest.raises(MissingComponentError):
            verify_sync(message, ed25519_signer.verifier())
    
    def test_verifier_exception(self, sample_request, ed25519_signer):
        """Test verifier exceptions surface as VerificationError"""
        class BrokenVerifier(Verifier):
            def verify(self, data, signature, parameters):
                raise RuntimeError("key store offline")
        
        headers = signature_headers_sync(sample_request, ed25519_signer, created=1)
        
        with pytest.raises(VerificationError) as exc_info:
            verify_sync(signed(sample_request, headers), BrokenVerifier())
        
        assert exc_info.value.details["original_error"] == "key store offline"
    
    def test_async_verifier_in_sync_path(self, sample_request, ed25519_signer):
        """Test verify_sync refuses asynchronous verifiers"""
        class AsyncVerifier(Verifier):
            async def verify(self, data, signature, parameters):
                return True
        
        headers = signature_headers_sync(sample_request, ed25519_signer, created=1)
        
        with pytest.raises(VerificationError):
            verify_sync(signed(sample_request, headers), AsyncVerifier())
