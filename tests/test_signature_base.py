"""
Test suite for signature base construction

This module tests component list and parameter serialization, the exact
signature base layout, default created handling, and the consistency between
the signature base and the Signature-Input value.
"""

import pytest

from http_message_sig import (
    RequestLike,
    ResponseLike,
    SignatureParameters,
    build_signature_base,
    serialize_component_list,
    serialize_parameters,
    MissingComponentError,
    InvalidComponentError,
    ValidationError,
)

CREATED = 1681004344

PARAMS = SignatureParameters(created=CREATED, keyid="test-key", alg="hmac-sha256")


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
def sample_response():
    return ResponseLike(
        status=200,
        headers={
            "Content-Type": "text/plain",
            "Digest": "SHA-256=abcdef",
            "X-Total": "200",
        },
    )


class TestSerialization:
    """Test component list and parameter serialization"""
    
    def test_component_list(self):
        """Test components are quoted, lowercased and space separated"""
        assert serialize_component_list(["@method", "Content-Type"]) == '("@method" "content-type")'
        assert serialize_component_list([]) == "()"
    
    def test_parameter_order(self):
        """Test parameters follow the fixed order regardless of construction order"""
        params = SignatureParameters(
            tag="web-bot-auth",
            alg="ed25519",
            keyid="k",
            nonce="n",
            expires=1681004400,
            created=CREATED,
        )
        assert serialize_parameters(params) == (
            ';created=1681004344;expires=1681004400;nonce="n";keyid="k";alg="ed25519";tag="web-bot-auth"'
        )
    
    def test_unset_parameters_omitted(self):
        """Test unset parameters do not appear"""
        assert serialize_parameters(SignatureParameters(created=CREATED)) == ";created=1681004344"
        assert serialize_parameters(SignatureParameters()) == ""
    
    def test_string_escaping(self):
        """Test quotes and backslashes in strings are escaped"""
        params = SignatureParameters(keyid='a"b\\c')
        assert serialize_parameters(params) == ';keyid="a\\"b\\\\c"'
    
    def test_invalid_parameters(self):
        """Test invalid parameter values are rejected"""
        with pytest.raises(ValidationError):
            serialize_parameters(SignatureParameters(created=-1))
        with pytest.raises(ValidationError):
            serialize_parameters(SignatureParameters(created="now"))
        with pytest.raises(ValidationError):
            serialize_parameters(SignatureParameters(keyid="café"))
        with pytest.raises(ValidationError):
            serialize_parameters(SignatureParameters(nonce="line\nbreak"))


class TestBuildSignatureBase:
    """Test signature base construction"""
    
    def test_request_signature_base(self, sample_request):
        """Test the full request example byte for byte"""
        components = ["@method", "@path", "@query", "@authority", "content-type", "digest"]
        result = build_signature_base(sample_request, components, PARAMS)
        
        expected = "\n".join([
            '"@method": POST',
            '"@path": /path',
            '"@query": ?query=string',
            '"@authority": example.com',
            '"content-type": application/json',
            '"digest": SHA-256=abcdef',
            '"@signature-params": ("@method" "@path" "@query" "@authority" "content-type" "digest");created=1681004344;keyid="test-key";alg="hmac-sha256"',
        ])
        
        assert result.base == expected
        assert result.signature_input == (
            '("@method" "@path" "@query" "@authority" "content-type" "digest");created=1681004344;keyid="test-key";alg="hmac-sha256"'
        )
        assert not result.base.endswith("\n")
    
    def test_response_signature_base(self, sample_response):
        """Test the response example with default components"""
        result = build_signature_base(sample_response, None, PARAMS)
        
        assert result.base.split("\n")[:-1] == [
            '"@status": 200',
            '"content-type": text/plain',
            '"digest": SHA-256=abcdef',
        ]
        assert result.components == ["@status", "content-type", "digest"]
    
    def test_custom_order_preserved(self, sample_request):
        """Test caller order is kept without sorting"""
        result = build_signature_base(sample_request, ["@authority", "@method", "@path", "digest"], PARAMS)
        
        assert result.base == "\n".join([
            '"@authority": example.com',
            '"@method": POST',
            '"@path": /path',
            '"digest": SHA-256=abcdef',
            '"@signature-params": ("@authority" "@method" "@path" "digest");created=1681004344;keyid="test-key";alg="hmac-sha256"',
        ])
    
    def test_duplicates_kept(self, sample_request):
        """Test duplicate components are not removed"""
        result = build_signature_base(sample_request, ["digest", "digest"], PARAMS)
        assert result.base.count('"digest": SHA-256=abcdef') == 2
        assert result.signature_input.startswith('("digest" "digest")')
    
    def test_header_names_lowercased(self, sample_request):
        """Test mixed-case header identifiers are lowercased everywhere"""
        result = build_signature_base(sample_request, ["Content-Type"], PARAMS)
        assert result.base.startswith('"content-type": application/json\n')
        assert result.components == ["content-type"]
    
    def test_signature_input_matches_base(self, sample_request):
        """Test the Signature-Input value is the @signature-params line content"""
        result = build_signature_base(sample_request, ["@method", "digest"], PARAMS)
        last_line = result.base.split("\n")[-1]
        
        assert last_line == f'"@signature-params": {result.signature_input}'
    
    def test_deterministic(self, sample_request):
        """Test repeated builds with the same inputs are identical"""
        first = build_signature_base(sample_request, None, PARAMS)
        second = build_signature_base(sample_request, None, PARAMS)
        assert first == second
    
    def test_created_from_clock(self, sample_request):
        """Test created defaults to the injected clock"""
        result = build_signature_base(
            sample_request,
            ["@method"],
            SignatureParameters(keyid="k"),
            timestamp_generator=lambda: 1700000000
        )
        
        assert result.parameters.created == 1700000000
        assert result.signature_input == '("@method");created=1700000000;keyid="k"'
    
    def test_created_defaults_to_now(self, sample_request):
        """Test created is filled in when no clock or parameters are given"""
        result = build_signature_base(sample_request, ["@method"])
        assert isinstance(result.parameters.created, int)
        assert result.parameters.created > 0
    
    def test_explicit_missing_header(self, sample_request):
        """Test explicit components are not filtered"""
        with pytest.raises(MissingComponentError):
            build_signature_base(sample_request, ["@method", "x-missing"], PARAMS)
    
    def test_explicit_status_on_request(self, sample_request):
        """Test @status on a request fails"""
        with pytest.raises(InvalidComponentError):
            build_signature_base(sample_request, ["@status"], PARAMS)
    
    def test_default_drops_absent_headers(self):
        """Test default components drop headers the message lacks"""
        request = RequestLike(method="GET", url="https://example.com/path?a=b")
        result = build_signature_base(request, None, PARAMS)
        
        assert result.components == ["@method", "@path", "@query", "@authority"]
        assert '"content-type"' not in result.base
        assert '"digest"' not in result.base
    
    def test_invalid_message(self):
        """Test non-message values are rejected"""
        with pytest.raises(ValidationError):
            build_signature_base({"method": "GET"}, ["@method"], PARAMS)
