"""
Tests for the PKCE helpers: random strings, code challenges, state checks.
"""

import pytest

from pkce_auth.auth.utils import (
    UNRESERVED_CHARACTERS,
    build_error_redirect,
    gen_random_string,
    generate_code_challenge,
    validate_state,
)


class TestRandomString:
    """Test suite for gen_random_string"""

    @pytest.mark.parametrize("length", [0, 1, 32, 43, 128])
    def test_exact_length(self, length):
        assert len(gen_random_string(length)) == length

    def test_only_unreserved_characters(self):
        value = gen_random_string(2000)
        assert set(value) <= set(UNRESERVED_CHARACTERS)

    def test_alphabet_is_rfc3986_unreserved(self):
        assert len(UNRESERVED_CHARACTERS) == 66
        for ch in "-._~":
            assert ch in UNRESERVED_CHARACTERS

    def test_no_collisions(self):
        """10,000 draws of length 16 should never collide"""
        draws = {gen_random_string(16) for _ in range(10_000)}
        assert len(draws) == 10_000

    def test_negative_length_rejected(self):
        with pytest.raises(ValueError):
            gen_random_string(-1)


class TestCodeChallenge:
    """Test suite for S256 challenge derivation"""

    def test_rfc7636_appendix_b_vector(self):
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert generate_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_deterministic_and_unpadded(self):
        verifier = gen_random_string(128)
        challenge = generate_code_challenge(verifier)

        assert challenge == generate_code_challenge(verifier)
        assert len(challenge) == 43
        assert "=" not in challenge
        assert "+" not in challenge and "/" not in challenge


class TestStateValidation:
    """Test suite for callback state comparison"""

    def test_matching_state(self):
        assert validate_state("abc", "abc")

    def test_mismatched_state(self):
        assert not validate_state("b", "a")

    def test_empty_state_never_validates(self):
        assert not validate_state("", "")
        assert not validate_state("abc", "")
        assert not validate_state("", "abc")


class TestErrorRedirect:
    def test_appends_query(self):
        assert build_error_redirect("/", "invalid_state") == "/?error=invalid_state"

    def test_extends_existing_query(self):
        assert build_error_redirect("/login?next=home", "access_denied") == "/login?next=home&error=access_denied"

    def test_encodes_error_value(self):
        assert build_error_redirect("/", "a b&c") == "/?error=a+b%26c"
