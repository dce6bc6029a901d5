from byteinit.utils import token_crypto


def test_generate_and_parse_roundtrip():
    tid, secret, full = token_crypto.generate_token()
    assert tid and secret and full
    assert full.startswith(token_crypto.TOKEN_PREFIX)
    parsed = token_crypto.parse_token(full)
    assert parsed is not None
    assert parsed.token_id == tid
    assert parsed.secret == secret


def test_parse_rejects_malformed_tokens():
    assert token_crypto.parse_token("") is None
    assert token_crypto.parse_token("hs_pat_abc_def") is None
    assert token_crypto.parse_token("bi_sess_") is None
    assert token_crypto.parse_token("bi_sess__secret") is None
    assert token_crypto.parse_token("bi_sess_abc_") is None


def test_hash_and_verify_secret():
    enc = token_crypto.hash_secret("s3cr3t-test-value")
    assert enc.startswith("$argon2id$")
    assert token_crypto.verify_secret("s3cr3t-test-value", enc)
    assert not token_crypto.verify_secret("wrong-secret", enc)
    assert not token_crypto.verify_secret("anything", "not-a-hash")
    assert not token_crypto.verify_secret("", enc)


def test_email_tokens_are_unique_hex():
    a, b = token_crypto.generate_email_token(), token_crypto.generate_email_token()
    assert a != b
    assert len(a) == 64
    int(a, 16)
