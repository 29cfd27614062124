from charlieverse.dependencies import _extract_token_from_request


def test_bearer_header_wins():
    token = _extract_token_from_request(
        authorization="Bearer header-token",
        cookie="charlieverse.sid=cookie-token",
        token_param="query-token",
    )
    assert token == "header-token"


def test_query_parameter_before_cookie():
    token = _extract_token_from_request(cookie="charlieverse.sid=cookie-token", token_param="query-token")
    assert token == "query-token"


def test_configured_cookie_name():
    token = _extract_token_from_request(cookie="custom.sid=abc; other=1", cookie_name="custom.sid")
    assert token == "abc"


def test_fallback_cookie_names():
    assert _extract_token_from_request(cookie="session_token=xyz") == "xyz"


def test_missing_or_malformed_inputs():
    assert _extract_token_from_request() is None
    assert _extract_token_from_request(authorization="Basic dXNlcg==") is None
    assert _extract_token_from_request(cookie="unrelated=1") is None
    assert _extract_token_from_request(cookie='bad="unterminated') is None
