# tests/test_tokens.py
import base64

import pytest

from sql_identity.core.errors import TokenNotSet
from sql_identity.core.tokens import generate_token, header_value, mask


def test_token_is_24_random_bytes_base64():
    token = generate_token()
    assert len(token) == 32
    assert len(base64.b64decode(token)) == 24


def test_tokens_do_not_collide():
    tokens = {generate_token() for _ in range(10_000)}
    assert len(tokens) == 10_000


def test_header_value_accepts_base64():
    token = generate_token()
    assert header_value(token) == token


@pytest.mark.parametrize("bad", ["", "abc\r\nSet-Cookie: x=1", "tök€n"])
def test_header_value_rejects_unsendable_tokens(bad):
    with pytest.raises(TokenNotSet):
        header_value(bad)


def test_mask_hides_most_of_the_token():
    token = generate_token()
    assert mask(token) == token[:6] + "..."
    assert mask(None) == "-"
