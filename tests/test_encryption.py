from __future__ import annotations

import pytest

from shapeshyft.security.encryption import ApiKeyCipher, EncryptionConfigurationError

KEY_HEX = '0123456789abcdef' * 4


def test_encrypt_decrypt_round_trip_uses_fresh_iv() -> None:
    cipher = ApiKeyCipher(KEY_HEX)

    first, first_iv = cipher.encrypt('sk-live-123')
    second, second_iv = cipher.encrypt('sk-live-123')

    assert first_iv != second_iv
    assert first != second
    assert len(first_iv) == 32
    assert 'sk-live' not in first
    assert cipher.decrypt(first, first_iv) == 'sk-live-123'


@pytest.mark.parametrize('key', ['', 'abc', 'zz' * 32])
def test_rejects_bad_keys(key: str) -> None:
    with pytest.raises(EncryptionConfigurationError):
        ApiKeyCipher(key)
