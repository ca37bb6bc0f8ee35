from todo_api.security import BCRYPT_MAX_BYTES, hash_password, verify_password


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("password1")
        assert hashed.startswith("$2")
        assert verify_password("password1", hashed) is True
        assert verify_password("password2", hashed) is False

    def test_truncates_at_72_utf8_bytes(self):
        # "é" is two bytes in UTF-8, so 36 of them fill the bcrypt limit
        prefix = "é" * (BCRYPT_MAX_BYTES // 2)
        hashed = hash_password(prefix + "tail")
        assert verify_password(prefix, hashed) is True
        assert verify_password("é" * (BCRYPT_MAX_BYTES // 2 - 1), hashed) is False

    def test_unknown_hash_is_a_mismatch(self):
        assert verify_password("password1", "not-a-hash") is False
