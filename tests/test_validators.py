"""Tests for validators: full names, uids and note filenames."""

import pytest

from carddav_sync.validators import (
    contact_filename,
    validate_full_name,
    validate_uid,
)


class TestValidateFullName:
    def test_valid(self):
        assert validate_full_name("Jane Doe") == (True, "")

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty(self, name):
        is_valid, error = validate_full_name(name)
        assert not is_valid
        assert "cannot be empty" in error

    @pytest.mark.parametrize("name", [".", "..", " ... "])
    def test_only_dots(self, name):
        is_valid, error = validate_full_name(name)
        assert not is_valid
        assert "dots" in error


class TestValidateUid:
    @pytest.mark.parametrize(
        "uid", ["abc-123", "urn:uuid:4fbe8971-0bc3-424c-9c26-36c3e1eff6b1"]
    )
    def test_valid(self, uid):
        assert validate_uid(uid) == (True, "")

    @pytest.mark.parametrize("uid", ["", " ", "a/b", ".", ".."])
    def test_invalid(self, uid):
        is_valid, error = validate_uid(uid)
        assert not is_valid
        assert error.startswith("UID")


class TestContactFilename:
    def test_plain_name(self):
        assert contact_filename("Jane Doe") == "Jane Doe.md"

    def test_name_is_stripped(self):
        assert contact_filename("  Jane Doe ") == "Jane Doe.md"

    def test_path_separators_replaced(self):
        assert contact_filename("AC/DC") == "AC_DC.md"
        assert contact_filename("..\\secret") == ".._secret.md"

    def test_reserved_characters_replaced(self):
        assert contact_filename('a:b*c?d"e<f>g|h') == "a_b_c_d_e_f_g_h.md"

    def test_suffix(self):
        assert contact_filename("Jane Doe", suffix="uid-1") == "Jane Doe (uid-1).md"

    def test_suffix_is_sanitized(self):
        assert (
            contact_filename("Jane", suffix="urn:uuid:1")
            == "Jane (urn_uuid_1).md"
        )

    def test_invalid_name_raises(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            contact_filename("  ")
