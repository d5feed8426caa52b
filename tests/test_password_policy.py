# tests/test_password_policy.py
from helpdesk.auth.password_policy import MIN_LENGTH, validate_password


def test_strong_password_passes():
    check = validate_password("Str0ng!Pass")
    assert check.is_valid
    assert check.errors == []


def test_all_violations_are_reported():
    check = validate_password("")
    assert not check.is_valid
    assert len(check.errors) == 5
    assert check.errors[0] == f"Password must be at least {MIN_LENGTH} characters long"


def test_missing_symbol_only():
    check = validate_password("Abcdefg1")
    assert not check.is_valid
    assert len(check.errors) == 1
    assert check.errors[0].startswith("Password must contain at least 1 symbol")


def test_each_character_class_is_checked():
    assert "Password must contain at least 1 uppercase letter" in validate_password("abcdef1!").errors
    assert "Password must contain at least 1 lowercase letter" in validate_password("ABCDEF1!").errors
    assert "Password must contain at least 1 number" in validate_password("Abcdefg!").errors


def test_length_boundary():
    assert not validate_password("Ab1!xyz").is_valid
    assert validate_password("Ab1!wxyz").is_valid


def test_none_is_treated_as_empty():
    assert not validate_password(None).is_valid
