import pytest

from pom_studio.naming import to_camel_case


@pytest.mark.parametrize(
    "label, expected",
    [
        ("", ""),
        ("Login Button", "loginButton"),
        ("id", "id"),
        ("XML Parser", "xMLParser"),
        ("Username Field", "usernameField"),
        ("already camelCase", "alreadyCamelCase"),
        ("welcome-header", "welcome-Header"),
        ("first_name", "first_name"),
        ("2fa code", "2faCode"),
        ("  login button", "LoginButton"),
        ("Search\tbox\nfield", "searchBoxField"),
    ],
)
def test_to_camel_case(label, expected):
    assert to_camel_case(label) == expected


def test_punctuation_only_keeps_everything_but_whitespace():
    assert to_camel_case("!! ?? --") == "!!??--"


def test_is_deterministic():
    assert to_camel_case("Submit Order Button") == to_camel_case("Submit Order Button")
