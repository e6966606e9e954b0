"""
Tests for the admin PIN check.
"""

from chairbook.access import pin_authorizer


def test_matching_pin_authorises():
    assert pin_authorizer("1234", "1234")()


def test_wrong_or_missing_pin_is_denied():
    assert not pin_authorizer("1234", "4321")()
    assert not pin_authorizer("1234", None)()
    assert not pin_authorizer("1234", "")()


def test_unconfigured_pin_authorises_nobody():
    """A shop must set a PIN before privileged actions are possible."""
    assert not pin_authorizer(None, "1234")()
    assert not pin_authorizer("", "")()
