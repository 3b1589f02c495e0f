from types import SimpleNamespace

import pytest

from mutecord.datatypes.discord_datatypes import GuildID, UserID


def test_userid_from_int_and_str_and_equality_and_hash():
    u1 = UserID(12345)
    assert int(u1) == 12345
    assert str(u1) == "12345"

    u2 = UserID(" 12345 ")
    assert u1 == u2

    u3 = UserID.from_user(SimpleNamespace(id=111))  # type: ignore[arg-type]
    assert isinstance(u3, UserID)
    assert u3 == 111

    assert len({u1, u2, u3}) == 2


def test_equal_ids_hash_like_their_int():
    assert UserID(1) == 1
    assert hash(UserID(1)) == hash(1)
    assert {1: "gateway"}.get(UserID(1)) == "gateway"
    assert {UserID("42"): "config"}[42] == "config"


def test_text_spelling_is_not_an_id():
    assert UserID(7) != "7"


def test_userid_wraps_existing_wrapper():
    assert UserID(UserID(5)) == UserID(5)
    assert repr(UserID(5)) == "UserID(5)"


@pytest.mark.parametrize("bad", [[], 1.5, True, "abc", "  "])
def test_userid_invalid(bad):
    with pytest.raises(ValueError):
        UserID(bad)  # type: ignore[arg-type]


def test_user_and_guild_ids_never_compare_equal():
    assert UserID(1) != GuildID(1)
    assert GuildID.from_guild(SimpleNamespace(id=9)) == GuildID("9")  # type: ignore[arg-type]


def test_config_keys_and_gateway_ids_share_dict_slot():
    seen = {UserID("42"): "config"}
    assert seen[UserID(42)] == "config"
