from imagebuild.core.utils.stringid import truncate_id


def test_truncate_strips_algorithm():
    assert truncate_id("sha256:" + "0123456789abcdef" * 4) == "0123456789ab"


def test_truncate_plain_id():
    assert truncate_id("0123456789abcdef") == "0123456789ab"


def test_short_id_unchanged():
    assert truncate_id("sq456") == "sq456"
