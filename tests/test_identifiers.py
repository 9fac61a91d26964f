from whats_cooking.utils.identifiers import is_uuid_v4, new_session_id, to_uuid_or_none


def test_is_uuid_v4():
    assert is_uuid_v4("3f2b8c1e-9d4a-4b7e-8f6a-1c2d3e4f5a6b")
    assert is_uuid_v4(new_session_id())
    # version 1
    assert not is_uuid_v4("3f2b8c1e-9d4a-1b7e-8f6a-1c2d3e4f5a6b")
    assert not is_uuid_v4("recipe-1712345678")
    assert not is_uuid_v4(None)


def test_to_uuid_or_none():
    assert to_uuid_or_none("3F2B8C1E-9D4A-4B7E-8F6A-1C2D3E4F5A6B") == "3f2b8c1e-9d4a-4b7e-8f6a-1c2d3e4f5a6b"
    assert to_uuid_or_none("not-a-uuid") is None
    assert to_uuid_or_none("") is None
