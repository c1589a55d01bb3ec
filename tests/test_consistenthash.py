from godis.consistenthash import HashRing


def test_hash():
    m = HashRing(3, None)
    m.add_node("a", "b", "c", "d")
    assert m.pick_node("zxc") == "a"
    assert m.pick_node("123{abc}") == "b"
    assert m.pick_node("abc") == "b"


def test_empty_ring():
    m = HashRing(3, None)
    assert m.is_empty()
    assert m.pick_node("anything") == ""
    m.add_node("")
    assert m.is_empty()


def test_hash_tag_routes_together():
    m = HashRing(5, None)
    m.add_node("n1", "n2", "n3")
    assert not m.is_empty()
    assert m.pick_node("{user}:1") == m.pick_node("{user}:2") == m.pick_node("user")


def test_custom_hash_wraps_around():
    m = HashRing(1, lambda data: int(data.decode()) if data.decode().isdigit() else 100)
    m.add_node("5", "9")  # replica keys "05" -> 5 and "09" -> 9
    assert m.pick_node("3") == "5"
    assert m.pick_node("7") == "9"
    assert m.pick_node("50") == "5"