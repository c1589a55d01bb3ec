import pytest

from godis.wildcard import PatternError, compile_pattern


@pytest.mark.parametrize(
    "pattern, matching, not_matching",
    [
        ("", [""], []),
        ("a", ["a"], ["b"]),
        ("a?", ["ab"], ["a", "abb", "bb"]),
        ("a*", ["ab", "a", "abb"], ["bb"]),
        ("a[ab[]", ["ab", "aa", "a["], ["abb", "bb"]),
        ("h[a-c]llo", ["hallo", "hbllo", "hcllo"], ["hdllo", "hello"]),
        ("h[^ab]llo", ["hcllo"], ["hallo", "hbllo"]),
        ("[^ab]c", ["1c"], ["abc"]),
        ("1^2", ["1^2"], []),
        ("\\[^1]2", ["[^1]2"], []),
        ("^1", ["^1"], []),
        ("\\\\\\\\", ["\\\\"], []),
        ("\\*", ["*"], ["a"]),
    ],
)
def test_wildcard(pattern, matching, not_matching):
    p = compile_pattern(pattern)
    for s in matching:
        assert p.is_match(s), s
    for s in not_matching:
        assert not p.is_match(s), s


def test_regex_metacharacters_are_literal():
    p = compile_pattern("a.b+c$")
    assert p.is_match("a.b+c$")
    assert not p.is_match("axbbc")


def test_end_with_escape():
    with pytest.raises(PatternError) as info:
        compile_pattern("\\")
    assert str(info.value) == "end with escape \\"