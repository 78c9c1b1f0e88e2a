import pytest

from services.budget import truncate


def test_short_text_is_untouched():
    res = truncate("a few words", 100)
    assert res.text == "a few words"
    assert res.was_truncated is False


def test_exact_length_is_not_truncated():
    assert truncate("abcde", 5) == ("abcde", False)


def test_large_content_fits_budget_on_word_boundary():
    words = ["lorem", "ipsum", "dolor", "sit", "amet", "consectetur"]
    text = " ".join(words[i % len(words)] for i in range(20000))[:100000]
    assert len(text) == 100000

    res = truncate(text, 60000)

    assert res.was_truncated is True
    assert len(res.text) <= 60000
    assert text.startswith(res.text)
    # next char in the input is the space we backed up to
    assert text[len(res.text)] == " "
    assert res.text.split(" ")[-1] in words


def test_no_space_cuts_hard():
    res = truncate("x" * 50, 10)
    assert res == ("x" * 10, True)


@pytest.mark.parametrize("text,limit", [
    ("alpha beta gamma delta", 7),
    ("alpha beta gamma delta", 11),
    ("one two", 3),
    ("  leading spaces here", 5),
])
def test_result_never_exceeds_limit(text, limit):
    res = truncate(text, limit)
    assert len(res.text) <= limit
    assert res.was_truncated == (len(text) > limit)
    if res.text:
        assert text[len(res.text)] == " "
