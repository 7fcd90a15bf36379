"""Property-based tests for redaction."""
from hypothesis import given, settings, strategies as st

from telemetry_tracker import REDACTED, sanitize
from telemetry_tracker.sanitizer import SENSITIVE_KEYWORDS, contains_sensitive_hint

keyword = st.sampled_from(SENSITIVE_KEYWORDS)
plain_text = st.text(alphabet="xyzqXYZQ _-0123456789", max_size=12)


@st.composite
def text_with_keyword(draw):
    """Plain text with a keyword spliced in, in random case."""
    word = draw(keyword)
    word = "".join(c.upper() if draw(st.booleans()) else c for c in word)
    return draw(plain_text) + word + draw(plain_text)


flat_values = st.one_of(st.integers(), st.booleans(), st.none(), plain_text, text_with_keyword())


class TestSanitizeProperties:

    @settings(deadline=None)
    @given(st.dictionaries(st.one_of(plain_text, text_with_keyword()), flat_values, max_size=10))
    def test_no_sensitive_value_survives(self, data):
        """Test every keyword-bearing key or string value comes out redacted."""
        result = sanitize(data)
        assert result.keys() == data.keys()
        for key, value in data.items():
            if contains_sensitive_hint(key):
                assert result[key] == REDACTED
            elif isinstance(value, str) and contains_sensitive_hint(value):
                assert result[key] == REDACTED
            else:
                assert result[key] == value

    @settings(deadline=None)
    @given(st.dictionaries(plain_text, plain_text, max_size=10))
    def test_clean_data_unchanged(self, data):
        assert sanitize(data) == data

    @settings(deadline=None)
    @given(st.lists(st.one_of(plain_text, text_with_keyword()), max_size=8))
    def test_nested_lists_walked(self, items):
        before = list(items)
        result = sanitize({"items": items, "wrapper": {"inner": items}})
        expected = [REDACTED if contains_sensitive_hint(v) else v for v in items]
        assert result["items"] == expected
        assert result["wrapper"]["inner"] == expected
        assert items == before
