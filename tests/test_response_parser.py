from ai.response_parser import parse_llm_json


class TestParseLlmJson:

    def test_bare_object(self):
        assert parse_llm_json('{"a": 1}') == {"a": 1}

    def test_code_fence(self):
        raw = '```json\n{"a": [1, 2]}\n```'
        assert parse_llm_json(raw) == {"a": [1, 2]}

    def test_object_with_nested_arrays_and_prose(self):
        raw = 'Here you go:\n{"seriesKeys": ["a", "b"], "colors": ["#fff"]}\nEnjoy!'
        assert parse_llm_json(raw) == {"seriesKeys": ["a", "b"], "colors": ["#fff"]}

    def test_top_level_array(self):
        assert parse_llm_json('[{"a": 1}]') == [{"a": 1}]

    def test_no_json(self):
        assert parse_llm_json("I cannot help with that") is None

    def test_broken_json(self):
        assert parse_llm_json('{"a": }') is None

    def test_empty(self):
        assert parse_llm_json("") is None
