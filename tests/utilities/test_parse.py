import pytest

from genagent.utilities.parse import extract_json, find_closing, iter_json_objects


class TestFindClosing:
    def test_object(self):
        text = '{"a": 1} tail'
        assert find_closing(text, 0) == 8

    def test_array(self):
        text = "[1, [2, 3]] tail"
        assert text[: find_closing(text, 0)] == "[1, [2, 3]]"

    def test_braces_inside_strings_are_ignored(self):
        text = '{"a": "}{", "b": "\\"}"}'
        assert find_closing(text, 0) == len(text)

    def test_unclosed(self):
        assert find_closing('{"a": {"b": 1}', 0) is None


class TestIterJsonObjects:
    def test_no_objects(self):
        assert list(iter_json_objects("plain text [1, 2]")) == []

    def test_sequential_objects(self):
        text = 'first {"a": 1} then {"b": 2}'
        spans = list(iter_json_objects(text))
        assert [text[s:e] for s, e in spans] == ['{"a": 1}', '{"b": 2}']

    def test_nested_objects_follow_parent(self):
        text = '{"outer": {"inner": 1}}'
        spans = list(iter_json_objects(text))
        assert [text[s:e] for s, e in spans] == [text, '{"inner": 1}']

    def test_unbalanced_object_is_skipped(self):
        text = '{"open": {"b": 2}'
        spans = list(iter_json_objects(text))
        assert [text[s:e] for s, e in spans] == ['{"b": 2}']

    def test_braces_in_strings_are_not_blocks(self):
        text = '{"a": "{not a block}"} {"b": "}"}'
        spans = list(iter_json_objects(text))
        assert [text[s:e] for s, e in spans] == ['{"a": "{not a block}"}', '{"b": "}"}']

    def test_stray_closing_braces(self):
        text = '} } {"a": 1} }'
        assert [text[s:e] for s, e in iter_json_objects(text)] == ['{"a": 1}']


class TestExtractJson:
    prefix = "Here's the generated abstract conceptual question in the requested JSON format: "
    suffix = "Would you like me to explain in more detail?"
    object = """{"key": "value"}"""
    array = """[1, 2, 3]"""
    nested = """{"outer": {"inner": [1, 2, 3]}}"""

    test_cases = [
        (object, object),
        (array, array),
        (nested, nested),
        (prefix + object, object),
        (object + suffix, object),
        (prefix + object + suffix, object),
        (prefix + array, array),
        (array + suffix, array),
        (prefix + array + suffix, array),
        (prefix + nested, nested),
        (nested + suffix, nested),
        (prefix + nested + suffix, nested),
        (object + array + nested, object),
        (nested + object + array, nested),
    ]

    @pytest.mark.parametrize("text, expected", test_cases)
    def test_extract_json(self, text, expected):
        assert extract_json(text) == expected

    def test_extract_empty_array(self):
        text = "Here is an empty array: [] and some text."
        expected = "[]"
        assert extract_json(text) == expected

    def test_extract_empty_object(self):
        text = "Here is an empty object: {} and more text."
        expected = "{}"
        assert extract_json(text) == expected

    def test_extract_incomplete_json(self):
        text = 'Not complete: {"key": "value", "array": [1, 2, 3'
        expected = 'Not complete: {"key": "value", "array": [1, 2, 3'
        assert extract_json(text) == expected

    def test_markdown_json(self):
        text = """
        ```python
        import json

        def modify_query(input_data):
            query = input_data["query"]
            style = input_data["style"]
            length = input_data["length"]

            if style == "Poor grammar":
                # Poor grammar modifications (simplified for brevity)
                query = query.replace("How", "how")
                query = query.replace("do", "does")
                query = query.replace("terms of", "in terms of")
                query = query.replace("and", "")

            if length == "long":
                # Long text modifications (simplified for brevity)
                query += "?"

            return {
                "text": query
            }

        input_data = {
            "query": "How can the provided commands be used to manage and troubleshoot namespaces in a Kubernetes environment?",
            "style": "Poor grammar",
            "length": "long"
        }

        output = modify_query(input_data)
        print(json.dumps(output, indent=4))
        ```

        Output:
        ```json
        {"text": "how does the provided commands be used to manage and troubleshoot namespaces in a Kubernetes environment?"}
        ```
        This Python function `modify_query` takes an input dictionary with query, style, and length as keys. It applies modifications based on the specified style (Poor grammar) and length (long). The modified query is then returned as a JSON object.

        Note: This implementation is simplified for brevity and may not cover all possible edge cases or nuances of natural language processing.
        """
        expected = """{"text": "how does the provided commands be used to manage and troubleshoot namespaces in a Kubernetes environment?"}"""
        assert extract_json(text) == expected
