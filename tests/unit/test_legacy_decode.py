"""
Unit tests for decoding array values stored by older console versions
"""
import logging

from heritage_console.services.legacy_decode import decode_array_value


def test_none_and_lists():
    assert decode_array_value(None) == []
    assert decode_array_value(["a", " b ", ""]) == ["a", "b"]


def test_json_array_string():
    assert decode_array_value('["Old Fort", "Step well"]') == ["Old Fort", "Step well"]


def test_postgres_array_literal():
    assert decode_array_value('{"Old Fort","Step well"}') == ["Old Fort", "Step well"]
    assert decode_array_value("{Kite museum,Pols}") == ["Kite museum", "Pols"]
    assert decode_array_value("{}") == []


def test_postgres_literal_with_quoted_comma_and_escape():
    assert decode_array_value('{"Sidi Saiyyed, mosque","say \\"hi\\""}') == [
        "Sidi Saiyyed, mosque",
        'say "hi"',
    ]


def test_comma_joined_text():
    assert decode_array_value("Textiles, Block printing ,") == ["Textiles", "Block printing"]


def test_broken_json_decodes_to_empty_and_logs(caplog):
    with caplog.at_level(logging.WARNING):
        assert decode_array_value('["unterminated"') == []
    assert any("decode failed" in r.getMessage() for r in caplog.records)
