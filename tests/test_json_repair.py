import pytest

from planforge.util.json_repair import JsonRepairError, load_json_object, repair_json


def test_json_repair_handles_code_fence_and_single_quotes():
    text = "```json\n{'thoughts': 'go', 'action': {'tool': 'calculator', 'args': {'expression': '2+2',},},}\n```"
    parsed = repair_json(text)
    assert parsed["action"]["tool"] == "calculator"
    assert parsed["action"]["args"]["expression"] == "2+2"


def test_json_repair_extracts_embedded_object():
    text = "Sure! Here you go:\n{\"response\": \"done\", \"ok\": true} hope that helps"
    assert repair_json(text) == {"response": "done", "ok": True}


def test_python_literals_are_accepted():
    assert repair_json("{'ok': True, 'missing': None}") == {"ok": True, "missing": None}


def test_load_json_object_rejects_arrays_and_prose():
    with pytest.raises(JsonRepairError):
        load_json_object("[1, 2, 3]")
    with pytest.raises(JsonRepairError):
        load_json_object("no json here")
