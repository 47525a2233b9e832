import json

from driverbox.models import PointValue, ScriptResult, SendPointValues, SendRequest


def test_send_point_values_to_json_format():
    spv = SendPointValues("d1", "read", [PointValue("p", "int", 1)])
    assert spv.to_json() == '{"deviceName":"d1","mode":"read","values":[{"pointName":"p","type":"int","value":1}]}'


def test_send_point_values_json_decodes_back():
    spv = SendPointValues("pump", "write", [PointValue("speed", "float", 2.5), PointValue("tag", "string", "x")])
    decoded = json.loads(spv.to_json())
    assert decoded["deviceName"] == "pump"
    assert decoded["mode"] == "write"
    assert [(v["pointName"], v["type"], v["value"]) for v in decoded["values"]] == [
        ("speed", "float", 2.5),
        ("tag", "string", "x"),
    ]


def test_send_point_values_empty():
    assert json.loads(SendPointValues().to_json()) == {"deviceName": "", "mode": "", "values": []}


def test_containers_default_to_independent_lists():
    a, b = ScriptResult(), ScriptResult()
    a.point_values.append(PointValue("p"))
    assert b.point_values == []
    req = SendRequest("read", "d", [PointValue("p")])
    assert req.point_values[0].point_name == "p"