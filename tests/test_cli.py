import json

from surfscore.cli import main
from surfscore.demo import get_demo_user


def _write_sessions(tmp_path, name="beginner", wrap=False):
    sessions = get_demo_user(name)["sessions"]
    path = tmp_path / "sessions.json"
    path.write_text(json.dumps({"sessions": sessions} if wrap else sessions), encoding="utf-8")
    return str(path)


def test_demo_json(capsys):
    assert main(["demo", "expert", "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["profile"]["user_id"] == "expert_001"
    assert 0 <= out["prediction"]["predicted_score"] <= 10


def test_demo_text(capsys):
    assert main(["demo", "beginner"]) == 0
    out = capsys.readouterr().out
    assert "User: beginner_001" in out
    assert "Biarritz: score=" in out
    assert "Challenging conditions for you, be careful" in out


def test_analyze_from_file(tmp_path, capsys):
    path = _write_sessions(tmp_path, "intermediate", wrap=True)
    assert main(["analyze", "--user-id", "me", "--sessions", path, "--json"]) == 0
    profile = json.loads(capsys.readouterr().out)
    assert profile["user_id"] == "me"
    assert profile["total_sessions"] == 5
    assert profile["spot_preferences"][0]["name"] == "hossegor"


def test_predict_with_sessions(tmp_path, capsys):
    path = _write_sessions(tmp_path)
    argv = [
        "predict",
        "--user-id", "me",
        "--spot", "anglet",
        "--sessions", path,
        "--wave-height", "1.0",
        "--wind-speed", "8",
        "--wind-direction", "E",
        "--json",
    ]
    assert main(argv) == 0
    prediction = json.loads(capsys.readouterr().out)
    assert prediction["spot"] == "Anglet"
    assert prediction["predicted_score"] >= 7


def test_predict_without_profile_fails_cleanly(capsys):
    argv = ["predict", "--user-id", "nobody", "--spot", "Biarritz", "--wave-height", "1", "--wind-speed", "10"]
    assert main(argv) == 2
    err = capsys.readouterr().err
    assert "error [PROFILE_NOT_FOUND]" in err
    assert "hint:" in err


def test_analyze_rejects_a_non_list_file(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"user": "x"}), encoding="utf-8")
    assert main(["analyze", "--user-id", "me", "--sessions", str(path)]) == 2
    assert "expected a JSON list" in capsys.readouterr().err


def test_predict_rejects_an_unknown_direction(capsys):
    argv = ["predict", "--user-id", "me", "--spot", "Anglet", "--wave-height", "1", "--wind-speed", "8"]
    argv += ["--wind-direction", "up"]
    assert main(argv) == 2
    assert "unrecognized compass direction" in capsys.readouterr().err


def test_spots(capsys):
    assert main(["spots"]) == 0
    spots = json.loads(capsys.readouterr().out)
    assert {s["name"] for s in spots} == {"Biarritz", "Hossegor", "Anglet"}
