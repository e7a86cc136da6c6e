import json

import pytest
from conftest import build_frame, frame_rows

from rep_counter.client import replay
from rep_counter.rep_logic import ExerciseType, Phase

CURL_ANGLES = [
    (0, 170), (200, 40), (300, 40),        # rep 1, then held inside the debounce window
    (900, 170), (1100, 40),               # too soon after rep 1
    (1500, 170), (2500, 40),              # rep 2
]


@pytest.fixture
def recording(tmp_path):
    path = tmp_path / "curl.jsonl"
    lines = [json.dumps({"t": t, "landmarks": frame_rows(build_frame(left=a, right=170))}) for t, a in CURL_ANGLES]
    path.write_text("\n".join(lines) + "\n\n", encoding="utf-8")
    return path


def test_load_recording(recording):
    records = list(replay.load_recording(str(recording)))
    assert len(records) == len(CURL_ANGLES)
    assert records[0][0] == 0
    assert len(records[0][1]) == 33


def test_load_recording_reports_bad_line(tmp_path):
    path = tmp_path / "bad.jsonl"
    path.write_text('{"t": 0, "landmarks": []}\n{not json}\n', encoding="utf-8")
    with pytest.raises(ValueError, match=":2:"):
        list(replay.load_recording(str(path)))


def test_load_recording_requires_landmarks(tmp_path):
    path = tmp_path / "bad.jsonl"
    path.write_text('{"t": 0}\n', encoding="utf-8")
    with pytest.raises(ValueError, match="landmarks"):
        list(replay.load_recording(str(path)))


def test_replay_local(recording):
    result = replay.replay_local(replay.load_recording(str(recording)), ExerciseType.CURL)
    assert result.count == 2
    assert result.stage == Phase.UP
    assert result.feedback == "Good curl!"


def test_replay_remote_matches_local(recording, client, monkeypatch):
    base = "http://backend.test"
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append(url)
        return client.post(url[len(base):], json=json)

    def fake_delete(url, timeout=None):
        calls.append(url)
        return client.delete(url[len(base):])

    monkeypatch.setattr(replay.requests, "post", fake_post)
    monkeypatch.setattr(replay.requests, "delete", fake_delete)

    result = replay.replay_remote(replay.load_recording(str(recording)), ExerciseType.CURL, base, 1.0)
    assert result.count == 2
    assert result.stage == Phase.UP
    assert calls[0] == f"{base}/sessions"
    assert calls[-1].startswith(f"{base}/sessions/")
    assert client.get("/").json()["sessions"] == 0


def test_main_prints_total(recording, capsys):
    assert replay.main([str(recording), "--exercise", "curl"]) == 0
    assert "Total reps (curl): 2" in capsys.readouterr().out


def test_load_recording_requires_frame_time(tmp_path):
    path = tmp_path / "no_t.jsonl"
    rows = frame_rows(build_frame())
    path.write_text(
        json.dumps({"t": 0, "landmarks": rows}) + "\n" + json.dumps({"landmarks": rows}) + "\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match=":2:.*'t'"):
        list(replay.load_recording(str(path)))


@pytest.mark.parametrize("bad_t", ['"100"', "true", "null", "NaN"])
def test_load_recording_rejects_non_numeric_time(tmp_path, bad_t):
    path = tmp_path / "bad_t.jsonl"
    path.write_text('{"t": %s, "landmarks": []}\n' % bad_t, encoding="utf-8")
    with pytest.raises(ValueError, match=":1:"):
        list(replay.load_recording(str(path)))


def test_replay_debounces_on_recorded_time(tmp_path):
    path = tmp_path / "three_curls.jsonl"
    lines = []
    for i in range(3):
        base = i * 2000
        lines.append(json.dumps({"t": base, "landmarks": frame_rows(build_frame(left=170))}))
        lines.append(json.dumps({"t": base + 500, "landmarks": frame_rows(build_frame(left=40))}))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    result = replay.replay_local(replay.load_recording(str(path)), ExerciseType.CURL)
    assert result.count == 3
