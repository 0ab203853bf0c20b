import math
import textwrap

import pytest

from imu_source import CsvImuReplay, ImuSample, SyntheticImu
from utils import accel_pitch, accel_roll


def test_synthetic_is_reproducible():
    a = list(SyntheticImu(steps=50, seed=11))
    b = list(SyntheticImu(steps=50, seed=11))
    c = list(SyntheticImu(steps=50, seed=12))
    assert a == b
    assert a != c
    assert len(a) == 50
    assert a[1].t == pytest.approx(0.01)


def test_synthetic_noise_free_matches_truth():
    source = SyntheticImu(steps=100, gyro_bias=0.0, gyro_noise=0.0, accel_noise=0.0)
    samples = list(source)
    assert len(source.true_pitch) == 100
    for s, pitch, roll in zip(samples, source.true_pitch, source.true_roll):
        assert accel_pitch(s.ax, s.ay, s.az) == pytest.approx(pitch, abs=1e-9)
        assert accel_roll(s.ax, s.ay, s.az) == pytest.approx(roll, abs=1e-9)
        assert math.sqrt(s.ax ** 2 + s.ay ** 2 + s.az ** 2) == pytest.approx(9.81)


def test_synthetic_gyro_carries_bias():
    source = SyntheticImu(steps=1, gyro_bias=0.05, gyro_noise=0.0, accel_noise=0.0)
    s = next(iter(source))
    assert s.gz == pytest.approx(0.05)


def test_csv_replay(tmp_path):
    path = tmp_path / "imu.csv"
    path.write_text(textwrap.dedent(
        """\
        t,ax,ay,az,gx,gy,gz
        0.00,0.0,0.0,9.81,0.0,0.0,0.0
        0.01,0.1,0.0,9.80,0.01,0.02,0.0
        0.02,bad,0.0,9.80,0.0,0.0,0.0
        0.03,0.1,0.0

        0.04,0.2,0.1,9.79,0.0,0.0,0.03
        """
    ))
    replay = CsvImuReplay(path)
    samples = list(replay)
    assert [s.t for s in samples] == [0.0, 0.01, 0.04]
    assert samples[1] == ImuSample(0.01, 0.1, 0.0, 9.80, 0.01, 0.02, 0.0)
    assert replay.bad_rows == 2


def test_csv_replay_warns_on_bad_rows(tmp_path, capsys):
    path = tmp_path / "imu.csv"
    path.write_text("t,ax,ay,az,gx,gy,gz\n0.0,x,0,0,0,0,0\n")
    assert list(CsvImuReplay(path)) == []
    assert "[WARN] imu.csv:2" in capsys.readouterr().out


def test_csv_replay_rejects_wrong_header(tmp_path):
    path = tmp_path / "imu.csv"
    path.write_text("time,ax,ay,az\n0,0,0,9.81\n")
    with pytest.raises(ValueError):
        list(CsvImuReplay(path))


def test_csv_replay_empty_file(tmp_path):
    path = tmp_path / "imu.csv"
    path.write_text("")
    with pytest.raises(ValueError):
        list(CsvImuReplay(path))
