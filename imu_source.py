import csv
import math
from dataclasses import dataclass
from pathlib import Path

import numpy as np


GRAVITY = 9.81
CSV_HEADER = ["t", "ax", "ay", "az", "gx", "gy", "gz"]


@dataclass
class ImuSample:
    """IMU 单帧：加速度 m/s^2，角速度 rad/s（gx 绕横滚轴，gy 绕俯仰轴）"""
    t: float
    ax: float
    ay: float
    az: float
    gx: float
    gy: float
    gz: float


class SyntheticImu:
    """
    仿真 IMU：俯仰 / 横滚做正弦摆动。
    陀螺 = 真实角速度 + 常值偏置 + 白噪声
    加速度 = 重力在机体系的投影 + 白噪声
    """

    def __init__(
        self,
        dt: float = 0.01,
        steps: int = 2000,
        gyro_bias: float = 0.02,
        gyro_noise: float = 0.005,
        accel_noise: float = 0.3,
        seed: int = 7,
        amplitude: float = 0.3,
        frequency: float = 0.2,
    ):
        self.dt = dt
        self.steps = steps
        self.gyro_bias = gyro_bias
        self.gyro_noise = gyro_noise
        self.accel_noise = accel_noise
        self.seed = seed
        self.amplitude = amplitude
        self.frequency = frequency

        # 每次迭代结束后可用于评估
        self.true_pitch = []
        self.true_roll = []

    def _attitude(self, t):
        w = 2 * math.pi * self.frequency
        pitch = self.amplitude * math.sin(w * t)
        roll = 0.5 * self.amplitude * math.sin(0.5 * w * t + 1.0)
        pitch_rate = self.amplitude * w * math.cos(w * t)
        roll_rate = 0.25 * self.amplitude * w * math.cos(0.5 * w * t + 1.0)
        return pitch, roll, pitch_rate, roll_rate

    def __iter__(self):
        rng = np.random.default_rng(self.seed)
        self.true_pitch = []
        self.true_roll = []

        for k in range(self.steps):
            t = k * self.dt
            pitch, roll, pitch_rate, roll_rate = self._attitude(t)
            self.true_pitch.append(pitch)
            self.true_roll.append(roll)

            gravity_body = GRAVITY * np.array([
                -math.sin(pitch),
                math.cos(pitch) * math.sin(roll),
                math.cos(pitch) * math.cos(roll),
            ])
            accel = gravity_body + rng.normal(0.0, self.accel_noise, 3)
            gyro = np.array([roll_rate, pitch_rate, 0.0]) + self.gyro_bias \
                + rng.normal(0.0, self.gyro_noise, 3)

            yield ImuSample(t, *(float(v) for v in accel), *(float(v) for v in gyro))


class CsvImuReplay:
    """回放 CSV 记录（表头 t,ax,ay,az,gx,gy,gz），坏行跳过"""

    def __init__(self, path):
        self.path = Path(path)
        self.bad_rows = 0

    def __iter__(self):
        self.bad_rows = 0
        with self.path.open(newline="", encoding="utf-8") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None or [h.strip() for h in header] != CSV_HEADER:
                raise ValueError(f"{self.path}: expected header {','.join(CSV_HEADER)}, got {header}")

            for lineno, row in enumerate(reader, start=2):
                if not row:
                    continue
                try:
                    if len(row) != len(CSV_HEADER):
                        raise ValueError(f"expected {len(CSV_HEADER)} fields, got {len(row)}")
                    values = [float(v) for v in row]
                except ValueError as e:
                    self.bad_rows += 1
                    print(f"[WARN] {self.path.name}:{lineno} 跳过: {e}")
                    continue
                yield ImuSample(*values)
