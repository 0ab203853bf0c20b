import math


def clamp(x, lo, hi):
    return max(lo, min(hi, x))

def accel_pitch(ax, ay, az):
    """
    加速度计倾角：俯仰（弧度），机体坐标系 (前, 右, 下)，静止时 a = -g 投影
    """
    return math.atan2(-ax, math.hypot(ay, az))

def accel_roll(ax, ay, az):
    """加速度计倾角：横滚（弧度）"""
    return math.atan2(ay, az)

def rms(values):
    if not values:
        return 0.0
    return math.sqrt(sum(v * v for v in values) / len(values))

class EMA:
    def __init__(self, alpha, init=0.0):
        self.alpha = clamp(alpha, 0.0, 1.0)
        self.y = init
        self.inited = False

    def update(self, x):
        if not self.inited:
            self.y = x
            self.inited = True
        else:
            self.y = self.alpha * x + (1 - self.alpha) * self.y
        return self.y

    def reset(self, init=0.0):
        self.y = init
        self.inited = False
