import config
from angle_kalman import AngleKalman
from imu_source import ImuSample
from utils import EMA, accel_pitch, accel_roll


class TiltFusion:
    """
    每个轴一个独立的 AngleKalman：俯仰用 gy，横滚用 gx。
    第一帧只用加速度倾角初始化滤波器。
    """

    def __init__(self, q_theta=None, q_bias=None, r=None, max_dt=None, ema_alpha=None, verbose=None):
        self.q_theta = config.Q_THETA if q_theta is None else q_theta
        self.q_bias = config.Q_BIAS if q_bias is None else q_bias
        self.r = config.R if r is None else r
        self.max_dt = config.MAX_DT if max_dt is None else max_dt
        self.ema_alpha = config.EMA_ALPHA if ema_alpha is None else ema_alpha
        verbose = config.KALMAN_VERBOSE if verbose is None else verbose

        self.pitch_kf = AngleKalman(verbose=verbose)
        self.roll_kf = AngleKalman(verbose=verbose)
        self._tune(self.pitch_kf)
        self._tune(self.roll_kf)

        # 加速度倾角 EMA，仅用于对比
        self.ema_pitch = EMA(self.ema_alpha)
        self.ema_roll = EMA(self.ema_alpha)

        self.pitch = 0.0
        self.roll = 0.0
        self.accel_pitch = 0.0
        self.accel_roll = 0.0

        self.last_t = None
        self.updates = 0
        self.skipped = 0

    def _tune(self, kf: AngleKalman):
        kf.q_theta = self.q_theta
        kf.q_bias = self.q_bias
        kf.r = self.r

    def update(self, sample: ImuSample):
        self.accel_pitch = accel_pitch(sample.ax, sample.ay, sample.az)
        self.accel_roll = accel_roll(sample.ax, sample.ay, sample.az)

        if self.last_t is None:
            # 第一帧：用加速度倾角初始化，保留已调参数
            self.pitch_kf.reset(self.accel_pitch)
            self.roll_kf.reset(self.accel_roll)
            self._tune(self.pitch_kf)
            self._tune(self.roll_kf)
            self.pitch = self.accel_pitch
            self.roll = self.accel_roll
            self.ema_pitch.update(self.accel_pitch)
            self.ema_roll.update(self.accel_roll)
            self.last_t = sample.t
            return self.pitch, self.roll

        dt = sample.t - self.last_t
        if dt <= 0 or dt > self.max_dt:
            # 时间戳异常，跳过本帧
            self.skipped += 1
            self.last_t = sample.t
            return self.pitch, self.roll

        self.pitch = self.pitch_kf.update(dt, self.accel_pitch, sample.gy)
        self.roll = self.roll_kf.update(dt, self.accel_roll, sample.gx)
        self.ema_pitch.update(self.accel_pitch)
        self.ema_roll.update(self.accel_roll)

        self.last_t = sample.t
        self.updates += 1
        return self.pitch, self.roll

    def reset(self):
        self.pitch_kf.reset()
        self.roll_kf.reset()
        self._tune(self.pitch_kf)
        self._tune(self.roll_kf)
        self.ema_pitch.reset()
        self.ema_roll.reset()
        self.pitch = self.roll = 0.0
        self.accel_pitch = self.accel_roll = 0.0
        self.last_t = None
        self.updates = 0
        self.skipped = 0

    def debug_print(self):
        return f" Pitch={self.pitch:+.3f} (acc {self.accel_pitch:+.3f} ema {self.ema_pitch.y:+.3f}) |" \
               f" Roll={self.roll:+.3f} (acc {self.accel_roll:+.3f} ema {self.ema_roll.y:+.3f}) |" \
               f" BiasP={self.pitch_kf.thetad_bias:+.4f} BiasR={self.roll_kf.thetad_bias:+.4f} |" \
               f" N={self.updates} Skip={self.skipped} |"
