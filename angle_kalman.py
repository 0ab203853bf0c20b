from dataclasses import dataclass, field

import numpy as np


DEFAULT_Q_THETA = 1e-7
DEFAULT_Q_BIAS = 1e-5
DEFAULT_R = 2.0
DEFAULT_P = 10.0


class KalmanError(Exception):
    pass


class KalmanAllocationError(KalmanError, MemoryError):
    pass


class KalmanIndexError(KalmanError, IndexError):
    pass


class KalmanStateError(KalmanError, RuntimeError):
    pass


@dataclass
class _KalmanData:
    theta_est: float
    thetad_bias_est: float
    Q_theta: float = DEFAULT_Q_THETA
    Q_thetad_bias: float = DEFAULT_Q_BIAS
    R: float = DEFAULT_R
    # 以下三项每步重算
    y: float = 0.0
    S: float = 0.0
    K: np.ndarray = field(default_factory=lambda: np.zeros(2))
    P: np.ndarray = field(default_factory=lambda: np.diag([DEFAULT_P, DEFAULT_P]))


class AngleKalman:
    """
    单轴 2-state Kalman：融合角度测量（加速度计倾角）与带偏置的角速度（陀螺仪）。
    状态 x = [theta, thetad_bias]
      theta_{k+1} = theta_k + dt * (thetad_meas - bias_k)
      bias_{k+1}  = bias_k + w   (random walk)
      z = theta_meas
    """

    _data = None

    def __init__(self, theta=0.0, thetad_bias=0.0, verbose=False):
        self.verbose = verbose
        self.reset(theta, thetad_bias)

    def reset(self, theta=0.0, thetad_bias=0.0):
        # 旧数据直接丢弃，重新分配
        self._data = None
        try:
            data = _KalmanData(theta_est=float(theta), thetad_bias_est=float(thetad_bias))
        except MemoryError as e:
            raise KalmanAllocationError("Could not allocate kalman data") from e
        self._data = data

    def _get_data(self) -> _KalmanData:
        if self._data is None:
            raise KalmanStateError("Could not access kalman data")
        return self._data

    @staticmethod
    def _check_index(i, j):
        if i not in (0, 1) or j not in (0, 1):
            raise KalmanIndexError(f"P index ({i}, {j}) out of range, expected 0 or 1")
        return int(i), int(j)

    # -------------------------------
    # 状态（只读）
    # -------------------------------
    @property
    def theta(self) -> float:
        return self._get_data().theta_est

    @property
    def thetad_bias(self) -> float:
        return self._get_data().thetad_bias_est

    # -------------------------------
    # 可调参数
    # -------------------------------
    @property
    def q_theta(self) -> float:
        return self._get_data().Q_theta

    @q_theta.setter
    def q_theta(self, v):
        self._get_data().Q_theta = float(v)

    @property
    def q_bias(self) -> float:
        return self._get_data().Q_thetad_bias

    @q_bias.setter
    def q_bias(self, v):
        self._get_data().Q_thetad_bias = float(v)

    @property
    def r(self) -> float:
        return self._get_data().R

    @r.setter
    def r(self, v):
        self._get_data().R = float(v)

    def set_q_theta(self, v) -> float:
        self.q_theta = v
        return self.q_theta

    def set_q_bias(self, v) -> float:
        self.q_bias = v
        return self.q_bias

    def set_r(self, v) -> float:
        self.r = v
        return self.r

    # -------------------------------
    # 协方差矩阵
    # -------------------------------
    @property
    def P(self) -> list:
        return [[float(v) for v in row] for row in self._get_data().P]

    def get_P(self, i, j) -> float:
        i, j = self._check_index(i, j)
        return float(self._get_data().P[i, j])

    def set_P(self, i, j, v) -> float:
        i, j = self._check_index(i, j)
        data = self._get_data()
        if self.verbose:
            print(f"[KALMAN] Setting P[{i}][{j}] = {float(v):f}")
        data.P[i, j] = float(v)
        return float(data.P[i, j])

    def __getitem__(self, index):
        i, j = index
        return self.get_P(i, j)

    def __setitem__(self, index, v):
        i, j = index
        self.set_P(i, j, v)

    # 上一步的中间量
    @property
    def innovation(self) -> float:
        return self._get_data().y

    @property
    def innovation_cov(self) -> float:
        return self._get_data().S

    @property
    def gain(self) -> tuple:
        K = self._get_data().K
        return float(K[0]), float(K[1])

    # -------------------------------
    # 控制循环调用
    # -------------------------------
    def update(self, dt, theta, thetad) -> float:
        """
        一步预测 + 校正。
        dt: 距上一步的时间（秒）
        theta: 角度测量
        thetad: 角速度测量（含偏置）
        返回新的角度估计
        """
        d = self._get_data()
        P = d.P

        # S == 0 时得到 inf / nan，照常传播
        with np.errstate(all="ignore"):
            # 预测：四个协方差项都由同一份旧 P 计算
            d.theta_est += dt * (thetad - d.thetad_bias_est)
            p00, p01, p10, p11 = P[0, 0], P[0, 1], P[1, 0], P[1, 1]
            P[0, 0] = p00 + dt * (p11 * dt - p01 - p10 + d.Q_theta)
            P[0, 1] = p01 - p11 * dt
            P[1, 0] = p10 - p11 * dt
            P[1, 1] = p11 + d.Q_thetad_bias * dt

            # 观测
            d.y = float(theta - d.theta_est)
            d.S = float(P[0, 0] + d.R)
            d.K = np.array([P[0, 0], P[1, 0]]) / np.float64(d.S)

            # 校正：P[1,0] / P[1,1] 使用本步已更新的 P[0,0] / P[0,1]
            d.theta_est = float(d.theta_est + d.K[0] * d.y)
            d.thetad_bias_est = float(d.thetad_bias_est + d.K[1] * d.y)

            P[0, 0] -= d.K[0] * P[0, 0]
            P[0, 1] -= d.K[0] * P[0, 1]
            P[1, 0] -= d.K[1] * P[0, 0]
            P[1, 1] -= d.K[1] * P[0, 1]

        return d.theta_est

    def debug_print(self) -> str:
        d = self._get_data()
        return f" Theta={d.theta_est:+.4f} Bias={d.thetad_bias_est:+.5f} |" \
               f" P00={d.P[0, 0]:.3e} P11={d.P[1, 1]:.3e} | K0={d.K[0]:.3f} K1={d.K[1]:+.4f} |"

    def __repr__(self):
        d = self._data
        if d is None:
            return f"<{type(self).__name__} (uninitialized)>"
        return f"<{type(self).__name__} theta={d.theta_est} thetad={d.thetad_bias_est}" \
               f" Q_theta={d.Q_theta} Q_thetad={d.Q_thetad_bias} R={d.R} P={self.P}>"
