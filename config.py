import json
import sys
from pathlib import Path
from typing import Any, Dict

# 默认配置（用于首次运行或 JSON 缺失字段）
_DEFAULTS: Dict[str, Any] = {
    # 滤波器参数
    "Q_THETA": 1e-7,
    "Q_BIAS": 1e-5,
    "R": 2.0,
    "KALMAN_VERBOSE": False,
    # 融合 / 输出
    "EMA_ALPHA": 0.25,
    "MAX_DT": 0.1,
    "PRINT_EVERY": 1.0,
    # 仿真 IMU
    "SIM_DT": 0.01,
    "SIM_STEPS": 2000,
    "SIM_GYRO_BIAS": 0.02,
    "SIM_GYRO_NOISE": 0.005,
    "SIM_ACCEL_NOISE": 0.3,
    "SIM_SEED": 7,
}

def _config_path() -> Path:
    # 打包后优先读取可执行文件所在目录
    if getattr(sys, "frozen", False):
        base = Path(sys.executable).parent
    else:
        base = Path(__file__).parent
    return base / "config.json"

def _load_config(path: Path = None) -> Dict[str, Any]:
    path = path or _config_path()
    if not path.exists():
        # 首次运行：写出默认文件
        try:
            path.write_text(json.dumps(_DEFAULTS, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError:
            print(f"[WARN] 无法写入默认配置 {path}")
        return dict(_DEFAULTS)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("config.json root must be an object")
    except (OSError, ValueError) as e:
        # 解析失败，回退默认
        print(f"[WARN] 配置文件解析失败，使用默认值: {e}")
        return dict(_DEFAULTS)

    # 合并默认，缺失字段用默认值；类型不对的字段也回退默认
    merged = dict(_DEFAULTS)
    for k, default in _DEFAULTS.items():
        if k not in data:
            continue
        try:
            merged[k] = _coerce(data[k], default)
        except (TypeError, ValueError, OverflowError):
            print(f"[WARN] 配置项 {k}={data[k]!r} 无效，使用默认值 {default!r}")
    return merged

def _coerce(value, default):
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise TypeError(f"expected bool, got {type(value).__name__}")
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a number")
    if isinstance(default, int):
        if float(value) != int(value):
            raise ValueError(f"expected integer, got {value!r}")
        return int(value)
    return float(value)

def reload_config(path: Path = None) -> None:
    """运行时重新加载配置"""
    globals().update(_load_config(path))

# 加载并导出为模块常量（保持现有引用方式）
globals().update(_load_config())

Q_THETA: float
Q_BIAS: float
R: float
KALMAN_VERBOSE: bool
EMA_ALPHA: float
MAX_DT: float
PRINT_EVERY: float
SIM_DT: float
SIM_STEPS: int
SIM_GYRO_BIAS: float
SIM_GYRO_NOISE: float
SIM_ACCEL_NOISE: float
SIM_SEED: int
