import sys

import config
from imu_source import CsvImuReplay, SyntheticImu
from tilt_fusion import TiltFusion
from utils import rms


def run(source, fusion: TiltFusion, print_every=None):
    print_every = config.PRINT_EVERY if print_every is None else print_every
    history = []
    last_debug = None

    for sample in source:
        pitch, roll = fusion.update(sample)
        history.append((sample.t, pitch, roll))

        if last_debug is None or sample.t - last_debug >= print_every:
            last_debug = sample.t
            print(f"[INFO] t={sample.t:7.2f}s |{fusion.debug_print()}{fusion.pitch_kf.debug_print()}")

    return history


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    fusion = TiltFusion()

    if argv:
        source = CsvImuReplay(argv[0])
        print(f"[INFO] Replaying {source.path}")
        try:
            history = run(source, fusion)
        except (OSError, ValueError) as e:
            print(f"[ERROR] {e}")
            return 1
        print(f"[INFO] {len(history)} samples, {fusion.skipped} skipped, {source.bad_rows} bad rows")
        return 0

    source = SyntheticImu(
        dt=config.SIM_DT,
        steps=config.SIM_STEPS,
        gyro_bias=config.SIM_GYRO_BIAS,
        gyro_noise=config.SIM_GYRO_NOISE,
        accel_noise=config.SIM_ACCEL_NOISE,
        seed=config.SIM_SEED,
    )
    print(f"[INFO] Synthetic IMU: {source.steps} steps @ {source.dt}s, gyro bias {source.gyro_bias:+.4f} rad/s")
    history = run(source, fusion)

    pitch_err = [p - tp for (_, p, _), tp in zip(history, source.true_pitch)]
    roll_err = [r - tr for (_, _, r), tr in zip(history, source.true_roll)]
    print(f"[INFO] RMS error pitch={rms(pitch_err):.4f} roll={rms(roll_err):.4f} rad")
    print(f"[INFO] Bias estimate pitch={fusion.pitch_kf.thetad_bias:+.4f} roll={fusion.roll_kf.thetad_bias:+.4f} rad/s")
    print(f"[INFO] {fusion.pitch_kf!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
