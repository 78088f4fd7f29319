"""Tests for DriveBase kinematics, odometry and ownership."""

import numpy as np
import pytest

from motion_core.drive_base import DriveBase
from motion_core.hardware import MotorController
from motion_core.scheduler import Phase, RunMode


class Owner:
    def __init__(self):
        self.cancel_count = 0

    def cancel(self):
        self.cancel_count += 1


@pytest.fixture
def motors(make_motor):
    return [make_motor(name) for name in ("lf", "rf", "lr", "rr")]


@pytest.fixture
def mecanum(scheduler, motors):
    return DriveBase("mecanum", scheduler, *motors)


@pytest.fixture
def tank(scheduler, motors):
    return DriveBase("tank", scheduler, motors[0], motors[1])


def test_mecanum_diagonal_normalizes(mecanum):
    mecanum.mecanum_drive(1.0, 1.0, 0.0)
    assert mecanum.get_wheel_powers() == (1.0, 0.0, 0.0, 1.0)


def test_mecanum_preserves_wheel_ratios(mecanum, motors):
    mecanum.mecanum_drive(0.5, 0.5, 0.5)
    raw = np.array([1.5, -0.5, 0.5, 0.5])
    powers = np.array(mecanum.get_wheel_powers())

    assert np.max(np.abs(powers)) == pytest.approx(1.0)
    assert np.allclose(powers, raw / 1.5)
    assert [m.power for m in motors] == pytest.approx(list(raw / 1.5))


def test_mecanum_field_centric_rotation(mecanum):
    # Facing 90 degrees clockwise, "field forward" is a strafe to the robot's left
    mecanum.mecanum_drive(0.0, 1.0, 0.0, gyro_angle=90.0)
    assert np.allclose(mecanum.get_wheel_powers(), [-1.0, 1.0, 1.0, -1.0], atol=1e-9)


def test_mecanum_rotation_only(mecanum):
    mecanum.mecanum_drive(0.0, 0.0, 0.4)
    assert np.allclose(mecanum.get_wheel_powers(), [0.4, -0.4, 0.4, -0.4])


def test_mecanum_requires_four_motors(tank):
    with pytest.raises(ValueError):
        tank.mecanum_drive(0.0, 1.0, 0.0)


def test_tank_drive_clamps(tank, motors):
    tank.tank_drive(1.5, -0.3)
    assert tank.get_wheel_powers() == (1.0, -0.3)
    assert motors[0].power == 1.0


def test_tank_drive_inverted(tank):
    tank.tank_drive(0.2, 0.6, inverted=True)
    assert tank.get_wheel_powers() == pytest.approx((-0.6, -0.2))


def test_tank_drive_on_four_motors(mecanum):
    mecanum.tank_drive(0.3, -0.3)
    assert mecanum.get_wheel_powers() == pytest.approx((0.3, -0.3, 0.3, -0.3))


@pytest.mark.parametrize(
    "drive, turn, expected",
    [
        (0.5, 0.2, (0.5, 0.3)),
        (0.5, -0.2, (0.3, 0.5)),
        (0.0, 0.5, (0.5, -0.5)),
        (1.0, 1.0, (1.0, 0.0)),
        (-0.5, 0.2, (-0.3, -0.5)),
        (-0.5, -0.2, (-0.5, -0.3)),
    ],
)
def test_arcade_drive_saturating_mix(tank, drive, turn, expected):
    tank.arcade_drive(drive, turn)
    assert tank.get_wheel_powers() == pytest.approx(expected)


def test_arcade_drive_inverted(tank):
    tank.arcade_drive(0.5, 0.0, inverted=True)
    assert tank.get_wheel_powers() == pytest.approx((-0.5, -0.5))


def test_stop_zeroes_wheels(tank):
    tank.tank_drive(0.5, 0.5)
    tank.stop()
    assert tank.get_wheel_powers() == (0.0, 0.0)


def test_differential_odometry(tank, motors):
    motors[0].position = 100.0
    motors[1].position = 100.0
    tank.update_odometry()
    assert tank.get_y_position() == pytest.approx(100.0)
    assert tank.get_heading() == pytest.approx(0.0)

    motors[0].position = 150.0
    motors[1].position = 50.0
    tank.update_odometry()
    assert tank.get_y_position() == pytest.approx(100.0)
    assert tank.get_rotation_position() == pytest.approx(50.0)
    assert tank.get_heading() == pytest.approx(50.0)


def test_mecanum_odometry(mecanum, motors):
    for motor, delta in zip(motors, (100.0, -100.0, -100.0, 100.0)):
        motor.position = delta
    mecanum.update_odometry()

    assert mecanum.get_x_position() == pytest.approx(100.0)
    assert mecanum.get_y_position() == pytest.approx(0.0)
    assert mecanum.get_rotation_position() == pytest.approx(0.0)


def test_odometry_scales(scheduler, motors):
    base = DriveBase("scaled", scheduler, motors[0], motors[1], y_scale=0.02, rotation_scale=0.5)
    motors[0].position = 100.0
    motors[1].position = 50.0
    base.update_odometry()
    assert base.get_y_position() == pytest.approx(1.5)
    assert base.get_rotation_position() == pytest.approx(12.5)


def test_odometry_speeds(tank, motors, clock):
    tank.update_odometry()
    clock.advance(0.5)
    motors[0].position = 10.0
    motors[1].position = 10.0
    tank.update_odometry()
    assert tank.get_y_speed() == pytest.approx(20.0)
    assert tank.get_turn_speed() == pytest.approx(0.0)


def test_heading_from_source_relative_to_reset(scheduler, motors):
    gyro = {"heading": 30.0}
    base = DriveBase("gyro", scheduler, motors[0], motors[1], heading_source=lambda: gyro["heading"])

    gyro["heading"] = 75.0
    base.update_odometry()
    assert base.get_heading() == pytest.approx(45.0)


def test_reset_position_resnapshots_encoders(scheduler, make_motor):
    class StickyMotor(make_motor):
        def reset_position(self):
            pass

    left, right = StickyMotor("left"), StickyMotor("right")
    base = DriveBase("sticky", scheduler, left, right)

    left.position = right.position = 500.0
    base.reset_position()
    base.update_odometry()
    assert base.get_y_position() == 0.0

    left.position = right.position = 510.0
    base.update_odometry()
    assert base.get_y_position() == pytest.approx(10.0)


def test_start_and_stop_phases(tank, motors, scheduler):
    motors[0].position = motors[1].position = 40.0
    tank.update_odometry()
    tank.tank_drive(0.5, 0.5)

    scheduler.run_phase(Phase.START, RunMode.AUTO)
    assert tank.get_y_position() == 0.0

    scheduler.run_phase(Phase.STOP, RunMode.AUTO)
    assert tank.get_wheel_powers() == (0.0, 0.0)


def test_odometry_runs_from_scheduler(tank, motors, tick):
    motors[0].position = motors[1].position = 25.0
    tick()
    assert tank.get_y_position() == pytest.approx(25.0)


def test_manual_call_preempts_owner(tank):
    owner = Owner()
    tank.claim(owner)
    tank.arcade_drive(0.4, 0.0, owner=owner)
    assert owner.cancel_count == 0

    tank.tank_drive(0.2, 0.2)
    assert owner.cancel_count == 1
    assert tank.get_owner() is None
    assert tank.get_wheel_powers() == pytest.approx((0.2, 0.2))


def test_claim_preempts_previous_owner(tank):
    first, second = Owner(), Owner()
    tank.claim(first)
    tank.claim(second)
    assert first.cancel_count == 1
    assert tank.get_owner() is second

    tank.claim(second)
    assert second.cancel_count == 0


def test_release_only_by_owner(tank):
    owner = Owner()
    tank.claim(owner)
    tank.release(Owner())
    assert tank.get_owner() is owner
    tank.release(owner)
    assert tank.get_owner() is None


@pytest.mark.parametrize("rear", [(True, False), (False, True)])
def test_partial_rear_motors_raise(scheduler, motors, rear):
    left_rear = motors[2] if rear[0] else None
    right_rear = motors[3] if rear[1] else None
    with pytest.raises(ValueError):
        DriveBase("bad", scheduler, motors[0], motors[1], left_rear, right_rear)


def test_missing_front_motor_raises(scheduler, motors):
    with pytest.raises(ValueError):
        DriveBase("bad", scheduler, motors[0], None)


def test_motor_without_encoder_cannot_be_built():
    class PowerOnly(MotorController):
        def set_power(self, power):
            pass

        def get_power(self):
            return 0.0

    with pytest.raises(TypeError):
        PowerOnly("arm")
