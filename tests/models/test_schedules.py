import numpy as np
import pytest

from chiller_plant.core.context import SimulationContext
from chiller_plant.models.schedules import ConstantSchedule, HourlySchedule, schedule_from_config


def test_constant_schedule():
    schedule = ConstantSchedule(45)

    assert schedule.value(SimulationContext(time_hours=1234.0)) == 45.0
    assert repr(schedule) == "ConstantSchedule(45.0)"


def test_hourly_schedule_wraps():
    schedule = HourlySchedule([1.0, 2.0, 3.0])

    assert schedule.value(SimulationContext(time_hours=0.0)) == 1.0
    assert schedule.value(SimulationContext(time_hours=2.9)) == 3.0
    assert schedule.value(SimulationContext(time_hours=4.0)) == 2.0


def test_empty_hourly_schedule():
    with pytest.raises(ValueError):
        HourlySchedule([])


@pytest.mark.parametrize("raw, expected_type", [
    (5.0, ConstantSchedule),
    (3, ConstantSchedule),
    ([1.0, 0.0], HourlySchedule),
    (np.array([1.0, 0.0]), HourlySchedule),
])
def test_schedule_from_config(raw, expected_type):
    assert isinstance(schedule_from_config(raw), expected_type)


def test_schedule_from_config_passthrough():
    schedule = ConstantSchedule(1.0)

    assert schedule_from_config(schedule) is schedule
