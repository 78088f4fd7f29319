"""Robot Sim - Simulated Robot for Exercising the Motion Core

A two-wheel differential robot with an arm, a downward light sensor, a
forward sonar and a bump switch, wired to the motion_core components the
way a real robot would be.

## Modules

- `config.py` - Geometry, plant dynamics, PID gains, field layout
- `hardware.py` - Simulated motors, drive train plant and sensors
- `robot.py` - Robot wiring (drive base, PID drives, arm, triggers)
- `strategies.py` - Autonomous strategies and the autonomous robot mode
- `run_options.py` - Command-line run options
- `runner.py` - Runner and logging setup
- `data_collector.py` - CSV recording of a run
- `plot_styles.py`, `plot_results.py` - Plotting of recorded runs

## Quick Start

```bash
python -m robot_sim --strategy beacon --seed 7 --save
python -m robot_sim.plot_results --save --no-show
```
"""

from .robot import SimRobot
from .strategies import AutonomousMode, BeaconStrategy, ParkStrategy, create_strategy

__all__ = [
    "SimRobot",
    "AutonomousMode",
    "BeaconStrategy",
    "ParkStrategy",
    "create_strategy",
]
