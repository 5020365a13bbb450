"""Report source agents."""
from .buoy_agent import BuoyAgent
from .sun_agent import SunAgent
from .tide_agent import TideAgent
from .wave_agent import WaveAgent

__all__ = ["BuoyAgent", "SunAgent", "TideAgent", "WaveAgent"]
