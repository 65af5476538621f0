"""
Pydantic schema for device-local app preferences
"""
from pydantic import BaseModel
from typing import Literal


class AppSettings(BaseModel):
    """User preferences persisted on the device"""
    dark_mode: bool = False
    sound_enabled: bool = True
    vibration_enabled: bool = True
    show_timer: bool = True
    theme: Literal["light", "dark", "auto"] = "auto"
