# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Optional

@dataclass
class ArrangementConfig:
    split_point: int = 60             # middle C
    max_right_hand_notes: int = 12
    max_left_hand_notes: int = 10
    dynamic_split_point: bool = True  # carried through, no stage reads it yet
    preserve_melody: bool = True      # melody tracks always go to the right hand
    preserve_bass: bool = True        # carried through, no stage reads it yet
    strict_ceiling: bool = False      # drop notes a single pass cannot place

    def __post_init__(self):
        if not 0 <= self.split_point <= 127:
            raise ValueError(f"split_point must be a MIDI pitch 0-127, got {self.split_point}")
        if self.max_right_hand_notes < 0 or self.max_left_hand_notes < 0:
            raise ValueError("hand ceilings must not be negative")

@dataclass
class RenderConfig:
    window_w: int = 1600
    window_h: int = 900
    piano_h: int = 120
    pixels_per_second: float = 280.0  # fall speed
    key_range: str = "88"

@dataclass
class AudioConfig:
    enabled: bool = True
    right_channel: int = 0
    left_channel: int = 1

@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3000
    staging_dir: str = "uploads"
    max_upload_mb: float = 50
    input_ttl_s: float = 3600.0       # staged files removed after an hour
    download_ttl_s: float = 60.0      # output removed a minute after download
    sweep_interval_s: float = 30.0
    default_split_point: int = ArrangementConfig.split_point
    default_max_right: int = 4
    default_max_left: int = 3

@dataclass
class AppConfig:
    arrange: ArrangementConfig = field(default_factory=ArrangementConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_path: Optional[str] = None
