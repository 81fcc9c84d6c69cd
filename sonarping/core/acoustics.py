from __future__ import annotations
from dataclasses import dataclass
from .vector import Vec3, distance_to

SPEED_OF_SOUND = 1500.0        # m/s, sea water
ATTENUATION_DB_PER_M = 0.1     # 100 dB/km at 200 kHz
SOURCE_INTENSITY = 1.0


@dataclass(frozen=True)
class EchoRecord:
    time: float          # s, emission to reception
    magnitude: float


def attenuation_factor(distance: float, db_per_m: float = ATTENUATION_DB_PER_M) -> float:
    """Linear amplitude factor for a one-way path of ``distance`` metres."""
    return 10.0 ** ((distance * -db_per_m) / 10.0)


def round_trip_time(outbound: float, returned: float, speed_of_sound: float = SPEED_OF_SOUND) -> float:
    if speed_of_sound <= 0.0:
        raise ValueError("speed_of_sound must be positive.")
    return (outbound + returned) / speed_of_sound


def compute_echo(
    collision: Vec3,
    emitter_point: Vec3,
    receiver_point: Vec3,
    *,
    speed_of_sound: float = SPEED_OF_SOUND,
    attenuation_db_per_m: float = ATTENUATION_DB_PER_M,
    source_intensity: float = SOURCE_INTENSITY,
) -> EchoRecord:
    """Echo heard at ``receiver_point`` from a ping emitted at ``emitter_point``.

    Travel time covers both legs; the magnitude is attenuated over the return
    leg only.
    """
    outbound = distance_to(collision, emitter_point)
    returned = distance_to(collision, receiver_point)
    time = round_trip_time(outbound, returned, speed_of_sound)
    mag = source_intensity * attenuation_factor(returned, attenuation_db_per_m)
    return EchoRecord(time=time, magnitude=mag)
