"""Small helpers shared by the simulation modules."""


def seconds_to_ms(seconds: float) -> int:
    # simulation time is a float; round away representation noise before truncating
    return int(round(seconds * 1000.0, 6))


def ms_to_seconds(ms: float) -> float:
    return float(ms) / 1000.0
