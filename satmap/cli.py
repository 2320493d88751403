# satmap/cli.py
from satmap.config import settings
from satmap.models.orbit import NonPolarOrbit, SunSynchronousOrbit
from satmap.models.simulation import SimulationConfig, parse_start_time

# bring in useful defaults from settings for CLI defaults
from satmap.config.settings import (
    BEACON_DEFAULT_FOV_DEG,
    DEFAULT_BEACON_ALTITUDE_KM,
    DEFAULT_BEACON_INCLINATION_DEG,
    DEFAULT_BEACON_LST_DN_H,
    DEFAULT_DURATION_HOURS,
    DEFAULT_TIME_STEP_SEC,
    IRIDIUM_DEFAULT_FOV_DEG,
)


def _ask(prompt):
    """input() that maps EOF (non-interactive) to an empty answer."""
    try:
        return input(prompt)
    except EOFError:
        return ""


def get_float(prompt, default=None, min_val=None, max_val=None, max_exclusive=False):
    """
    Safe float input with optional default and limits. Non-interactive (EOF) returns default.
    """
    while True:
        try:
            user = input(prompt)
        except EOFError:
            return float(default) if default is not None else None
        if user.strip() == "" and default is not None:
            return float(default)
        try:
            val = float(user)
            if min_val is not None and val < min_val:
                raise ValueError
            if max_val is not None and (val > max_val or (max_exclusive and val >= max_val)):
                raise ValueError
            return val
        except (ValueError, TypeError):
            print("❌ Please enter a valid number in range.")


def choose_orbit_type():
    """
    1 -> Non-polar (altitude + inclination + RAAN)
    2 -> Sun-synchronous (altitude + local solar time at descending node)
    """
    print("\n🛰️  Beacon Orbit")
    print("  1) Non-polar (Recommended)")
    print("  2) Sun-synchronous")

    choice = _ask("Select orbit type [1]: ").strip()
    return "sso" if choice == "2" else "non-polar"


def create_beacon_params():
    kind = choose_orbit_type()

    altitude = get_float(
        f"Altitude above Earth (km) [default {DEFAULT_BEACON_ALTITUDE_KM}]: ",
        default=DEFAULT_BEACON_ALTITUDE_KM, min_val=1e-3,
    )

    if kind == "sso":
        lst = get_float(
            f"Local solar time at descending node (h, 0-24) [default {DEFAULT_BEACON_LST_DN_H}]: ",
            default=DEFAULT_BEACON_LST_DN_H, min_val=0.0, max_val=24.0, max_exclusive=True,
        )
        print(f"✔ Sun-synchronous Beacon at {altitude:.1f} km, LST_DN {lst:.2f} h")
        return SunSynchronousOrbit(altitude_km=altitude, local_solar_time_descending_node_h=lst)

    inclination = get_float(
        f"Inclination (deg, 0-180) [default {DEFAULT_BEACON_INCLINATION_DEG}]: ",
        default=DEFAULT_BEACON_INCLINATION_DEG, min_val=0.0, max_val=180.0,
    )
    raan = get_float(
        "RAAN (deg, 0-360) [default 0]: ",
        default=0.0, min_val=0.0, max_val=360.0, max_exclusive=True,
    )
    print(f"✔ Non-polar Beacon at {altitude:.1f} km, i={inclination:.2f} deg, RAAN={raan:.2f} deg")
    return NonPolarOrbit(altitude_km=altitude, inclination_deg=inclination, raan_deg=raan)


def choose_handshake_mode():
    print("\n📡 Handshake Mode")
    print("  1) One-way: Beacon inside Iridium nadir cone")
    print("  2) Bi-directional: mutual horizon antennas")

    choice = _ask("Select mode [1]: ").strip()
    return "bi-directional" if choice == "2" else "one-way"


def choose_datasets():
    print("\n🌐 Iridium datasets")
    print("  1) IRIDIUM + IRIDIUM-NEXT")
    print("  2) IRIDIUM only")
    print("  3) IRIDIUM-NEXT only")

    choice = _ask("Select datasets [1]: ").strip()
    if choice == "2":
        return ("IRIDIUM",)
    if choice == "3":
        return ("IRIDIUM-NEXT",)
    return settings.DEFAULT_IRIDIUM_DATASETS


def ask_start_time():
    while True:
        raw = _ask("Start time (ISO-8601 UTC, Enter for now): ").strip()
        if raw == "":
            return None
        try:
            parse_start_time(raw)
            return raw
        except ValueError:
            print("❌ Please enter an ISO-8601 time, e.g. 2025-01-01T00:00:00Z.")


def run_cli():
    print("======================================")
    print("  SATMAP BEACON HANDSHAKE SIMULATOR    ")
    print("======================================")

    beacon_params = create_beacon_params()
    mode = choose_handshake_mode()

    print("\n⚙️  Antennas & Timeline")
    iridium_fov = get_float(
        f"Iridium FOV (deg) [default {IRIDIUM_DEFAULT_FOV_DEG}]: ",
        default=IRIDIUM_DEFAULT_FOV_DEG, min_val=1e-3, max_val=180.0,
    )
    beacon_fov = get_float(
        f"Beacon FOV (deg) [default {BEACON_DEFAULT_FOV_DEG}]: ",
        default=BEACON_DEFAULT_FOV_DEG, min_val=1e-3, max_val=180.0,
    )
    duration = get_float(
        f"Duration (hours) [default {DEFAULT_DURATION_HOURS}]: ",
        default=DEFAULT_DURATION_HOURS, min_val=1e-3,
    )
    step = get_float(
        f"Time step (s) [default {DEFAULT_TIME_STEP_SEC}]: ",
        default=DEFAULT_TIME_STEP_SEC, min_val=1e-3,
    )
    start_iso = ask_start_time()
    datasets = choose_datasets()

    config = SimulationConfig(
        beacon_params=beacon_params,
        iridium_fov_deg=iridium_fov,
        beacon_fov_deg=beacon_fov,
        simulation_duration_hours=duration,
        simulation_time_step_sec=step,
        handshake_mode=mode,
        start_time_iso=start_iso,
        iridium_dataset_sources=tuple(datasets),
    )
    config.validate()

    print("\n✅ CLI input complete.")
    print(f"→ Mode: {mode}")
    print(f"→ Horizon: {duration:g} h at {step:g} s steps")

    return config
