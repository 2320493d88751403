from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from satmap.data.tle_builder import create_beacon_satrec
from satmap.data.tle_fetcher import fetch_iridium_tles
from satmap.engine.events import EventSink
from satmap.engine.handshake_engine import HandshakeEngine, init_iridium_records
from satmap.errors import ElementParseError, InvalidOrbitParametersError, SimulationError
from satmap.models.satellite import TLE
from satmap.models.simulation import SimulationConfig, SimulationResults

logger = logging.getLogger(__name__)

TleSource = Callable[[Iterable[str]], List[TLE]]


def _resolve_start_time(config: SimulationConfig, start_time: Optional[datetime]) -> datetime:
    if start_time is None:
        start_time = config.start_time() or datetime.now(timezone.utc)
    if start_time.tzinfo is None:
        return start_time.replace(tzinfo=timezone.utc)
    return start_time.astimezone(timezone.utc)


def run_simulation(
    config: SimulationConfig,
    start_time: Optional[datetime] = None,
    tle_source: TleSource = fetch_iridium_tles,
    event_sink: Optional[EventSink] = None,
) -> SimulationResults:
    """
    Full run: Beacon synthesis, Iridium elements from tle_source (loaded in full before
    the loop), then the time-stepped engine.
    Raises SimulationError for unrecoverable preconditions; ValueError for a bad config.
    """
    config.validate()
    t0 = _resolve_start_time(config, start_time)
    logger.info("Simulation run requested: %s, start=%s", config.to_dict(), t0.isoformat())

    try:
        beacon, elements = create_beacon_satrec(config.beacon_params, t0)
    except (InvalidOrbitParametersError, ElementParseError) as e:
        logger.error("Failed to initialise Beacon satellite record. Aborting simulation.")
        raise SimulationError(f"Failed to initialise Beacon satellite record: {e}") from e

    tles = tle_source(config.iridium_dataset_sources)
    if not tles:
        raise SimulationError("No Iridium TLEs fetched. Ensure the TLE source is working and datasets are selected.")
    logger.info("Loaded %d Iridium TLEs.", len(tles))

    iridium = init_iridium_records(tles)

    engine = HandshakeEngine(config, event_sink=event_sink)
    return engine.run(beacon, iridium, t0)


def summarize_results(results: SimulationResults) -> Dict[str, Any]:
    linked_steps = sum(1 for s in results.active_links_log if s)
    n_steps = len(results.active_links_log)
    partners = sorted({h.iridium_satellite_id for h in results.handshake_log})
    return {
        "total_handshakes": results.total_handshakes,
        "unique_partners": len(partners),
        "number_of_blackouts": results.number_of_blackouts,
        "total_blackout_duration_s": results.total_blackout_duration,
        "average_blackout_duration_s": results.average_blackout_duration,
        "longest_blackout_s": max((p.duration for p in results.blackout_periods), default=0.0),
        "steps_evaluated": results.steps_evaluated,
        "steps_skipped": results.steps_skipped,
        "link_coverage_fraction": (linked_steps / n_steps) if n_steps else 0.0,
        "max_simultaneous_links": max((len(s) for s in results.active_links_log), default=0),
    }
