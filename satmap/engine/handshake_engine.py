from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sgp4.api import Satrec

from satmap.config import settings
from satmap.engine import events
from satmap.engine.events import EventSink, SimulationEvent
from satmap.engine.links import LINK_OK, NO_HORIZON_CONES, OCCULTED, LinkGeometry, evaluate_link
from satmap.errors import ElementParseError, SimulationError
from satmap.models.satellite import TLE, SatellitePosition
from satmap.models.simulation import BlackoutPeriod, Handshake, SimulationConfig, SimulationResults
from satmap.propagation.sgp4_propagator import propagate_position, satrec_from_tle, to_timestamp_ms

logger = logging.getLogger(__name__)

BEACON_ID = "Beacon"


def init_iridium_records(tles: Sequence[TLE]) -> List[Tuple[str, Satrec]]:
    """
    (id, SGP4 record) per usable element set. Ids are TLE names; a repeated name gets
    its catalogue number appended (and a counter if that is taken too). Elements SGP4 rejects are skipped with a warning.
    Raises SimulationError when nothing usable remains.
    """
    if not tles:
        raise SimulationError("No Iridium TLEs available. Ensure the TLE source is working and datasets are selected.")

    records: List[Tuple[str, Satrec]] = []
    seen: Set[str] = set()
    for tle in tles:
        try:
            rec = satrec_from_tle(tle)
        except ElementParseError as e:
            logger.warning("Skipping Iridium element set: %s", e)
            continue
        sid = tle.name
        if sid in seen:
            sid = f"{tle.name} [{tle.satnum}]"
            n = 2
            while sid in seen:
                sid = f"{tle.name} [{tle.satnum}] #{n}"
                n += 1
        seen.add(sid)
        records.append((sid, rec))

    if not records:
        raise SimulationError(
            f"Failed to initialise any Iridium SGP4 records from {len(tles)} TLEs."
        )
    logger.info("Initialised %d Iridium SGP4 records.", len(records))
    return records


class HandshakeEngine:
    """
    Time-stepped handshake/blackout detection.
    Single-threaded; each SGP4 record is propagated only by this loop.
    Tracks and link sets grow with steps x satellites; nothing is capped.
    """

    def __init__(
        self,
        config: SimulationConfig,
        earth_radius_km: float = settings.RADIUS_EARTH_KM,
        event_sink: Optional[EventSink] = None,
        progress_every: int = settings.PROGRESS_LOG_EVERY_STEPS,
    ):
        config.validate()
        self.config = config
        self.geometry = LinkGeometry(
            mode=config.handshake_mode,
            iridium_half_angle=config.iridium_half_angle_rad,
            beacon_half_angle=config.beacon_half_angle_rad,
            earth_radius_km=float(earth_radius_km),
        )
        self.event_sink = event_sink
        self.progress_every = max(1, int(progress_every))

    def _emit(self, kind: str, timestamp: int, satellite_id: Optional[str] = None, detail: str = "") -> None:
        if self.event_sink is not None:
            self.event_sink(SimulationEvent(kind=kind, timestamp=timestamp, satellite_id=satellite_id, detail=detail))

    def run(
        self,
        beacon: Satrec,
        iridium: Sequence[Tuple[str, Satrec]],
        start_time: datetime,
    ) -> SimulationResults:
        if not iridium:
            raise SimulationError("Iridium constellation is empty.")
        if start_time.tzinfo is None:
            start_time = start_time.replace(tzinfo=timezone.utc)
        else:
            start_time = start_time.astimezone(timezone.utc)

        step = timedelta(seconds=float(self.config.simulation_time_step_sec))
        end_time = start_time + timedelta(seconds=self.config.duration_sec)

        handshake_log: List[Handshake] = []
        blackout_periods: List[BlackoutPeriod] = []
        beacon_track: List[SatellitePosition] = []
        iridium_tracks: Dict[str, List[SatellitePosition]] = {sid: [] for sid, _ in iridium}
        active_links_log: List[frozenset] = []

        previous_links: Set[str] = set()
        blackout_start: Optional[int] = None
        step_no = 0
        skipped = 0

        logger.info(
            "Starting simulation loop from %s to %s with %ss steps (%s, %d Iridium).",
            start_time.isoformat(), end_time.isoformat(), step.total_seconds(),
            self.config.handshake_mode, len(iridium),
        )

        current = start_time
        while current <= end_time:
            step_no += 1
            ts = to_timestamp_ms(current)

            beacon_pos = propagate_position(beacon, current)
            if beacon_pos is None:
                logger.warning("Beacon propagation failed at %s. Skipping this timestep.", current.isoformat())
                self._emit(events.PROPAGATION_FAILED, ts, BEACON_ID, "beacon; step skipped")
                skipped += 1
                current += step
                continue

            if step_no == 1 or step_no % self.progress_every == 0:
                b = beacon_pos.position_eci
                logger.debug("Step %d %s Beacon ECI x=%.0f y=%.0f z=%.0f km",
                             step_no, current.isoformat(), b.x, b.y, b.z)

            links: Set[str] = set()
            for sid, rec in iridium:
                sat_pos = propagate_position(rec, current)
                if sat_pos is None:
                    self._emit(events.PROPAGATION_FAILED, ts, sid, "iridium; satellite skipped for this step")
                    continue

                outcome = evaluate_link(
                    self.geometry,
                    beacon_pos.position_eci, beacon_pos.velocity_eci,
                    sat_pos.position_eci, sat_pos.velocity_eci,
                    sid,
                )
                if outcome == OCCULTED:
                    self._emit(events.LINK_OCCULTED, ts, sid, self.config.handshake_mode)
                elif outcome == NO_HORIZON_CONES:
                    self._emit(events.HORIZON_CONES_UNAVAILABLE, ts, sid, "horizon antennas unavailable")
                elif outcome == LINK_OK:
                    links.add(sid)
                    if sid not in previous_links:
                        handshake_log.append(Handshake(
                            timestamp=ts,
                            iridium_satellite_id=sid,
                            beacon_position=beacon_pos.position_geodetic,
                            iridium_position=sat_pos.position_geodetic,
                        ))
                        self._emit(events.HANDSHAKE, ts, sid, self.config.handshake_mode)

                iridium_tracks[sid].append(sat_pos)

            for sid in sorted(previous_links - links):
                self._emit(events.LINK_LOST, ts, sid)
            previous_links = links
            active_links_log.append(frozenset(links))
            beacon_track.append(beacon_pos)

            if not links:
                if blackout_start is None:
                    blackout_start = ts
                    self._emit(events.BLACKOUT_START, ts)
            elif blackout_start is not None:
                period = BlackoutPeriod(start_time=blackout_start, end_time=ts, duration=(ts - blackout_start) / 1000.0)
                blackout_periods.append(period)
                self._emit(events.BLACKOUT_END, ts, detail=f"{period.duration:.0f}s")
                blackout_start = None

            current += step

        if blackout_start is not None:
            # closed at the instant after the last iterated step
            close_ts = to_timestamp_ms(current)
            period = BlackoutPeriod(start_time=blackout_start, end_time=close_ts,
                                    duration=(close_ts - blackout_start) / 1000.0)
            blackout_periods.append(period)
            self._emit(events.BLACKOUT_END, close_ts, detail=f"{period.duration:.0f}s (end of run)")

        total_blackout = sum(p.duration for p in blackout_periods)
        n_blackouts = len(blackout_periods)

        results = SimulationResults(
            total_handshakes=len(handshake_log),
            handshake_log=tuple(handshake_log),
            active_links_log=tuple(active_links_log),
            blackout_periods=tuple(blackout_periods),
            total_blackout_duration=total_blackout,
            average_blackout_duration=total_blackout / n_blackouts if n_blackouts else 0.0,
            number_of_blackouts=n_blackouts,
            beacon_track=tuple(beacon_track),
            iridium_tracks={sid: tuple(track) for sid, track in iridium_tracks.items()},
            start_time=to_timestamp_ms(start_time),
            end_time=to_timestamp_ms(end_time),
            steps_evaluated=len(beacon_track),
            steps_skipped=skipped,
        )
        logger.info(
            "Simulation finished: %d steps (%d skipped), %d handshakes, %d blackouts (%.0f s total).",
            step_no, skipped, results.total_handshakes, n_blackouts, total_blackout,
        )
        return results
