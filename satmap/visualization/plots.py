import os
from datetime import datetime, timezone

import matplotlib.pyplot as plt

from satmap.config.settings import OUTPUT_DIR


def _to_datetimes(timestamps_ms):
    return [datetime.fromtimestamp(t / 1000.0, tz=timezone.utc) for t in timestamps_ms]


def _split_on_wrap(lons, lats):
    """Break a ground track where longitude wraps across +/-180 deg."""
    segments = []
    cur_lon, cur_lat = [], []
    for lon, lat in zip(lons, lats):
        if cur_lon and abs(lon - cur_lon[-1]) > 180.0:
            segments.append((cur_lon, cur_lat))
            cur_lon, cur_lat = [], []
        cur_lon.append(lon)
        cur_lat.append(lat)
    if cur_lon:
        segments.append((cur_lon, cur_lat))
    return segments


def plot_ground_tracks(results, out_dir=OUTPUT_DIR, max_iridium=12):
    """
    Beacon ground track, a few Iridium tracks, and handshake locations.
    """
    os.makedirs(out_dir, exist_ok=True)

    plt.figure(figsize=(12, 6))

    for sid in sorted(results.iridium_tracks)[:max_iridium]:
        track = results.iridium_tracks[sid]
        lons = [p.position_geodetic.longitude for p in track]
        lats = [p.position_geodetic.latitude for p in track]
        for seg_lon, seg_lat in _split_on_wrap(lons, lats):
            plt.plot(seg_lon, seg_lat, color="0.75", linewidth=0.6)

    lons = [p.position_geodetic.longitude for p in results.beacon_track]
    lats = [p.position_geodetic.latitude for p in results.beacon_track]
    for i, (seg_lon, seg_lat) in enumerate(_split_on_wrap(lons, lats)):
        plt.plot(seg_lon, seg_lat, color="tab:blue", linewidth=1.2, label="Beacon" if i == 0 else None)

    if results.handshake_log:
        plt.scatter(
            [h.beacon_position.longitude for h in results.handshake_log],
            [h.beacon_position.latitude for h in results.handshake_log],
            color="tab:red", s=12, zorder=3, label="Handshake",
        )

    plt.xlim(-180, 180)
    plt.ylim(-90, 90)
    plt.xlabel("Longitude (deg)")
    plt.ylabel("Latitude (deg)")
    plt.title("Ground Tracks")
    plt.legend(loc="lower left")

    save_path = os.path.join(out_dir, "ground_tracks.png")
    plt.tight_layout()
    plt.savefig(save_path)
    plt.close()

    print(f"[OK] Saved: {save_path}")
    return save_path


def plot_link_timeline(results, out_dir=OUTPUT_DIR):
    """
    Active link count per step, with blackout periods shaded.
    """
    os.makedirs(out_dir, exist_ok=True)

    times = _to_datetimes([p.timestamp for p in results.beacon_track])
    counts = [len(s) for s in results.active_links_log]

    plt.figure(figsize=(10, 4))
    plt.step(times, counts, where="post", color="tab:green", label="Active links")

    for i, b in enumerate(results.blackout_periods):
        start, end = _to_datetimes([b.start_time, b.end_time])
        plt.axvspan(start, end, color="tab:red", alpha=0.2, label="Blackout" if i == 0 else None)

    plt.xlabel("Time (UTC)")
    plt.ylabel("Active Iridium Links")
    plt.title(f"Beacon Links ({results.total_handshakes} handshakes, {results.number_of_blackouts} blackouts)")
    plt.legend()

    save_path = os.path.join(out_dir, "link_timeline.png")
    plt.tight_layout()
    plt.savefig(save_path)
    plt.close()

    print(f"[OK] Saved: {save_path}")
    return save_path
