# satmap/main.py
import json
import logging
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from satmap.cli import run_cli
from satmap.config import settings
from satmap.engine.events import LoggingEventSink
from satmap.errors import SimulationError
from satmap.simulation.runner import run_simulation, summarize_results
from satmap.visualization.plots import plot_ground_tracks, plot_link_timeline

# --- Setup logger ------------------------------------------------------------
log = logging.getLogger("main")


def save_json(obj: Any, name_prefix: str, out_dir=None) -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    out_dir = Path(out_dir or settings.OUTPUT_DIR)
    out_dir.mkdir(parents=True, exist_ok=True)
    filename = out_dir / f"{name_prefix}_{ts}.json"
    with open(filename, "w") as f:
        json.dump(obj, f, indent=2, default=lambda o: repr(o))
    return str(filename)


def print_summary(summary):
    print("\n================ SIMULATION RESULTS ================\n")
    print(f"Total handshakes      : {summary['total_handshakes']}")
    print(f"Unique Iridium links  : {summary['unique_partners']}")
    print(f"Blackouts             : {summary['number_of_blackouts']}")
    print(f"Total blackout (s)    : {summary['total_blackout_duration_s']:.0f}")
    print(f"Average blackout (s)  : {summary['average_blackout_duration_s']:.1f}")
    print(f"Longest blackout (s)  : {summary['longest_blackout_s']:.0f}")
    print(f"Link coverage         : {100.0 * summary['link_coverage_fraction']:.1f}%")
    print(f"Steps (skipped)       : {summary['steps_evaluated']} ({summary['steps_skipped']})")
    print("-" * 52)


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-7s  %(name)s  %(message)s",
        datefmt="%H:%M:%S"
    )
    try:
        settings.validate_settings()

        # 1) Get inputs from CLI
        config = run_cli()
        log.info("Starting simulation: %s", config.to_dict())

        # 2) Run
        results = run_simulation(config, event_sink=LoggingEventSink())
        summary = summarize_results(results)
        print_summary(summary)

        # 3) Save results
        out_file = save_json(
            {
                "meta": {
                    "config": config.to_dict(),
                    "timestamp_utc": datetime.now(timezone.utc).isoformat(),
                },
                "summary": summary,
                "results": results.to_dict(),
            },
            "handshake_results",
        )
        log.info("Saved results: %s", out_file)

        # 4) Plots (best-effort)
        try:
            plot_ground_tracks(results)
            plot_link_timeline(results)
            log.info("Plots generated.")
        except Exception as e:
            log.warning("Plotting failed: %s", e)

    except SimulationError as e:
        log.error("Simulation aborted: %s", e)
        raise SystemExit(1)
    except Exception:
        log.error("Fatal exception during run:")
        traceback.print_exc()
        raise SystemExit(1)


if __name__ == "__main__":
    main()
