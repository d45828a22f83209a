"""CLI for replaying LiftDispatch scenarios defined in JSON configs."""
from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from dispatch import Controller, DispatchConfig, DispatchError, WaitTimeTracker

logger = logging.getLogger("run_scenario")


def build_controller(config: Dict) -> Controller:
    return Controller.build(DispatchConfig.from_dict(config))


def _apply_scheduled_events(
    controller: Controller, events: Iterable[Dict], current_time: int, handles: Dict[str, int]
) -> None:
    for event in events:
        if event.get("time", 0) != current_time:
            continue
        kind = event.get("type")
        try:
            if kind == "hall_call":
                request = controller.request_elevator(event["floor"], event["direction"])
                if "name" in event:
                    handles[event["name"]] = request.request_id
            elif kind == "car_call":
                controller.select_destination(event["car_id"], event["floor"])
            elif kind == "emergency":
                controller.trigger_emergency(event["car_id"])
            elif kind == "out_of_service":
                controller.take_out_of_service(event["car_id"])
            elif kind == "restore":
                controller.restore_service(event["car_id"])
            elif kind == "load":
                controller.update_load(event["car_id"], event["load"])
            elif kind == "cancel":
                request_id = handles.get(event["name"])
                if request_id is not None:
                    controller.cancel_request(request_id)
            else:
                logger.warning("Skipping unknown event type %r at time %s", kind, current_time)
        except (DispatchError, ValueError) as exc:
            logger.warning("Rejected %s event at time %s: %s", kind, current_time, exc)


def run_scenario(controller: Controller, config: Dict) -> List[Dict]:
    duration = config.get("duration", 100)
    events = config.get("events", [])
    handles: Dict[str, int] = {}
    trajectory: List[Dict] = []

    for _ in range(duration):
        _apply_scheduled_events(controller, events, controller.current_time, handles)
        controller.tick()
        trajectory.append(
            {
                "time": controller.current_time,
                "cars": [
                    {"id": status.car_id, "floor": status.current_floor, "mode": status.mode.value}
                    for status in controller.statuses()
                ],
                "pending": len(controller.pending_requests()),
            }
        )
    return trajectory


def save_results(output_path: Optional[Path], data: Dict) -> None:
    if not output_path:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Path to a JSON scenario configuration file")
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional file path to write the trajectory and wait metrics as JSON",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = json.loads(args.config.read_text())
    controller = build_controller(config)
    tracker = WaitTimeTracker().attach(controller)
    trajectory = run_scenario(controller, config)

    final_metrics = asdict(tracker.snapshot(controller.current_time))
    results = {
        "scenario": config.get("name", args.config.stem),
        "description": config.get("description"),
        "duration": config.get("duration", 100),
        "scoring": controller.scoring_name,
        "service": controller.service_status().value,
        "unserved": len(controller.pending_requests()),
        "final_metrics": final_metrics,
        "trajectory": trajectory,
    }

    save_results(args.output, results)

    print(f"Scenario: {results['scenario']}")
    if results["description"]:
        print(results["description"])
    print(f"Scoring: {results['scoring']}")
    print(f"Duration: {results['duration']} ticks")
    print(f"Service: {results['service']} ({results['unserved']} requests still pending)")
    print("Final metrics:")
    for key, value in final_metrics.items():
        print(f"  {key}: {value}")
    if args.output:
        print(f"Saved results to {args.output}")


if __name__ == "__main__":
    main()
