"""
SurfScore CLI entrypoint.

This CLI is intended for quick local demos and debugging without the HTTP API.
It delegates all analysis/prediction logic to `surfscore.service.SurfScoreService`.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from surfscore.config.settings import get_settings
from surfscore.core.logging import configure_logging
from surfscore.demo import DEMO_CONDITIONS, DEMO_SPOT, demo_profiles, get_demo_user
from surfscore.domain.errors import SurfScoreError
from surfscore.domain.models import Prediction, UserProfile
from surfscore.scoring.explain import one_line_summary
from surfscore.service import SurfScoreService, build_service


def _load_sessions(path: str) -> list[Any]:
    """Read a JSON file holding either a list of sessions or `{"sessions": [...]}`."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("sessions")
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a JSON list of sessions (or an object with a 'sessions' list)")
    return payload


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _print_profile(profile: UserProfile) -> None:
    waves = profile.wave_preferences
    wind = profile.wind_preferences
    print(f"User: {profile.user_id}")
    print(
        f"Sessions: {profile.total_sessions} usable, {profile.good_sessions} good, "
        f"{profile.excellent_sessions} excellent; reliability {profile.reliability_score:.0%}"
    )
    h = waves.optimal_height
    period = f"{waves.optimal_period.value:.1f}s" if waves.optimal_period else "-"
    print(
        f"Waves: {h.value:.2f}m (range {h.range.min:g}-{h.range.max:g}m, confidence {h.confidence:.2f}), "
        f"direction {waves.preferred_direction or '-'}, period {period}"
    )
    s = wind.optimal_speed
    print(
        f"Wind: {s.value:.1f} km/h (range {s.range.min:g}-{s.range.max:g}), "
        f"direction {wind.preferred_direction or '-'}, tolerance {wind.tolerance:.2f}"
    )
    if profile.tide_preferences:
        t = profile.tide_preferences.optimal_height
        print(f"Tide: {t.value:.2f}m (range {t.range.min:g}-{t.range.max:g}m)")
    for i, spot in enumerate(profile.spot_preferences, start=1):
        print(f"{i:>2}. {spot.name}  score={spot.score:.2f} sessions={spot.sessions_count} avg={spot.average_rating:.1f}")
    for insight in profile.behavioral_insights:
        print(f"  * {insight}")


def _print_prediction(prediction: Prediction) -> None:
    print(f"{prediction.spot}: {one_line_summary(prediction)}")
    for factor in prediction.breakdown:
        reasons = "; ".join(factor.reasons)
        print(f"    - {factor.name}: score={factor.score:.3f} weight={factor.weight:.2f}  {reasons}")
    for rec in prediction.recommendations:
        print(f"  > {rec}")
    print(prediction.reasoning)


def _service() -> SurfScoreService:
    return build_service(get_settings())


def _cmd_analyze(args: argparse.Namespace) -> int:
    """Handle the `analyze` subcommand."""
    profile = _service().analyze_preferences(args.user_id, _load_sessions(args.sessions))
    if args.json:
        _print_json(profile.model_dump(mode="json"))
    else:
        _print_profile(profile)
    return 0


def _cmd_predict(args: argparse.Namespace) -> int:
    """Handle the `predict` subcommand (analyzes first when `--sessions` is given)."""
    service = _service()
    if args.sessions:
        service.analyze_preferences(args.user_id, _load_sessions(args.sessions))

    conditions = {
        "wave_height": args.wave_height,
        "wind_speed": args.wind_speed,
        "wave_direction": args.wave_direction,
        "wind_direction": args.wind_direction,
        "wave_period": args.wave_period,
        "tide_height": args.tide_height,
    }
    prediction = service.predict_session_quality(
        args.user_id, {k: v for k, v in conditions.items() if v is not None}, args.spot
    )
    if args.json:
        _print_json(prediction.model_dump(mode="json"))
    else:
        _print_prediction(prediction)
    return 0


def _cmd_demo(args: argparse.Namespace) -> int:
    user = get_demo_user(args.profile)
    profile, prediction = _service().analyze_and_predict(
        user["user_id"], user["sessions"], DEMO_CONDITIONS, DEMO_SPOT
    )
    if args.json:
        _print_json({"profile": profile.model_dump(mode="json"), "prediction": prediction.model_dump(mode="json")})
        return 0
    _print_profile(profile)
    print()
    _print_prediction(prediction)
    return 0


def _cmd_spots(_: argparse.Namespace) -> int:
    _print_json([s.model_dump(mode="json") for s in _service().spots])
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the SurfScore CLI."""
    parser = argparse.ArgumentParser(prog="surfscore")
    parser.add_argument("--log-level", default=None, help="Override app.log_level (e.g. DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    ana = sub.add_parser("analyze", help="Learn a surfer's preferences from a JSON file of rated sessions.")
    ana.add_argument("--user-id", required=True)
    ana.add_argument("--sessions", required=True, help="Path to a JSON list of sessions")
    ana.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    ana.set_defaults(func=_cmd_analyze)

    pred = sub.add_parser("predict", help="Predict session quality for forecast conditions at a spot.")
    pred.add_argument("--user-id", required=True)
    pred.add_argument("--spot", required=True)
    pred.add_argument(
        "--sessions", default=None, help="Analyze this JSON file first (otherwise the stored profile is used)"
    )
    pred.add_argument("--wave-height", type=float, required=True, help="meters")
    pred.add_argument("--wind-speed", type=float, required=True, help="km/h")
    pred.add_argument("--wave-direction", default=None, help="compass point (e.g. NW) or degrees")
    pred.add_argument("--wind-direction", default=None, help="compass point (e.g. NE) or degrees")
    pred.add_argument("--wave-period", type=float, default=None, help="seconds")
    pred.add_argument("--tide-height", type=float, default=None, help="meters")
    pred.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    pred.set_defaults(func=_cmd_predict)

    demo = sub.add_parser("demo", help="Analyze a bundled demo surfer and predict tomorrow at Biarritz.")
    demo.add_argument("profile", choices=demo_profiles())
    demo.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    demo.set_defaults(func=_cmd_demo)

    spots = sub.add_parser("spots", help="List the spot catalog.")
    spots.set_defaults(func=_cmd_spots)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m surfscore.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except SurfScoreError as e:
        print(f"error [{e.code}]: {e.message}", file=sys.stderr)
        if e.suggestion:
            print(f"hint: {e.suggestion}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
