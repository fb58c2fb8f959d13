import argparse
import logging
import sys
from typing import Dict, Optional

from chartio.osu_parser import load_beatmap
from emulator.config import PlayConfig
from emulator.context import PlayContext
from emulator.logging_setup import setup_logging
from emulator.objects import HitCircle, Slider

logger = logging.getLogger("main")

PRE_ROLL_MS = 1000


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Step a chart's clock and report what is on screen.")
    parser.add_argument("chart", help="path to a .osu file")
    parser.add_argument("--start", type=float, default=None, help="first frame time in ms")
    parser.add_argument("--end", type=float, default=None, help="last frame time in ms")
    parser.add_argument("--fps", type=float, default=60.0)
    parser.add_argument("--preempt", type=float, default=None, help="override the preempt time in ms")
    parser.add_argument("--fade-out", type=float, default=None, help="override the fade-out time in ms")
    parser.add_argument("--autoplay", action="store_true", help="click every object and follow every slider")
    parser.add_argument("--quiet", action="store_true")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)
    if args.fps <= 0:
        parser.error("--fps must be positive")
    return args


def build_config(args) -> PlayConfig:
    config = PlayConfig.from_env()
    changes = {}
    if args.preempt is not None:
        changes["preempt_time"] = args.preempt
    if args.fade_out is not None:
        changes["fade_out_time"] = args.fade_out
    return config.replace(**changes) if changes else config


def play_range(context: PlayContext):
    objects = context.beatmap.hit_objects
    if not objects:
        return 0.0, 0.0
    first_appear = min(context.window.show_time(obj) for obj in objects)
    last_expiry = max(context.window.expiry_time(obj) for obj in objects)
    return max(0.0, first_appear - PRE_ROLL_MS), last_expiry


def autoplay_cursor(context: PlayContext, current_time) -> Optional[tuple]:
    cursor = None
    for visible in context.visible_objects(current_time):
        obj = visible.hit_object
        if isinstance(obj, HitCircle) and current_time >= obj.time:
            context.click(obj.x, obj.y, current_time)
            cursor = obj.position
        elif isinstance(obj, Slider) and current_time >= obj.time:
            # past the last slide the ball rests on its end position
            position = visible.ball_position or context.kinematics.end_position(obj)
            state = context.follow_state(obj)
            if state is None or not state.is_active:
                context.click(*position, current_time)
            cursor = position
    return cursor


def run(context: PlayContext, start: float, end: float, fps: float, autoplay: bool = False) -> Dict[str, int]:
    ms_per_frame = 1000 / fps
    frame_index = 0
    max_visible = 0

    current_time = start
    while current_time <= end:
        cursor = autoplay_cursor(context, current_time) if autoplay else None
        visible = context.update(current_time, cursor)
        max_visible = max(max_visible, len(visible))
        logger.debug("t=%.1f %d visible", current_time, len(visible))

        for item in visible:
            if item.ball_position is not None:
                logger.debug("t=%.1f slider@%d ball=(%.1f, %.1f) alpha=%.2f", current_time,
                             item.hit_object.time, item.ball_position[0], item.ball_position[1], item.alpha)

        frame_index += 1
        if frame_index % 600 == 0:
            logger.info("Processed %d frames (t=%.0fms, %d visible)", frame_index, current_time, len(visible))
        current_time = start + frame_index * ms_per_frame

    resolved = sum(1 for obj in context.beatmap.hit_objects if obj.resolved)
    return {"frames": frame_index, "max_visible": max_visible, "resolved": resolved}


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args)

    try:
        beatmap = load_beatmap(args.chart)
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1
    logger.info("Loaded %s", beatmap)

    context = PlayContext(beatmap, build_config(args))
    start, end = play_range(context)
    if args.start is not None:
        start = args.start
    if args.end is not None:
        end = args.end

    stats = run(context, start, end, args.fps, autoplay=args.autoplay)
    logger.info("Played %d frames from %.0fms to %.0fms: at most %d objects visible, %d/%d resolved",
                stats["frames"], start, end, stats["max_visible"], stats["resolved"], len(beatmap.hit_objects))
    context.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
