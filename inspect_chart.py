#!/usr/bin/env python
import argparse
import logging
import pathlib
import sys

from bmsparser.parser import decode_chart


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Reads a BMS/BMSON file and prints out its metadata, notecounts and timing summary."
    )
    parser.add_argument("filename", nargs="+", help="input BMS/BME/BML/PMS/BMSON file(s) to read")
    parser.add_argument("--porcelain", action="store_true", help="produce machine readable output")
    parser.add_argument("--log-level", action="store", help="change logging level. invalid values are silently ignored")
    parser.add_argument(
        "--random",
        action="append",
        type=int,
        metavar="VALUE",
        help="value to use for the next #RANDOM block. may be given multiple times",
    )
    args = parser.parse_args(argv)

    log_level = logging.WARNING
    if args.log_level is not None:
        try:
            log_level_int = int(args.log_level)
            if log_level_int in logging._levelToName:
                log_level = log_level_int
        except ValueError:
            log_level_str = args.log_level.upper()
            log_level = logging._nameToLevel.get(log_level_str, log_level)
    logging.basicConfig(format="[%(levelname)s %(asctime)s] %(filename)s: %(message)s", level=log_level)

    for fn in args.filename:
        try:
            chart = decode_chart(pathlib.Path(fn), selected_randoms=args.random)

            if args.porcelain:
                print("\t".join(str(n) for n in [chart.total_notes, chart.total_long_notes, len(chart.notes)]))
                print(
                    "\t".join(
                        str(n)
                        for n in [
                            chart.initial_bpm,
                            chart.min_bpm,
                            chart.max_bpm,
                            chart.total_time_us,
                            chart.total_measures,
                        ]
                    )
                )
            else:
                print(fn)
                print("=====    METADATA    =====")
                print(f"TITLE              | {chart.title} {chart.subtitle}".rstrip())
                print(f"ARTIST             | {chart.artist}")
                print(f"GENRE              | {chart.genre}")
                print(f"MODE               | {chart.play_mode}")
                print(f"LEVEL              | {chart.play_level:>5}")
                print(f"RANDOM             | {'yes' if chart.has_random else 'no':>5}")
                print("=====   NOTECOUNTS   =====")
                print(f"PLAYABLE           | {chart.total_notes:>5}")
                print(f"LONG               | {chart.total_long_notes:>5}")
                print(f"ALL                | {len(chart.notes):>5}")
                print(f"BACKGROUND         | {len(chart.background_events):>5}")
                print("=====     TIMING     =====")
                print(f"INITIAL BPM        | {chart.initial_bpm:>9.3f}")
                print(f"MIN BPM            | {chart.min_bpm:>9.3f}")
                print(f"MAX BPM            | {chart.max_bpm:>9.3f}")
                print(f"STOPS              | {len(chart.pause_events):>5}")
                print(f"LENGTH (s)         | {chart.total_time_us / 1_000_000:>9.3f}")
                print(f"SHA-256            | {chart.sha256}")
                print()
        except Exception as err:
            if args.porcelain:
                print("\t".join(["-1"] * 3))
                print("\t".join(["-1"] * 5))
                continue
            print(f"{parser.prog}: {type(err).__name__}: {err}")
            print(f"{parser.prog}: error: unable to parse file, or no such file: {fn!r}")
            return 3

    return 0


if __name__ == "__main__":
    sys.exit(main())
