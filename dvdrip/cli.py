"""
dvdrip Command Line
rip dvd | tv | update | version | web
"""

import argparse
import os
import sys

from . import __version__
from . import activity
from . import config
from .errors import WorkflowError, format_error_message
from .ripper import RipEngine, RipJob


def build_parser(cfg: dict) -> argparse.ArgumentParser:
    default_device = cfg['ripping'].get('default_device', '/dev/sr0')

    parser = argparse.ArgumentParser(
        prog="rip",
        description="Rip DVDs and TV seasons with MakeMKV and organize them into a media library."
    )
    parser.add_argument("-v", "--version", action="version", version=f"rip version v{__version__}")
    sub = parser.add_subparsers(dest="command", metavar="command")
    sub.required = True

    dvd = sub.add_parser("dvd", help="Rip a movie DVD and organize it by category")
    dvd.add_argument("-d", "--device", default=default_device,
                     help="Physical device path (e.g. /dev/sr0)")
    dvd.add_argument("-c", "--category", default="",
                     help="Target category folder (e.g. Comedy, Action)")
    dvd.add_argument("-m", "--movie", default="",
                     help="Movie name to bypass discovery and use directly")
    dvd.add_argument("query", nargs="?", default="", help="Movie name to look up")

    tv = sub.add_parser("tv", help="Rip a TV show disc and organize it by season")
    tv.add_argument("-d", "--device", default=default_device, help="Physical device path")
    tv.add_argument("query", help="Show name")
    tv.add_argument("season_disc", metavar="season-disc",
                    help='Season and disc, e.g. "1-2" for season 1, disc 2')

    sub.add_parser("update", help="Update MakeMKV to the latest version")
    sub.add_parser("version", help="Print the version of rip")

    web = sub.add_parser("web", help="Start the web frontend for ripping")
    web.add_argument("-p", "--port", type=int, default=cfg['web'].get('port', 8080),
                     help="Port to run the web server on")
    web.add_argument("--storage", default=None, help="Storage path for ripped media")

    return parser


def _run_job(cfg: dict, job: RipJob) -> int:
    try:
        RipEngine(cfg).run(job)
    except WorkflowError as e:
        print(f"Error: {format_error_message(e.error)}", file=sys.stderr)
        return 1
    return 0


def main(argv=None) -> int:
    activity.set_echo(True)
    config.create_default_config()
    cfg = config.load_config()
    activity.configure(log_dir=cfg['logging'].get('dir'))

    args = build_parser(cfg).parse_args(argv)

    if args.command == "version":
        print(f"rip version v{__version__}")
        return 0

    if args.command == "dvd":
        job = RipJob(device=args.device, category=args.category,
                     movie_name=args.movie, query=args.query)
        return _run_job(cfg, job)

    if args.command == "tv":
        job = RipJob(device=args.device, query=args.query, media_type="tv",
                     season_disc=args.season_disc)
        return _run_job(cfg, job)

    if args.command == "update":
        from . import updater
        result = updater.update_makemkv(cfg['tools'].get('makemkvcon', 'makemkvcon'))
        if not result['success']:
            print(f"Error: {result['error']}", file=sys.stderr)
            return 1
        return 0

    if args.command == "web":
        from . import server
        if args.storage:
            cfg['paths']['storage'] = os.path.expanduser(args.storage)
        # Background jobs log to the file only
        activity.set_echo(False)
        server.run_server(cfg, port=args.port)
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
