"""
Notehook CLI: `notehook` console script.

  notehook run [--host H] [--port P] [--reload] [--log-level L]
      Serve the webhook receiver. Host and port default to the HOST and PORT
      settings (.env.notehook).

  notehook simulate [EVENT] [--server URL] [--user NAME] [--target NAME] [--token T]
      POST a fake GitLab note webhook to a running server. EVENT defaults to
      issue-comment; `notehook simulate --list` shows them all.
"""

# Standard
import argparse
import sys

# Remote
import uvicorn

# Local
from . import __version__
from .simulate import EVENTS

LOG_LEVELS = ["critical", "error", "warning", "info", "debug", "trace"]


def _cmd_run(args: argparse.Namespace) -> int:
    # Local
    from .config import settings

    uvicorn.run(
        "notehook.main:app",
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        reload=args.reload,
        log_level=args.log_level,
        access_log=True,
    )
    return 0


def _list_events():
    width = max(len(name) for name in EVENTS)
    for name, (_, description) in EVENTS.items():
        print(f"{name:<{width}}  {description}")


def _cmd_simulate(args: argparse.Namespace) -> int:
    # Remote
    import httpx

    if args.list:
        _list_events()
        return 0

    factory, _ = EVENTS[args.event]
    url = f"{args.server.rstrip('/')}/webhooks/gitlab"
    headers = {"X-Gitlab-Event": "Note Hook"}
    if args.token:
        headers["X-Gitlab-Token"] = args.token

    print(f"{args.event} as @{args.user} -> {url}")
    try:
        resp = httpx.post(
            url, json=factory(args.user, args.target), headers=headers, timeout=10.0
        )
    except httpx.ConnectError:
        print(f"No server listening at {args.server} (start one with `notehook run`)")
        return 1
    except httpx.HTTPError as e:
        print(f"Request failed: {e}")
        return 1

    print(f"HTTP {resp.status_code}: {resp.text}")
    return 0 if resp.is_success else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notehook",
        description="GitLab comment webhooks to chat notifications",
    )
    parser.add_argument("--version", action="version", version=f"notehook {__version__}")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    run_p = sub.add_parser("run", help="Serve the webhook receiver")
    run_p.add_argument("--host", help="Bind host (default: HOST setting)")
    run_p.add_argument("--port", type=int, help="Bind port (default: PORT setting)")
    run_p.add_argument("--reload", action="store_true", help="Reload on code changes")
    run_p.add_argument("--log-level", choices=LOG_LEVELS, default="info")
    run_p.set_defaults(func=_cmd_run)

    sim_p = sub.add_parser("simulate", help="Send a fake note webhook to a server")
    sim_p.add_argument("event", nargs="?", choices=list(EVENTS), default="issue-comment")
    sim_p.add_argument("--server", default="http://localhost:8000")
    sim_p.add_argument("--user", default="sim-user", help="Commenting username")
    sim_p.add_argument("--target", default="root", help="Username @mentioned by issue-mention")
    sim_p.add_argument("--token", help="X-Gitlab-Token header value")
    sim_p.add_argument("--list", action="store_true", help="List event names and exit")
    sim_p.set_defaults(func=_cmd_simulate)

    return parser


def main(argv=None):
    args = _build_parser().parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
