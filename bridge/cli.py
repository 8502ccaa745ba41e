import argparse
import asyncio
import json
import sys

from bridge.client import EthClient
from common.errors import BridgeError
from common.logging_setup import setup_logging
from common.settings import load_settings

EXIT_PERMANENT = 1
EXIT_INVALID = 2
EXIT_RETRYABLE = 3


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Bridge watcher: verified logs and finalized actions")
    p.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("describe", help="Print chain id and head block")

    ev = sub.add_parser("events", help="Print verified logs of the bridge contract in a block range")
    ev.add_argument("--from", dest="start", type=int, required=True, help="First block, inclusive")
    ev.add_argument("--to", dest="end", type=int, required=True, help="Last block, inclusive")
    ev.add_argument("--address", default=None, help="Contract address (defaults to bridge.contract)")

    ac = sub.add_parser("action", help="Print the finalized bridge action at a transaction position")
    ac.add_argument("--tx", required=True, help="Transaction hash")
    ac.add_argument("--index", type=int, required=True, help="Log index within the transaction")
    return p


async def run(args, settings) -> None:
    client = await EthClient.connect(settings)
    if args.command == "describe":
        # connect already asked the provider
        print(json.dumps(client.chain_info))
    elif args.command == "events":
        address = args.address or settings.bridge.contract
        logs = await client.get_events_in_range(address, args.start, args.end)
        for lg in sorted(logs, key=lambda v: v.sort_key):
            print(json.dumps(lg.to_dict()))
    elif args.command == "action":
        action = await client.finalized_action_for(args.tx, args.index)
        print(json.dumps(action.to_dict()))


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config)
    except (RuntimeError, OSError) as e:
        print(f"ERROR {e}", file=sys.stderr)
        return EXIT_INVALID
    setup_logging(settings.logging.level)
    try:
        asyncio.run(run(args, settings))
    except ValueError as e:
        print(f"ERROR {e}", file=sys.stderr)
        return EXIT_INVALID
    except BridgeError as e:
        print(f"ERROR {e}", file=sys.stderr)
        return EXIT_RETRYABLE if e.retryable else EXIT_PERMANENT
    return 0


if __name__ == "__main__":
    sys.exit(main())
