#!/usr/bin/env python3
"""peerchat: one-to-one text chat over a raw TCP connection."""
import argparse
import logging
import sys

from peerchat.address import InvalidAddress, Role, describe, resolve
from peerchat.console import Console
from peerchat.establish import SessionError, establish
from peerchat.session import DuplexSession
from peerchat.shutdown import ShutdownController, install_signal_handlers, restore_signal_handlers

log = logging.getLogger("peerchat")


def port_number(text):
    try:
        port = int(text, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port {text!r}")
    if not 0 <= port <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"port {port} out of range 0-65535")
    return port


def build_args(argv=None):
    p = argparse.ArgumentParser(prog="peerchat", description="Chat with one peer over TCP (length-prefixed UTF-8 lines)")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("-a", "--accept", dest="role", action="store_const", const=Role.LISTENER,
                      help="Listen on <ip> <port> and accept one peer")
    mode.add_argument("-c", "--connect", dest="role", action="store_const", const=Role.DIALER,
                      help="Connect to a peer listening on <ip> <port>")
    p.add_argument("ip", help="Numeric IPv4 or IPv6 address (no hostnames)")
    p.add_argument("port", type=port_number, help="TCP port, 0-65535")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def setup_logging(verbose=False):
    logging.basicConfig(stream=sys.stderr, format="[*] %(message)s",
                        level=logging.DEBUG if verbose else logging.INFO)


def run(args, console=None):
    try:
        endpoint = resolve(args.ip)
    except InvalidAddress as e:
        log.error("%s", e)
        return 1
    log.debug("%s found", describe(endpoint.family))

    try:
        session = establish(endpoint, args.port, args.role)
    except SessionError as e:
        log.error("%s", e)
        return 1
    except KeyboardInterrupt:
        log.info("Interrupted before a peer connected.")
        return 0

    shutdown = ShutdownController()
    previous = install_signal_handlers(shutdown)
    try:
        reason = DuplexSession(session, shutdown, console or Console()).run()
    finally:
        restore_signal_handlers(previous)
    log.info("Chat finished (%s).", reason.value)
    return 0 if reason.ok else 1


def main(argv=None):
    args = build_args(argv)
    setup_logging(args.verbose)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
