#!/usr/bin/env python3
"""Passive peerchat dissector: sniff a port, reassemble streams, print each chat frame."""
import argparse
from collections import defaultdict
from datetime import datetime

from scapy.all import IP, TCP, IPv6, Raw, sniff
from scapy.fields import FieldLenField, StrLenField
from scapy.packet import Packet
from scapy.utils import PcapWriter

from peerchat.framing import HEADER, split_frames


class ChatFrame(Packet):
    name = "peerchat frame"
    fields_desc = [
        FieldLenField("length", None, length_of="text", fmt="H"),
        StrLenField("text", b"", length_from=lambda pkt: pkt.length),
    ]


class FlowReassembler:
    """Per-direction byte buffers. Assumes in-order capture (no retransmit handling)."""

    def __init__(self):
        self._buffers = defaultdict(bytes)

    def feed(self, flow, data):
        payloads, self._buffers[flow] = split_frames(self._buffers[flow] + data)
        return [ChatFrame(HEADER.pack(len(p)) + p) for p in payloads]

    def pending(self, flow):
        return len(self._buffers.get(flow, b""))

    def forget(self, flow):
        self._buffers.pop(flow, None)


def flow_key(pkt):
    ip = pkt[IP] if IP in pkt else pkt[IPv6]
    return (ip.src, pkt[TCP].sport, ip.dst, pkt[TCP].dport)


def hostport(host, port):
    return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"


def format_frame(flow, frame):
    src, sport, dst, dport = flow
    ts = datetime.now().strftime("%H:%M:%S")
    text = frame.text.decode("utf-8", errors="replace")
    return f"[{ts}] {hostport(src, sport)} -> {hostport(dst, dport)} len={frame.length} {text!r}"


def make_handler(reassembler, writer=None, out=print):
    def handle(pkt):
        if writer: writer.write(pkt)
        if TCP not in pkt or not (IP in pkt or IPv6 in pkt):
            return
        flow = flow_key(pkt)
        if Raw in pkt:
            for frame in reassembler.feed(flow, bytes(pkt[Raw].load)):
                out(format_frame(flow, frame))
        flags = pkt[TCP].flags
        if flags.F or flags.R:
            if reassembler.pending(flow):
                out(f"   (truncated: {reassembler.pending(flow)} bytes left in {hostport(*flow[:2])} stream)")
            reassembler.forget(flow)
    return handle


def build_args(argv=None):
    p = argparse.ArgumentParser(prog="peerchat-tap", description="Sniff peerchat traffic and print decoded frames")
    p.add_argument("-i","--iface", help="Interface (e.g., eth0, lo). Default = auto")
    p.add_argument("-p","--port", type=int, default=9000, help="Chat port to watch (default 9000)")
    p.add_argument("-n","--count", type=int, default=0, help="Packets to capture (0=inf)")
    p.add_argument("-w","--write", help="Write packets to this pcap")
    return p.parse_args(argv)


def main(argv=None):
    args = build_args(argv)
    writer = PcapWriter(args.write, append=True, sync=True) if args.write else None
    handle = make_handler(FlowReassembler(), writer)
    try:
        sniff(prn=handle, store=False, iface=args.iface, filter=f"tcp port {args.port}", count=args.count or 0)
    finally:
        if writer: writer.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
