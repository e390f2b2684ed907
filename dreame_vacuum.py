#!/usr/bin/env python3
"""
Dreame cloud client for robot vacuums.

Usage:
    python3 dreame_vacuum.py <command> [args]

Commands:
    status                      - Battery, docked/running/paused, error
    sync-rooms [file]           - Decode the RISM map (from the cloud or a file) and cache rooms
    rooms                       - List cached rooms
    clean-rooms "2,7"           - Clean segments by id
    clean-only "Sala,Cozinha"   - Clean rooms by name (separators , ; |)
    clean-except "Banheiro"     - Clean every room except the named ones
    start                       - Start cleaning (confirmed)
    pause                       - Pause (confirmed)
    resume                      - Resume (confirmed)
    stop                        - Stop (confirmed)
    home                        - Return to dock (confirmed, up to ~90s)
    presets                     - List cleaning presets
    preset <name>               - Apply a cleaning preset, e.g. VacuumTurbo
    set-fan <0..3>              - Suction level
    set-water <0..3>            - Mop water level
    map <file> [out.jpg]        - Render a RISM map blob to JPEG

Config via env vars: DREAME_TOKEN, DREAME_TENANT, DREAME_REGION,
DREAME_DEVICE_INDEX, DREAME_CACHE_DIR, DREAME_LOGLEVEL
"""

import asyncio
import logging
import os
import re
import sys
from pathlib import Path

from dreame_cloud import CloudError, DreameCloudClient, DreameController, decode_map_frame, extract_rooms
from dreame_cloud.const import CLEAN_PRESETS, DEFAULT_REGION, DEFAULT_TENANT, FAN_LEVELS, WATER_LEVELS
from dreame_cloud.render import render_map_image

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
DEFAULT_TOKEN  = os.environ.get("DREAME_TOKEN", "")
DEFAULT_TENANT_ID = os.environ.get("DREAME_TENANT", DEFAULT_TENANT)
DEFAULT_REGION_ID = os.environ.get("DREAME_REGION", DEFAULT_REGION)
DEVICE_INDEX   = int(os.environ.get("DREAME_DEVICE_INDEX", "0"))
LOGLEVEL       = os.environ.get("DREAME_LOGLEVEL", "WARNING")

COMMANDS = {
    "status", "sync-rooms", "rooms", "clean-rooms", "clean-only", "clean-except",
    "start", "pause", "resume", "stop", "home", "presets", "preset",
    "set-fan", "set-water", "map",
}

BOLD  = "\033[1m"
RESET = "\033[0m"


# ---------------------------------------------------------------------------
# Arg helpers
# ---------------------------------------------------------------------------
def parse_csv_ints(s):
    out = []
    for part in (s or "").split(","):
        part = part.strip()
        if part.lstrip("-").isdigit():
            out.append(int(part))
    return out


def parse_names(s):
    return [p.strip() for p in re.split(r"[;,|]", s or "") if p.strip()]


def _state_line(state):
    flags = [n for n, on in (("docked", state.docked), ("running", state.running),
                             ("paused", state.paused)) if on]
    batt = "?" if state.battery_percent is None else f"{state.battery_percent}%"
    return f"battery={batt}  {'/'.join(flags) or 'idle'}  error={state.error or 'none'}"


def _print_result(label, result):
    mark = "OK" if result.ok else "NOT CONFIRMED"
    print(f"{label}: {BOLD}{mark}{RESET} after {result.polls} poll(s)")
    print(f"  ack:   {result.ack}")
    print(f"  state: {_state_line(result.state)}")


def _print_clean(r):
    print(f"Selects:   {r.selects}")
    print(f"Fan/water: {r.fan}/{r.water}")
    print(f"Response:  {r.ack}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def _render_map(args):
    if len(args) < 2:
        print("Usage: map <file> [out.jpg]"); sys.exit(1)
    payload = decode_map_frame(Path(args[1]).read_text())
    rooms   = extract_rooms(payload)
    out     = Path(args[2] if len(args) > 2 else "map.jpg")
    out.write_bytes(render_map_image(payload, rooms))
    h = payload.header
    print(f"Map {h.map_id} frame {h.frame_id}: {h.width}×{h.height} px, {len(rooms)} rooms → {out}")


async def run(cmd, args):
    if not DEFAULT_TOKEN:
        print("DREAME_TOKEN is not set"); sys.exit(1)
    v = DreameController(
        DreameCloudClient(DEFAULT_TOKEN, DEFAULT_TENANT_ID, DEFAULT_REGION_ID),
        device_index=DEVICE_INDEX,
    )
    ctx = await v.init()
    print(f"Device:   {ctx.did}  {ctx.model or ''}  (cloud id {ctx.device_id})")
    arg1 = args[1] if len(args) > 1 else ""

    # ---- status --------------------------------------------------------------
    if cmd == "status":
        print(f"State:    {_state_line(await v.status())}")

    # ---- rooms ---------------------------------------------------------------
    elif cmd == "sync-rooms":
        blob = Path(arg1).read_text() if arg1 else None
        sync = await v.sync_rooms(blob)
        print(f"Rooms:         {len(sync.rooms)}")
        print(f"Service areas: {len(sync.service_areas)}")
        for a in sync.service_areas:
            print(f"  {a.id:>3}  {a.name}")

    elif cmd == "rooms":
        rooms = await v.rooms()
        if rooms is None:
            print("No room cache yet. Run: dreame_vacuum.py sync-rooms"); sys.exit(1)
        print(f"{'ID':>4}  {'Name':<20}  {'Type':<6}  {'Index':<6}  Unique ID")
        print("-" * 55)
        for r in rooms:
            print(f"  {r.segment_id:>2}  {(r.name or '-'):<20}  {str(r.type):<6}  "
                  f"{str(r.index):<6}  {r.unique_id}")

    # ---- segment cleaning ----------------------------------------------------
    elif cmd == "clean-rooms":
        segments = parse_csv_ints(arg1)
        if not segments:
            print('Usage: clean-rooms "2,7"'); sys.exit(1)
        _print_clean(await v.clean_rooms(segments))

    elif cmd in ("clean-only", "clean-except"):
        names = parse_names(arg1)
        if not names:
            print(f'Usage: {cmd} "Sala,Cozinha"'); sys.exit(1)
        if cmd == "clean-only":
            r = await v.clean_only(names)
        else:
            r = await v.clean_except(names)
        _print_clean(r)

    # ---- confirmed commands --------------------------------------------------
    elif cmd == "home":
        def _progress(i, state):
            print(f"  … waiting for dock ({i}/45) raw={state.raw}")
        _print_result("Home", await v.home(on_poll=_progress))

    elif cmd in ("start", "pause", "resume", "stop"):
        _print_result(cmd.capitalize(), await v.command(cmd))

    # ---- fan / water / presets -----------------------------------------------
    elif cmd == "presets":
        for name, (fan, water) in CLEAN_PRESETS.items():
            fan_s   = FAN_LEVELS.get(fan, "-")
            water_s = WATER_LEVELS.get(water, "-")
            print(f"  {name:<16} fan={fan_s:<9} water={water_s}")

    elif cmd == "preset":
        if not arg1:
            print(f"Usage: preset <{'|'.join(CLEAN_PRESETS)}>"); sys.exit(1)
        print(f"Responses: {await v.apply_preset(arg1)}")
        fan, water = await v.fan_water()
        print(f"Fan/water: {fan}/{water}")

    elif cmd in ("set-fan", "set-water"):
        if not arg1.isdigit():
            print(f"Usage: {cmd} 0..3"); sys.exit(1)
        setter = v.set_fan if cmd == "set-fan" else v.set_water
        print(f"Response:  {await setter(int(arg1))}")
        fan, water = await v.fan_water()
        print(f"Fan/water: {fan}/{water}")

    else:
        print(f"Unknown command: {cmd}\n"); print(__doc__); sys.exit(1)


def main():
    args = sys.argv[1:]
    if not args:
        print(__doc__); sys.exit(0)
    logging.basicConfig(level=LOGLEVEL.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    cmd = args[0].lower()
    if cmd not in COMMANDS:
        print(f"Unknown command: {cmd}\n"); print(__doc__); sys.exit(1)
    try:
        if cmd == "map":
            _render_map(args)
        else:
            asyncio.run(run(cmd, args))
    except (CloudError, OSError, ValueError, RuntimeError) as exc:
        print(f"FAIL: {exc}", file=sys.stderr); sys.exit(1)


if __name__ == "__main__":
    main()
