#!/usr/bin/env python3
"""Query and display the controller state and every station."""

import asyncio
import os

from dotenv import load_dotenv

load_dotenv()

from pyopensprinkler import OSPClient, OSPConfig, firmware_name  # noqa: E402


async def main():
    host = os.getenv("OPENSPRINKLER_HOST", "192.168.1.50")
    port = int(os.getenv("OPENSPRINKLER_PORT", "80"))
    password = os.getenv("OPENSPRINKLER_PASSWORD", "opendoor")

    print(f"Connecting to OpenSprinkler at {host}:{port}...")

    client = OSPClient(OSPConfig(host, password, is_plain=True, port=port))

    try:
        await client.connect()
        controller = client.controller
        print(f"Firmware: {firmware_name(client.device.firmware_version)}")
        print(f"Enabled: {controller.is_enabled()}")
        print(f"Rain delay: {controller.is_rain_delay_active()}")
        print(f"Clock skew: {controller.clock_skew}s\n")

        print(f"Found {len(controller.stations)} station(s):")
        print("=" * 60)
        for station in controller.stations:
            state = "RUNNING" if station.is_in_use() else "idle"
            if station.is_disabled():
                state = "disabled"
            line = f"  {station.index:3} {station.name or '?':24} {state}"
            remaining = station.remaining_watering_seconds()
            if remaining:
                line += f" ({remaining}s left)"
            print(line)
        print("=" * 60)

    finally:
        await client.stop()


if __name__ == "__main__":
    asyncio.run(main())
