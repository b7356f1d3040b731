#!/usr/bin/env python3
"""Audit: Compare declared properties vs what the device actually returns."""

import asyncio
import os

from dotenv import load_dotenv

load_dotenv()

from pyopensprinkler import OSPConnection, ReadEndpoint  # noqa: E402
from pyopensprinkler.properties import ALL_PROPERTIES_BY_OWNER  # noqa: E402


async def main():
    host = os.getenv("OPENSPRINKLER_HOST", "192.168.1.50")
    port = int(os.getenv("OPENSPRINKLER_PORT", "80"))
    password = os.getenv("OPENSPRINKLER_PASSWORD", "opendoor")

    print(f"Connecting to OpenSprinkler at {host}:{port}...")

    async with OSPConnection(host, password, is_plain=True, port=port) as conn:
        responses = {endpoint: await conn.execute(endpoint) for endpoint in ReadEndpoint}

    print("=" * 70)
    print("PROPERTY AUDIT: Declared vs Device")
    print("=" * 70)

    declared: dict[str, set[str]] = {endpoint: set() for endpoint in ReadEndpoint}
    for kind, table in ALL_PROPERTIES_BY_OWNER.items():
        print(f"\n{kind}:")
        for key, metadata in table.items():
            response = responses[metadata.read_endpoint]
            declared[metadata.read_endpoint].add(key)
            marker = "ok" if key in response else "MISSING"
            print(f"  {key:10} {metadata.value_type:12} {metadata.read_endpoint}  {marker}")

    print("\nUndeclared keys per endpoint:")
    for endpoint, response in responses.items():
        extra = sorted(set(response) - declared[endpoint])
        print(f"  {endpoint}: {', '.join(extra) or '(none)'}")


if __name__ == "__main__":
    asyncio.run(main())
