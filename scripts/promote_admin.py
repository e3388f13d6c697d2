"""Grant (or revoke) the admin flag on a profile by email.

Usage: python scripts/promote_admin.py someone@campus.edu [--revoke]
"""

import asyncio
import os
import sys

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BACKEND_DIR = os.path.join(ROOT_DIR, "backend")
if BACKEND_DIR not in sys.path:
    sys.path.append(BACKEND_DIR)

from campuslife.infra.postgres import close_pool
from campuslife.infra.query import Eq, get_query_client


async def promote(email: str, *, admin: bool = True) -> int:
    client = get_query_client()
    try:
        rows = await client.update_rows("profiles", [Eq("email", email.strip().lower())], {"is_admin": admin})
    finally:
        await close_pool()
    if not rows:
        print(f"ERROR: profile {email} not found. Sign up first.")
        return 1
    print(f"{email} is_admin={admin}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        raise SystemExit(__doc__)
    raise SystemExit(asyncio.run(promote(sys.argv[1], admin="--revoke" not in sys.argv[2:])))
