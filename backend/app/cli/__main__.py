# backend/app/cli/__main__.py
from __future__ import annotations

import argparse

from app.cli.seed_demo import seed_demo


def main() -> None:
    p = argparse.ArgumentParser(prog="python -m app.cli")
    p.add_argument("--host-email", default="host@homekey.local")
    p.add_argument("--master-email", default="admin@homekey.local")
    p.add_argument("--password", default="123456")
    p.add_argument("--motel-name", default="HomeKey Demo")
    p.add_argument("--floors", type=int, default=2)
    p.add_argument("--rooms-per-floor", type=int, default=4)
    args = p.parse_args()

    out = seed_demo(
        host_email=args.host_email,
        master_email=args.master_email,
        password=args.password,
        motel_name=args.motel_name,
        floors=args.floors,
        rooms_per_floor=args.rooms_per_floor,
    )
    print(
        {
            "ok": True,
            "master_email": out.master_email,
            "host_email": out.host_email,
            "motel_id": out.motel_id,
            "rooms_created": out.room_count,
        }
    )


if __name__ == "__main__":
    main()
