"""Replay a recorded CSV movement trace through the validation policy.

Contract
- Input: CSV with columns player_id,state,ox,oy,oz,vx,vy,vz,yaw,timestamp[,server_now]
- Output: one row per report with the verdict, written as CSV (stdout or --out).
- Nothing touches redis; records are kept in memory per player.

Usage:
    uv run python scripts/replay_trace.py trace.csv --profile lenient --out verdicts.csv
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

from move_authority.movement.validator import ValidatorProfile
from move_authority.replay import replay_trace


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("trace", type=Path)
    parser.add_argument("--profile", choices=[p.value for p in ValidatorProfile], default=ValidatorProfile.standard.value)
    parser.add_argument("--out", type=Path, default=None)
    args = parser.parse_args()

    df = pd.read_csv(args.trace)
    out = replay_trace(df, profile=args.profile)

    if args.out is None:
        out.to_csv(sys.stdout, index=False)
    else:
        out.to_csv(args.out, index=False)

    rejected = int((~out["accepted"]).sum())
    print(f"{len(out)} reports, {rejected} rejected", file=sys.stderr)


if __name__ == "__main__":
    main()
