"""One-off analysis of a single pool-creation transaction.

Resolves the signature, runs the full report pipeline and prints the report
as JSON. Optionally appends it to a reports file like the monitor does.

Usage:
    python scripts/analyze_signature.py <SIGNATURE>
    python scripts/analyze_signature.py <SIGNATURE> --out reports.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings, validate_settings  # noqa: E402
from launch_radar.parsers.persistence import JsonFileReportSink  # noqa: E402
from launch_radar.parsers.pipeline import PipelineConfig, process_transaction  # noqa: E402
from launch_radar.parsers.rugcheck.client import RugcheckClient  # noqa: E402
from launch_radar.parsers.solana_rpc.client import SolanaRpcClient  # noqa: E402
from launch_radar.utils.logger import setup_logger  # noqa: E402


async def analyze(signature: str, out: str | None) -> int:
    validate_settings(settings)
    rpc = SolanaRpcClient(settings.rpc_url, max_rps=settings.rpc_max_rps)
    rugcheck = RugcheckClient(settings.rugcheck_base_url, max_rps=settings.rugcheck_max_rps)
    try:
        tx = await rpc.get_transaction(signature)
        report = await process_transaction(
            signature,
            tx,
            PipelineConfig.from_settings(settings),
            rpc=rpc,
            rugcheck=rugcheck,
        )
    finally:
        await rpc.close()
        await rugcheck.close()

    if report is None:
        print(f"{signature}: not a pool creation with an LP-owned token balance", file=sys.stderr)
        return 1

    print(json.dumps(report.to_payload(), indent=2))
    if out:
        await JsonFileReportSink(out).append(report)
    return 0


async def main() -> None:
    parser = argparse.ArgumentParser(description="Build a risk report for one pool-creation tx")
    parser.add_argument("signature")
    parser.add_argument("--out", default=None, help="Append the report to this JSON file")
    args = parser.parse_args()

    setup_logger(level="WARNING", log_dir=None)
    sys.exit(await analyze(args.signature, args.out))


if __name__ == "__main__":
    asyncio.run(main())
