"""Run one or all pipeline stages from the command line.

Usage:
    python scripts/run_stage.py transcribe
    python scripts/run_stage.py all --working-dir /data/working-paths
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wikiscribe.api.routes import pipeline  # noqa: E402
from wikiscribe.config import settings  # noqa: E402

STAGES = {
    "videos": pipeline.run_video_extraction,
    "transcribe": pipeline.run_transcription,
    "generate": pipeline.run_markdown_generation,
    "publish": pipeline.run_wiki_publish,
}


async def run(stage: str) -> None:
    names = list(STAGES) if stage == "all" else [stage]
    for name in names:
        print(f"==> {name}")
        report = await STAGES[name]()
        print(f"    {report}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run wikiscribe pipeline stages")
    parser.add_argument("stage", choices=[*STAGES, "all"])
    parser.add_argument("--working-dir", default=None, help="Override WORKING_DIR")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.working_dir:
        settings.working_dir = args.working_dir

    try:
        asyncio.run(run(args.stage))
    except Exception as e:
        print(f"ERROR: {e}")
        sys.exit(1)
