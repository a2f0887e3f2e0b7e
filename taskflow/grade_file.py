import argparse
import asyncio
import logging
import mimetypes
import os
import sys

from dotenv import load_dotenv

from .errors import ValidationError
from .secretenv import init_secrets
from .settings import Settings
from .services.analysis import AnswerAnalysisClient
from .services.contracts import RawSubmission
from .services.extraction import DocumentExtractionClient
from .services.orchestrator import GradingPipeline, PipelineState
from .services.report import build_markdown


def load_submission(path: str) -> RawSubmission:
    mime_type, _ = mimetypes.guess_type(path)
    with open(path, "rb") as f:
        content = f.read()
    return RawSubmission(
        content=content,
        mime_type=mime_type or "application/octet-stream",
        filename=os.path.basename(path),
    )


def read_reference(value: str) -> str:
    """`@path` reads the reference answer from a file."""
    if value.startswith("@"):
        with open(value[1:], "r", encoding="utf-8") as f:
            return f.read()
    return value


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Grade one answer script against a reference answer.")
    parser.add_argument("path", help="scanned answer script (PDF or image)")
    parser.add_argument("--reference", required=True, help="reference answer text, or @file")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    pipeline = GradingPipeline(DocumentExtractionClient(settings), AnswerAnalysisClient(settings))
    try:
        run = await pipeline.grade(load_submission(args.path), read_reference(args.reference))
    except ValidationError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 2

    print(build_markdown(run))
    return 0 if run.state is PipelineState.COMPLETE else 1


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_secrets()
    load_dotenv()
    sys.exit(asyncio.run(main()))
