"""CLI entrypoint for the lore extraction pipeline."""

import argparse
import asyncio
import json
import logging
import os
import sys
import warnings
from pathlib import Path

from lore_extractor.core.config import API_KEY_ENV_VAR, ORACLE_MODEL

# Suppress LiteLLM's direct prints (must be before import)
os.environ["LITELLM_LOG"] = "ERROR"

# Suppress noisy warnings before any imports
warnings.filterwarnings("ignore", message="Pydantic serializer warnings")
warnings.filterwarnings("ignore", category=UserWarning, module="pydantic")
warnings.filterwarnings("ignore", message="Unclosed client session")
warnings.filterwarnings("ignore", category=ResourceWarning)

# Suppress noisy loggers (HTTP clients, LiteLLM internals)
for logger_name in ["httpx", "httpcore", "litellm", "LiteLLM",
                    "LiteLLM Router", "aiohttp", "asyncio"]:
    logging.getLogger(logger_name).setLevel(logging.ERROR)

import litellm  # noqa: E402 - must be after logging config
from dotenv import load_dotenv  # noqa: E402

# Load environment variables
load_dotenv()

litellm.suppress_debug_info = True


async def extract(
    text_path: str,
    universe_id: str | None = None,
    name: str = "",
    description: str = "",
    output: str | None = None,
    model: str = ORACLE_MODEL,
    run_timeout: float | None = None,
    verbose: bool = False,
    log_dir: str | None = None,
) -> dict | None:
    """Run the pipeline over a text file against an in-memory repository.

    Args:
        text_path: Path to the decoded source text (UTF-8).
        universe_id: Universe id (defaults to the file stem).
        name: Universe name, used for the universe page.
        description: Universe description, given to the relationship prompt.
        output: JSON output path (defaults to <stem>.lore.json next to the input).
        model: litellm model identifier.
        run_timeout: Optional wall-clock limit for the run, in seconds.
        verbose: Verbose output.
        log_dir: Directory for log files.

    Returns:
        The written payload, or None on failure.
    """
    # Import here to avoid circular imports
    from lore_extractor.core import InMemoryRepository, configure_logging
    from lore_extractor.orchestrator import Orchestrator

    text_path = Path(text_path)
    if not text_path.exists():
        print(f"Error: File not found: {text_path}")
        return None

    if not os.environ.get(API_KEY_ENV_VAR):
        print(f"Error: {API_KEY_ENV_VAR} not set")
        print(f"Set it in .env or export {API_KEY_ENV_VAR}=...")
        return None

    universe_id = universe_id or text_path.stem
    configure_logging(verbose=verbose, log_dir=log_dir, run_label=universe_id)

    print(f"\n{'='*50}")
    print(f"Extracting: {text_path.name}")
    print(f"{'='*50}")
    print(f"  Universe: {universe_id}")
    print(f"  Model: {model.split('/')[-1]}")
    if run_timeout:
        print(f"  Run timeout: {run_timeout}s")
    print()

    text = text_path.read_text(encoding="utf-8", errors="replace")
    repository = InMemoryRepository()
    repository.add_universe(universe_id, name=name or universe_id, description=description)

    orchestrator = Orchestrator(repository, model=model)
    result = await orchestrator.run(universe_id, text, timeout=run_timeout)

    payload = {
        "result": result.to_response(),
        "log_summary": result.log_summary,
        "usage": result.usage,
        "universe": repository.snapshot(universe_id),
    }
    output_file = Path(output) if output else text_path.with_suffix(".lore.json")
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, "w") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, default=str)
    print(f"\n[OUTPUT] {output_file}")

    # Print cost summary
    cost_tracker = orchestrator.context.cost_tracker
    if cost_tracker.call_count > 0:
        print(f"\n{cost_tracker.summary()}")

    if not result.success:
        print(f"\n[ERROR] {result.error['code']}: {result.error['message']}")
        return None
    return payload


def main():
    parser = argparse.ArgumentParser(
        description="Lore extraction pipeline: text in, entity graph out",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lore-extract books/dune.txt
  lore-extract books/dune.txt --universe-id dune --name "Dune" -o out/dune.json
  lore-extract books/dune.txt --run-timeout 600 -v  # bounded run, debug logs
        """,
    )
    parser.add_argument("text_file", help="Path to a UTF-8 text file")
    parser.add_argument("--universe-id", default=None, help="Universe id (default: file stem)")
    parser.add_argument("--name", default="", help="Universe name")
    parser.add_argument("--description", default="", help="Universe description")
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output JSON file (default: <text_file>.lore.json)",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=ORACLE_MODEL,
        help=f"litellm model identifier. Default: {ORACLE_MODEL}",
    )
    parser.add_argument(
        "--run-timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Abort the run after this many seconds (default: no limit)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with DEBUG level logging",
    )
    parser.add_argument("--log-dir", default=None, help="Directory for log files")

    args = parser.parse_args()

    result = asyncio.run(extract(
        text_path=args.text_file,
        universe_id=args.universe_id,
        name=args.name,
        description=args.description,
        output=args.output,
        model=args.model,
        run_timeout=args.run_timeout,
        verbose=args.verbose,
        log_dir=args.log_dir,
    ))

    sys.exit(0 if result else 1)


if __name__ == "__main__":
    main()
