"""Command line interface for the auto-squash tool."""

from pathlib import Path
from typing import Optional
import argparse
import asyncio
import json
import logging
import os
import sys

from .ai.claude import ClaudeMessageProvider
from .ai.template import TemplateMessageProvider
from .core.config import AutoSquashConfig
from .core.types import AutoSquashError, SquashOutcome, SquashResult
from .git.operations import GitOperations
from .rebaser import BranchRebaser
from .squasher import BranchSquasher

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    # Reduce noise from external libraries
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('claude_code_sdk').setLevel(logging.WARNING)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command line argument parser."""
    parser = argparse.ArgumentParser(
        prog='git-autosquash',
        description='Squash or rebase a feature branch against its base branch',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s squash --dry-run             # Show what would be squashed
  %(prog)s squash                       # Squash and force-push (with lease)
  %(prog)s squash --expect-head abc123  # Refuse to run unless HEAD is abc123
  %(prog)s --base-branch main squash    # Squash against origin/main
  %(prog)s rebase                       # Rebase onto origin/dev, preferring upstream

Exit codes:
  0 success (squashed, nothing to do, or planned)   1 generic failure
  2 conflict replaying a commit   3 conflict replaying the last commit
  4 push rejected   5 branch needs rebase   6 rebase conflict

Environment Variables:
  BASE_BRANCH             Base branch (default: dev)
  REMOTE                  Remote name (default: origin)
  GITHUB_HEAD_REF         Branch name when running in GitHub Actions
  ANTHROPIC_API_KEY       Required for --ai-message
  GIT_AUTOSQUASH_VERBOSE  Set to enable debug logging
        """
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--repo',
        type=Path,
        help='Path to the git repository (default: current directory)',
        metavar='DIR'
    )

    parser.add_argument(
        '--base-branch',
        help='Base branch to squash or rebase against (default: $BASE_BRANCH or dev)',
        metavar='BRANCH'
    )

    parser.add_argument(
        '--remote',
        help='Remote to fetch from and push to (default: $REMOTE or origin)',
        metavar='REMOTE'
    )

    parser.add_argument(
        '--branch',
        help='Branch name to push to (default: $GITHUB_HEAD_REF or the checked-out branch)',
        metavar='BRANCH'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    squash = subparsers.add_parser(
        'squash',
        help='Squash all commits except the last into one and force-push with lease'
    )
    squash.add_argument(
        '--expect-head',
        help='Only proceed if HEAD resolves to this commit',
        metavar='SHA'
    )
    squash.add_argument(
        '--dry-run',
        action='store_true',
        help='Show the squash plan without rewriting anything'
    )
    squash.add_argument(
        '--prune-temp',
        action='store_true',
        help='Delete temporary branches left behind by interrupted runs'
    )
    squash.add_argument(
        '--save-result',
        help='Save the result to a JSON file',
        metavar='FILE'
    )
    squash.add_argument(
        '--list-subjects',
        action='store_true',
        help='List the squashed commit subjects in the squashed commit body'
    )
    squash.add_argument(
        '--message-limit',
        type=int,
        default=1500,
        help='Maximum squashed commit message length in characters (default: %(default)s)',
        metavar='CHARS'
    )

    ai_group = squash.add_argument_group('ai messages')
    ai_group.add_argument(
        '--ai-message',
        action='store_true',
        help='Ask Claude to write the squashed commit message'
    )
    ai_group.add_argument(
        '--model',
        default='claude-3-7-sonnet-20250219',
        help='Claude model to use (default: %(default)s)',
        metavar='MODEL'
    )

    rebase = subparsers.add_parser(
        'rebase',
        help='Rebase onto the fetched base branch, aborting on conflict'
    )
    rebase.add_argument(
        '--strategy-option', '-X',
        default='theirs',
        help='Merge strategy option passed to git rebase -X (default: %(default)s)',
        metavar='OPTION'
    )
    rebase.add_argument(
        '--save-result',
        help='Save the result to a JSON file',
        metavar='FILE'
    )

    return parser


def validate_environment(use_ai_message: bool) -> None:
    """Validate required environment variables."""
    if use_ai_message and not os.environ.get('ANTHROPIC_API_KEY'):
        print("Error: ANTHROPIC_API_KEY environment variable not set", file=sys.stderr)
        print("Either set the API key or drop --ai-message", file=sys.stderr)
        sys.exit(1)


def create_message_provider(config: AutoSquashConfig):
    """Create the squashed-commit message provider for this run."""
    if config.use_ai_message:
        logger.info("Using Claude for the squashed commit message")
        return ClaudeMessageProvider(config=config)
    return TemplateMessageProvider(config)


def save_result_to_file(result: SquashResult, filename: str) -> None:
    """Save a result to JSON file."""
    with open(filename, 'w') as f:
        json.dump(result.to_dict(), f, indent=2)

    logger.info("Result saved to %s", filename)


def display_result(result: SquashResult) -> None:
    """Display the outcome of a run to the user."""
    plan = result.plan
    if plan is not None and result.outcome in (SquashOutcome.PLANNED, SquashOutcome.SQUASHED):
        print("\n" + "=" * 80)
        print("SQUASH PLAN")
        print("=" * 80)
        print(f"Branch: {plan.branch} (base: {plan.base_ref})")
        print(f"Merge-base: {plan.merge_base[:8]}")
        print(f"\nSquashing {len(plan.intermediate)} commits:")
        for commit in plan.intermediate:
            print(f"  {commit.short_hash} {commit.subject}")
        print(f"Keeping last commit: {plan.head.short_hash} {plan.head.subject}")
        print("\nCommit message:")
        print("-" * 40)
        print(plan.message)
        print("-" * 40)

    if result.diagnostics:
        print("\nRepository state:", file=sys.stderr)
        print(result.diagnostics, file=sys.stderr)

    stream = sys.stdout if result.outcome.is_success else sys.stderr
    print(f"\n{result.outcome.value}: {result.message}", file=stream)


async def async_main(args: Optional[list] = None) -> int:
    """Async main entry point for the CLI."""
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    env_verbose = bool(os.environ.get('GIT_AUTOSQUASH_VERBOSE', ""))
    setup_logging(parsed_args.verbose or env_verbose)

    try:
        config = AutoSquashConfig.from_cli_args(parsed_args)
        logger.debug("Configuration: %s", config)

        git_ops = GitOperations(repo_path=parsed_args.repo)

        if parsed_args.command == 'squash':
            validate_environment(config.use_ai_message)
            squasher = BranchSquasher(git_ops, create_message_provider(config), config)
            result = await squasher.run(
                expected_head=parsed_args.expect_head,
                dry_run=parsed_args.dry_run,
                prune_temp=parsed_args.prune_temp,
            )
        else:
            result = BranchRebaser(git_ops, config).run()

        display_result(result)
        if parsed_args.save_result:
            save_result_to_file(result, parsed_args.save_result)

        return result.exit_code

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except AutoSquashError as e:
        logger.error("Auto-squash error: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return e.outcome.exit_code

    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    return asyncio.run(async_main(args))


if __name__ == '__main__':
    sys.exit(main())
