"""Tests for CLI functionality."""

import json

import pytest
from unittest.mock import AsyncMock, Mock, patch

from git_autosquash.ai.template import TemplateMessageProvider
from git_autosquash.cli import (
    create_argument_parser, create_message_provider, display_result,
    main, save_result_to_file, validate_environment
)
from git_autosquash.core.config import AutoSquashConfig
from git_autosquash.core.types import (
    CommitInfo, GitOperationError, SquashOutcome, SquashPlan, SquashResult, SquashState
)


def make_plan():
    head = CommitInfo(hash="f" * 40, parents=["2" * 40], subject="Add tests")
    intermediate = [
        CommitInfo(hash="1" * 40, parents=["b" * 40], subject="Add cache layer"),
        CommitInfo(hash="2" * 40, parents=["1" * 40], subject="Fix cache eviction"),
    ]
    return SquashPlan(branch="feature", base_ref="origin/dev", merge_base="b" * 40,
                      head=head, intermediate=intermediate, message="Squashed: cache work")


class TestArgumentParser:
    """Test CLI argument parsing."""

    def test_squash_defaults(self):
        parser = create_argument_parser()
        args = parser.parse_args(["squash"])

        assert args.command == "squash"
        assert args.dry_run is False
        assert args.expect_head is None
        assert args.message_limit == 1500
        assert args.ai_message is False
        assert args.model == "claude-3-7-sonnet-20250219"
        assert args.verbose is False
        assert args.base_branch is None

    def test_global_options(self):
        parser = create_argument_parser()
        args = parser.parse_args(["-v", "--base-branch", "main", "--remote", "upstream",
                                  "--branch", "feature/x", "squash", "--expect-head", "abc123",
                                  "--dry-run", "--prune-temp"])

        assert args.verbose is True
        assert args.base_branch == "main"
        assert args.remote == "upstream"
        assert args.branch == "feature/x"
        assert args.expect_head == "abc123"
        assert args.dry_run is True
        assert args.prune_temp is True

    def test_rebase_strategy_option(self):
        parser = create_argument_parser()

        assert parser.parse_args(["rebase"]).strategy_option == "theirs"
        assert parser.parse_args(["rebase", "-X", "ours"]).strategy_option == "ours"

    def test_command_is_required(self):
        parser = create_argument_parser()

        with pytest.raises(SystemExit):
            parser.parse_args([])


class TestEnvironmentValidation:
    """Test environment validation."""

    @patch.dict('os.environ', {'ANTHROPIC_API_KEY': 'test-key'})
    def test_valid_environment_with_api_key(self):
        validate_environment(use_ai_message=True)

    @patch.dict('os.environ', {}, clear=True)
    def test_template_messages_need_no_key(self):
        validate_environment(use_ai_message=False)

    @patch.dict('os.environ', {}, clear=True)
    def test_ai_message_without_api_key(self):
        with pytest.raises(SystemExit):
            validate_environment(use_ai_message=True)


class TestMessageProviderCreation:
    """Test message provider selection."""

    def test_template_provider_by_default(self):
        provider = create_message_provider(AutoSquashConfig())

        assert isinstance(provider, TemplateMessageProvider)

    @patch('git_autosquash.cli.ClaudeMessageProvider')
    def test_claude_provider_when_requested(self, mock_claude_class):
        config = AutoSquashConfig(use_ai_message=True)

        provider = create_message_provider(config)

        mock_claude_class.assert_called_once_with(config=config)
        assert provider is mock_claude_class.return_value


class TestResultOutput:
    """Test displaying and saving results."""

    def test_display_squashed_plan(self, capsys):
        result = SquashResult(outcome=SquashOutcome.SQUASHED, branch="feature",
                              plan=make_plan(), message="feature: 2 commits squashed")

        display_result(result)

        out = capsys.readouterr().out
        assert "SQUASH PLAN" in out
        assert "11111111 Add cache layer" in out
        assert "Keeping last commit: ffffffff Add tests" in out
        assert "Squashed: cache work" in out
        assert "squashed: feature: 2 commits squashed" in out

    def test_display_failure_goes_to_stderr(self, capsys):
        result = SquashResult(outcome=SquashOutcome.HEAD_REPLAY_CONFLICT, branch="feature",
                              message="Conflict while replaying last commit",
                              diagnostics="UU cache.py")

        display_result(result)

        captured = capsys.readouterr()
        assert "SQUASH PLAN" not in captured.out
        assert "UU cache.py" in captured.err
        assert "head-replay-conflict: Conflict while replaying last commit" in captured.err

    def test_save_result_to_file(self, tmp_path):
        result = SquashResult(outcome=SquashOutcome.PUSH_REJECTED, branch="feature",
                              state=SquashState.FAILED, plan=make_plan())
        filename = tmp_path / "result.json"

        save_result_to_file(result, str(filename))

        data = json.loads(filename.read_text())
        assert data["outcome"] == "push-rejected"
        assert data["exit_code"] == 4
        assert data["state"] == "failed"
        assert len(data["squashed_commits"]) == 2


class TestMain:
    """Test the main entry point."""

    @patch('git_autosquash.cli.GitOperations')
    @patch('git_autosquash.cli.BranchSquasher')
    def test_squash_exit_code_follows_outcome(self, mock_squasher_class, mock_git_class):
        mock_squasher_class.return_value.run = AsyncMock(return_value=SquashResult(
            outcome=SquashOutcome.REPLAY_CONFLICT, branch="feature", commit_id="1" * 40))

        exit_code = main(["squash", "--expect-head", "abc123"])

        assert exit_code == 2
        mock_squasher_class.return_value.run.assert_awaited_once_with(
            expected_head="abc123", dry_run=False, prune_temp=False)

    @patch('git_autosquash.cli.GitOperations')
    @patch('git_autosquash.cli.BranchSquasher')
    def test_base_branch_reaches_config(self, mock_squasher_class, mock_git_class):
        mock_squasher_class.return_value.run = AsyncMock(return_value=SquashResult(
            outcome=SquashOutcome.NO_ACTION, branch="feature"))

        exit_code = main(["--base-branch", "main", "squash", "--dry-run"])

        assert exit_code == 0
        config = mock_squasher_class.call_args[0][2]
        assert config.base_branch == "main"

    @patch('git_autosquash.cli.GitOperations')
    @patch('git_autosquash.cli.BranchRebaser')
    def test_rebase_command(self, mock_rebaser_class, mock_git_class, tmp_path):
        mock_rebaser_class.return_value.run.return_value = SquashResult(
            outcome=SquashOutcome.REBASE_CONFLICT, branch="feature")
        output = tmp_path / "rebase.json"

        exit_code = main(["rebase", "--save-result", str(output)])

        assert exit_code == 6
        assert json.loads(output.read_text())["outcome"] == "rebase-conflict"
        config = mock_rebaser_class.call_args[0][1]
        assert config.strategy_option == "theirs"

    @patch('git_autosquash.cli.GitOperations')
    def test_not_a_repository(self, mock_git_class, capsys):
        mock_git_class.side_effect = GitOperationError("Not in a git repository")

        exit_code = main(["squash"])

        assert exit_code == 1
        assert "Not in a git repository" in capsys.readouterr().err

    def test_invalid_base_branch(self, capsys):
        exit_code = main(["--base-branch", "bad branch", "squash"])

        assert exit_code == 1
        assert "invalid character" in capsys.readouterr().err

    @patch('git_autosquash.cli.GitOperations', Mock())
    @patch.dict('os.environ', {}, clear=True)
    def test_ai_message_requires_api_key(self):
        with pytest.raises(SystemExit):
            main(["squash", "--ai-message"])
