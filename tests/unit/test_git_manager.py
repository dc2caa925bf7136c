"""
Unit tests for GitManager source acquisition.
"""

from dataclasses import replace
from unittest.mock import patch

import pytest

from proxydeploy.config.settings import ExitCode
from proxydeploy.core.git_manager import GitManager, build_auth_url
from proxydeploy.exceptions import AcquisitionError, DescriptorMissingError

TOKEN = "ghp_1234567890abcdef"


def _git_calls(mock_stream):
    return [call[0][0] for call in mock_stream.call_args_list]


class TestBuildAuthUrl:
    def test_https_with_token(self):
        assert build_auth_url("https://github.com/a/b.git", TOKEN) == \
            f"https://{TOKEN}@github.com/a/b.git"

    def test_ssh_url_unchanged(self):
        assert build_auth_url("git@github.com:a/b.git", TOKEN) == "git@github.com:a/b.git"

    def test_no_token_unchanged(self):
        assert build_auth_url("https://github.com/a/b.git", None) == "https://github.com/a/b.git"


class TestGitManager:
    @pytest.fixture
    def manager(self, deployment_config):
        return GitManager(deployment_config)

    @patch("proxydeploy.core.git_manager.execute_with_streaming")
    def test_clone_when_absent(self, mock_stream, manager, deployment_config):
        mock_stream.return_value = (0, [], [])

        path = manager.acquire()

        assert path == deployment_config.source_dir
        assert _git_calls(mock_stream) == [[
            "git", "clone", "-b", "main", deployment_config.repo_url, str(path),
        ]]

    @patch("proxydeploy.core.git_manager.execute_with_streaming")
    def test_clone_with_token_restores_plain_remote(self, mock_stream, deployment_config):
        mock_stream.return_value = (0, [], [])
        config = replace(deployment_config, token=TOKEN)

        GitManager(config).acquire()

        calls = _git_calls(mock_stream)
        assert calls[0][4] == "https://ghp_1234567890abcdef@github.com/acme/hng13-stage0-devops.git"
        assert calls[1] == ["git", "-C", str(config.source_dir),
                            "remote", "set-url", "origin", config.repo_url]

    @patch("proxydeploy.core.git_manager.execute_with_streaming")
    def test_update_existing_checkout(self, mock_stream, manager, deployment_config):
        mock_stream.return_value = (0, [], [])
        (deployment_config.source_dir / ".git").mkdir(parents=True)

        manager.acquire()

        calls = [call[3:] for call in _git_calls(mock_stream)]
        assert calls == [
            ["fetch", "--all", "--prune"],
            ["checkout", "main"],
            ["reset", "--hard", "origin/main"],
        ]

    @patch("proxydeploy.core.git_manager.execute_with_streaming")
    def test_update_with_token_restores_remote_after_failed_fetch(self, mock_stream, deployment_config):
        config = replace(deployment_config, token=TOKEN)
        (config.source_dir / ".git").mkdir(parents=True)
        mock_stream.side_effect = [
            (0, [], []),
            (128, [], ["fatal: unable to access"]),
            (0, [], []),
        ]

        with pytest.raises(AcquisitionError):
            GitManager(config).acquire()

        calls = [call[3:] for call in _git_calls(mock_stream)]
        assert calls[0] == ["remote", "set-url", "origin", f"https://{TOKEN}@github.com/acme/hng13-stage0-devops.git"]
        assert calls[1] == ["fetch", "--all", "--prune"]
        assert calls[2] == ["remote", "set-url", "origin", config.repo_url]

    @patch("proxydeploy.core.git_manager.execute_with_streaming")
    def test_clone_failure(self, mock_stream, manager):
        mock_stream.return_value = (128, [], ["fatal: Remote branch nope not found"])

        with pytest.raises(AcquisitionError) as exc_info:
            manager.acquire()

        assert exc_info.value.exit_code == ExitCode.ACQUISITION
        assert "Remote branch nope not found" in exc_info.value.message

    @patch("proxydeploy.core.git_manager.execute_with_streaming")
    def test_git_not_installed(self, mock_stream, manager):
        mock_stream.side_effect = FileNotFoundError("git")
        with pytest.raises(AcquisitionError, match="git command not found"):
            manager.acquire()

    @patch("proxydeploy.core.git_manager.execute_with_streaming")
    def test_non_checkout_directory_refused(self, mock_stream, manager, deployment_config):
        deployment_config.source_dir.mkdir(parents=True)
        (deployment_config.source_dir / "notes.txt").write_text("keep me")

        with pytest.raises(AcquisitionError, match="not a git checkout"):
            manager.acquire()
        mock_stream.assert_not_called()


class TestEnsureDescriptor:
    def test_dockerfile_found(self, deployment_config):
        deployment_config.source_dir.mkdir(parents=True)
        (deployment_config.source_dir / "Dockerfile").write_text("FROM nginx:alpine\n")
        assert GitManager(deployment_config).ensure_descriptor() == "Dockerfile"

    def test_compose_file_found(self, deployment_config):
        deployment_config.source_dir.mkdir(parents=True)
        (deployment_config.source_dir / "docker-compose.yml").write_text("services: {}\n")
        assert GitManager(deployment_config).ensure_descriptor() == "docker-compose.yml"

    def test_missing_descriptor(self, deployment_config):
        deployment_config.source_dir.mkdir(parents=True)
        with pytest.raises(DescriptorMissingError) as exc_info:
            GitManager(deployment_config).ensure_descriptor()
        assert exc_info.value.exit_code == ExitCode.DESCRIPTOR
