import subprocess
from unittest.mock import Mock, patch

from scripts import run_tests_with_gating as gating_script


class TestTimeoutGating:
    """Tests for the gated test runner."""

    def test_command_includes_timeout_and_coverage(self):
        cmd = gating_script.TestGating(timeout=60).build_command(coverage_threshold=85)

        assert cmd[1:3] == ['-m', 'pytest']
        assert '--timeout' in cmd and cmd[cmd.index('--timeout') + 1] == '60'
        assert '--cov=contextpages' in cmd
        assert cmd[cmd.index('--cov-fail-under') + 1] == '85'
        assert cmd[-1] == 'contextpages/tests/'

    def test_command_without_threshold(self):
        cmd = gating_script.TestGating().build_command('contextpages/tests/application')

        assert '--cov-fail-under' not in cmd
        assert cmd[-1] == 'contextpages/tests/application'

    @patch('scripts.run_tests_with_gating.subprocess.run')
    def test_run_returns_pytest_exit_code(self, mock_run):
        mock_run.return_value = Mock(returncode=1)

        assert gating_script.TestGating(timeout=5).run() == 1
        assert mock_run.call_args.kwargs['timeout'] == 35

    @patch('scripts.run_tests_with_gating.subprocess.run')
    def test_run_timeout_exit_code(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd='pytest', timeout=5)

        assert gating_script.TestGating(timeout=5).run() == 124
