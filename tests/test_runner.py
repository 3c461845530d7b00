"""Tests for runner.py - Orchestrator."""

import os
from unittest.mock import MagicMock, patch

from executor import BackendInitError, FeatureExecutor, PlanError
from features import Feature
from reporting import FeatureResult
from runner import Orchestrator


def _features(*names):
    return [Feature(name=n, dir=f'./{n}', state_file=f'{n}.tfstate') for n in names]


def _ok(feature):
    return FeatureResult(name=feature.name, dir=feature.dir, status='applied')


def _mock_executor(side_effect=None):
    executor = MagicMock()
    executor.tool = 'terraform'
    executor.execute.side_effect = side_effect or _ok
    return executor


class TestOrchestrator:
    """Tests for Orchestrator.run()."""

    def test_executes_every_feature_in_order(self):
        executor = _mock_executor()
        features = _features('c', 'a', 'b')

        assert Orchestrator('dev', features, executor).run() is True

        assert [call[0][0].name for call in executor.execute.call_args_list] == ['c', 'a', 'b']

    def test_failure_does_not_abort_batch(self, caplog):
        def execute(feature):
            if feature.name == 'a':
                raise BackendInitError(feature.dir, 'exit status 1')
            return _ok(feature)

        executor = _mock_executor(execute)
        orchestrator = Orchestrator('dev', _features('a', 'b', 'c'), executor)

        assert orchestrator.run() is False

        assert executor.execute.call_count == 3
        statuses = [r.status for r in orchestrator.report.results]
        assert statuses == ['failed', 'applied', 'applied']
        failed = orchestrator.report.results[0]
        assert failed.step == 'backend init'
        assert 'backend init failed in ./a' in caplog.text

    def test_every_feature_failing_still_runs_all(self):
        def execute(feature):
            raise PlanError(feature.dir, 'exit status 1')

        executor = _mock_executor(execute)
        orchestrator = Orchestrator('dev', _features('a', 'b'), executor)

        assert orchestrator.run() is False
        assert executor.execute.call_count == 2
        assert len(orchestrator.report.failed) == 2

    def test_unexpected_exception_fails_only_that_feature(self, caplog):
        def execute(feature):
            if feature.name == 'a':
                raise RuntimeError('boom')
            return _ok(feature)

        executor = _mock_executor(execute)
        orchestrator = Orchestrator('dev', _features('a', 'b'), executor)

        assert orchestrator.run() is False
        assert [r.status for r in orchestrator.report.results] == ['failed', 'applied']
        assert orchestrator.report.results[0].message == 'boom'
        assert 'raised exception' in caplog.text

    def test_skip(self):
        executor = _mock_executor()
        orchestrator = Orchestrator('dev', _features('a', 'b', 'c'), executor, skip=['b'])

        assert orchestrator.run() is True
        assert [call[0][0].name for call in executor.execute.call_args_list] == ['a', 'c']
        assert [r.status for r in orchestrator.report.results] == ['applied', 'skipped', 'applied']

    def test_empty_catalog(self):
        executor = _mock_executor()
        orchestrator = Orchestrator('dev', [], executor)

        assert orchestrator.run() is True
        executor.execute.assert_not_called()

    def test_report_timestamps(self):
        orchestrator = Orchestrator('dev', _features('a'), _mock_executor())
        orchestrator.run()
        assert orchestrator.report.started_at is not None
        assert orchestrator.report.finished_at is not None


class TestOrchestratorWithExecutor:
    """Run the Orchestrator against a real FeatureExecutor."""

    def test_missing_directory_then_success(self, infra_dir, backend, decline):
        """A missing feature dir fails that feature only; cwd is unchanged."""
        features = [
            Feature(name='ghost', dir='infra/features/ghost', state_file='ghost.tfstate'),
            Feature(name='network', dir='infra/features/network', state_file='network.tfstate'),
        ]
        executor = FeatureExecutor(env_name='dev', backend=backend, confirmation=decline, base_dir=infra_dir)
        orchestrator = Orchestrator('dev', features, executor)
        before = os.getcwd()

        with patch('executor.run_command', return_value=(0, '', '')) as mock_cmd:
            orchestrator.run()

        assert os.getcwd() == before
        assert mock_cmd.call_count == 2
        results = orchestrator.report.results
        assert results[0].status == 'failed'
        assert results[0].step == 'directory change'
        assert results[1].status == 'declined'


class TestPreview:
    """Tests for dry-run preview."""

    def test_dry_run_runs_nothing(self, infra_dir, backend, decline, capsys):
        features = [
            Feature(name='network', dir='infra/features/network', state_file='network.tfstate'),
            Feature(name='ghost', dir='infra/features/ghost', state_file='ghost.tfstate'),
        ]
        executor = FeatureExecutor(env_name='dev', backend=backend, confirmation=decline, base_dir=infra_dir)
        orchestrator = Orchestrator('dev', features, executor, dry_run=True, skip=['ghost'])

        with patch('executor.run_command') as mock_cmd:
            assert orchestrator.run() is True

        mock_cmd.assert_not_called()
        assert decline.asked == []
        out = capsys.readouterr().out
        assert 'DRY-RUN' in out
        assert '-backend-config=key=network.tfstate' in out
        assert '[SKIP] ghost' in out
        assert [r.status for r in orchestrator.report.results] == ['planned', 'skipped']

    def test_dry_run_flags_missing_dir(self, infra_dir, backend, decline, capsys):
        features = [Feature(name='ghost', dir='infra/features/ghost', state_file='ghost.tfstate')]
        executor = FeatureExecutor(env_name='dev', backend=backend, confirmation=decline, base_dir=infra_dir)
        Orchestrator('dev', features, executor, dry_run=True).run()
        assert '[MISS] ghost' in capsys.readouterr().out

    def test_dry_run_flags_empty_dir(self, infra_dir, backend, decline, capsys):
        features = [Feature(name='nodir', dir='', state_file='x.tfstate')]
        executor = FeatureExecutor(env_name='dev', backend=backend, confirmation=decline, base_dir=infra_dir)
        Orchestrator('dev', features, executor, dry_run=True).run()
        assert '[MISS] nodir' in capsys.readouterr().out
