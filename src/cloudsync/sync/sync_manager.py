"""Runs the sync for every configured remote."""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..backends import LocalBackend, StorageBackend, create_remote_backend
from ..config.settings import CredentialsConfig, RemoteConfig, SyncConfig
from ..errors import CloudSyncError, ConfigurationError, PlanAbortedError
from .baseline import BaselineRegistry
from .classifier import summarize
from .models import Action
from .progress import ProgressSink
from .synchronizer import Synchronizer

# Module logger
logger = logging.getLogger(__name__)

BackendFactory = Callable[[RemoteConfig, CredentialsConfig, Any], StorageBackend]


class SyncManager:
    """Main sync manager that drives one run across all enabled remotes."""

    def __init__(
        self,
        config: SyncConfig,
        credentials: Optional[CredentialsConfig] = None,
        registry: Optional[BaselineRegistry] = None,
        backend_factory: Optional[BackendFactory] = None,
        progress_sink: Optional[ProgressSink] = None,
    ):
        """Initialize sync manager.

        Args:
            config: Sync configuration
            credentials: Credentials for the remotes
            registry: Baseline registry shared by every component of the run
            backend_factory: Builds a backend for a remote configuration
                (defaults to ``create_remote_backend``)
            progress_sink: Receives progress events while plans execute
        """
        self.config = config
        self.credentials = credentials or CredentialsConfig()
        self.registry = registry or BaselineRegistry(config.state_path)
        self.backend_factory = backend_factory or create_remote_backend
        self.progress_sink = progress_sink
        self.local = LocalBackend(
            config.local_root,
            hash_cache=self.registry.hash_cache(),
            ignore=config.sync_options.ignore,
            hash_workers=config.sync_options.hash_workers,
            state_dir=config.state_path,
        )
        self._remotes: Dict[str, StorageBackend] = {}

    def get_backend(self, remote_config: RemoteConfig) -> StorageBackend:
        """Backend for a remote, built once per manager."""
        backend = self._remotes.get(remote_config.name)
        if backend is None:
            backend = self.backend_factory(remote_config, self.credentials, self.config.sync_options)
            self._remotes[remote_config.name] = backend
        return backend

    def _select_remotes(self, remote_name: Optional[str] = None) -> List[RemoteConfig]:
        if remote_name is None:
            return self.config.get_enabled_remotes()
        remote = self.config.get_remote_by_name(remote_name)
        if remote is None:
            raise ConfigurationError("remote", f"no remote named {remote_name!r}")
        return [remote]

    def synchronizer_for(self, remote_config: RemoteConfig) -> Synchronizer:
        return Synchronizer(
            self.local,
            self.get_backend(remote_config),
            self.registry.sync_baseline(remote_config.name),
            self.registry.local_baseline(remote_config.name),
            failure_policy=self.config.sync_options.failure_policy,
            progress_sink=self.progress_sink,
            is_ignored=self.local.is_ignored,
        )

    def plan_remote(self, remote_name: str) -> List[Action]:
        """Classify one remote without executing anything."""
        remote_config = self._select_remotes(remote_name)[0]
        return self.synchronizer_for(remote_config).plan()

    def sync_remote(self, remote_config: RemoteConfig, dry_run: bool = False) -> Dict[str, Any]:
        """Sync a single remote.

        Args:
            remote_config: Remote to sync
            dry_run: Only plan, do not execute

        Returns:
            Dictionary with sync results
        """
        logger.info(f"Starting sync with remote: {remote_config.name}")
        start_time = datetime.now()

        results = {
            'remote': remote_config.name,
            'location': remote_config.location,
            'start_time': start_time,
            'status': 'started',
            'planned': 0,
            'actions': {},
            'bytes_transferred': 0,
            'errors': []
        }

        try:
            sync_result = self.synchronizer_for(remote_config).run(dry_run=dry_run)
            results['planned'] = len(sync_result.plan)
            results['actions'] = {kind.value: count for kind, count in summarize(sync_result.plan).items()}
            if dry_run:
                results['status'] = 'planned'
            else:
                results['bytes_transferred'] = sync_result.report.bytes_transferred
                results['status'] = 'completed'

        except PlanAbortedError as e:
            logger.error(str(e))
            results['status'] = 'failed'
            if e.report is not None:
                results['planned'] = e.report.planned
                results['bytes_transferred'] = e.report.bytes_transferred
            results['errors'].extend(str(failure) for failure in e.failures)

        except Exception as e:
            logger.error(f"Sync with {remote_config.name} failed: {e}")
            results['status'] = 'failed'
            results['errors'].append(str(e))

        finally:
            results['end_time'] = datetime.now()
            results['duration'] = (results['end_time'] - start_time).total_seconds()
            logger.info(f"Sync with {remote_config.name} finished ({results['status']}) "
                        f"in {results['duration']:.2f} seconds")

        return results

    def run(self, remote_name: Optional[str] = None, dry_run: bool = False) -> List[Dict[str, Any]]:
        """Sync every enabled remote (or just ``remote_name``).

        A failing remote does not stop the others. Each remote keeps its own
        local baseline, written by its synchronizer once its plan committed,
        so syncing a subset of the remotes never hides local edits from the
        rest. The shared hash cache is refreshed after any non-dry run.

        Returns:
            List of per-remote results
        """
        remotes = self._select_remotes(remote_name)
        logger.info(f"Syncing {self.config.local_root} with {len(remotes)} remote(s)")

        results = [self.sync_remote(remote, dry_run=dry_run) for remote in remotes]

        if dry_run or not results:
            return results
        failed = [r['remote'] for r in results if r['status'] == 'failed']
        if failed:
            logger.warning(f"Local baseline left unchanged for: {', '.join(failed)}")
        try:
            self.registry.hash_cache().write(self.local.list_files())
        except CloudSyncError as e:
            logger.warning(f"Could not refresh the local hash cache: {e}")
        return results

    def reset_remote(self, remote_name: str):
        """Forget everything known about one remote.

        Both baselines of the endpoint are cleared, so the next sync treats
        it like a first sync: nothing is deleted and divergent files merge.

        Raises:
            ConfigurationError: If no remote has that name
            BaselineError: If a baseline could not be written
        """
        remote = self._select_remotes(remote_name)[0]
        self.registry.sync_baseline(remote.name).clear()
        self.registry.local_baseline(remote.name).clear()
        logger.info(f"Baselines for {remote.name} reset")

    def test_connections(self) -> Dict[str, bool]:
        """Test all configured connections.

        Returns:
            Dictionary mapping remote names to connection status
        """
        results = {'local': self.local.test_connection()}
        for remote in self.config.remotes:
            try:
                results[remote.name] = self.get_backend(remote).test_connection()
            except Exception as e:
                logger.error(f"Could not set up {remote.name}: {e}")
                results[remote.name] = False
        return results

    def status(self) -> List[Dict[str, Any]]:
        """Baseline information for every configured remote."""
        rows = []
        for remote in self.config.remotes:
            baseline = self.registry.sync_baseline(remote.name)
            baseline.read()
            rows.append({
                'remote': remote.name,
                'type': remote.type.value,
                'location': remote.location,
                'enabled': remote.enabled,
                'files': len(baseline),
                'last_sync': baseline.last_sync,
            })
        return rows

    def get_sync_summary(self, results: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Generate summary of sync results.

        Args:
            results: List of per-remote results

        Returns:
            Summary dictionary
        """
        return {
            'total_remotes': len(results),
            'successful_remotes': len([r for r in results if r.get('status') in ('completed', 'planned')]),
            'failed_remotes': len([r for r in results if r.get('status') == 'failed']),
            'total_actions': sum(r.get('planned', 0) for r in results),
            'total_bytes_transferred': sum(r.get('bytes_transferred', 0) for r in results),
            'total_errors': sum(len(r.get('errors', [])) for r in results),
            'sync_time': datetime.now().isoformat()
        }
