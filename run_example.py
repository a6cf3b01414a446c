#!/usr/bin/env python3
"""
Example script demonstrating how to use CloudSync from Python.

This script shows how to:
1. Load the configuration and credentials
2. Initialize the sync manager
3. Preview the planned changes for every remote
4. Handle errors and logging

Nothing is changed unless --apply is passed.
"""

import sys
from pathlib import Path

# Add src to Python path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent / "src"))

from cloudsync.config.settings import CredentialsConfig, SyncConfig
from cloudsync.errors import CloudSyncError
from cloudsync.sync.classifier import summarize
from cloudsync.sync.sync_manager import SyncManager
from cloudsync.utils.logging import setup_logging


def main(apply: bool = False) -> int:
    """Main example function."""
    print("CloudSync - Example Run")
    print("=" * 60)

    logger = setup_logging(log_level="INFO", log_file=Path("logs") / "example_run.log")

    config_path = Path("config/config.yaml")
    credentials_path = Path("config/credentials.yaml")

    if not config_path.exists():
        print("Configuration file not found!")
        print("Run the following command to create one:")
        print("   python run_cli.py init")
        return 1

    try:
        sync_config = SyncConfig.from_yaml(config_path)
        creds_config = CredentialsConfig.from_yaml(credentials_path).merged_with(CredentialsConfig.from_env())
        print(f"Loaded configuration with {len(sync_config.remotes)} remote(s)")
        print(f"Local folder: {sync_config.local_root}")

        manager = SyncManager(sync_config, creds_config)

        print("\nTesting connections...")
        for endpoint, ok in manager.test_connections().items():
            print(f"   {'ok  ' if ok else 'FAIL'} {endpoint}")

        print("\nPlanned changes:")
        for remote in sync_config.get_enabled_remotes():
            plan = manager.plan_remote(remote.name)
            counts = summarize(plan)
            if not counts:
                print(f"   {remote.name}: up to date")
                continue
            print(f"   {remote.name}: " + ", ".join(f"{k.value}={v}" for k, v in counts.items()))
            for action in plan[:10]:
                print(f"     • {action.kind.value:<13} {action.identity}")

        if apply:
            print("\nSyncing...")
            for result in manager.run():
                print(f"   {result['remote']}: {result['status']} ({result['planned']} change(s))")
                for error in result['errors'][:3]:
                    print(f"     • {error}")

    except CloudSyncError as e:
        print(f"Error during example run: {e}")
        logger.exception("Example run failed")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main(apply="--apply" in sys.argv[1:]))
