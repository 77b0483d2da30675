import importlib.util
import os
import re

from scripts.utils import log
from scripts.utils.deploy_args import DeployArgs
from scripts.utils.migration import Migration


class MigrationError(Exception):
    """
    Error representing an exception that occurs while executing a migration.
    Provides a `failure_timestamp` to identify the migration in which the
    failure occurred, which can be used to resume execution later on.
    """

    def __init__(
        self, failure_timestamp, message="An error occurred while executing migration"
    ):
        self.failure_timestamp = failure_timestamp
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return f"{self.message}. Timestamp of failed migration script: {self.failure_timestamp}"


def load_migration(filename):
    """
    Imports a migration script by path and returns its `migrate` function.
    Script filenames start with digits, so they can't be imported by name.
    """
    spec = importlib.util.spec_from_file_location('migration', filename)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.migrate


def _as_int(timestamp):
    # "0" and "" mean no bound, as the cli passes them through as defaults
    if timestamp is None or str(timestamp) in ("", "0"):
        return None
    return int(timestamp)


class MigrationRunner:
    """
    Facilitates the execution of migration scripts.
    """

    def __init__(self, migrations_dir, history_dir, files):
        self.migrations_dir = migrations_dir
        self.history_dir = history_dir
        self.files = files
        self.gas = 0

    def run(self, deploy_args: DeployArgs, start_timestamp=None, end_timestamp=None, continue_running=True):
        """
        Run migrations starting at `start_timestamp`. If no start timestamp is provided,
        the history directory is checked for existing timestamps, and migrations will
        start after the latest recorded manifest timestamp.

        Each migration's `migrate` function is called with a `Migration`, which
        exposes the contracts recorded in the manifests of previous migrations.
        Manifests written by each migration are stored in the history directory.
        For shared deployments, they should be included in version control.

        To make it easy for other utilities to obtain the current manifest, a manifest
        named `current-manifest.json` is kept up to date in the history directory,
        merging the manifests of every migration run so far.
        """
        for migrate, timestamp, prev_timestamp in self._migrations(start_timestamp, end_timestamp):
            log.h1(f"Running migration with timestamp {timestamp}...")
            try:
                migration = Migration(
                    deploy_args, self.files, timestamp, prev_timestamp, self.history_dir
                )
                migrate(migration)
                self.gas += migration.end()
            except Exception as exception:
                log.error(f"Migration {timestamp} failed: {exception}")
                raise MigrationError(timestamp) from exception

            if not continue_running:
                break

        return self.gas

    def _migrations(self, start_timestamp=None, end_timestamp=None):
        # Generator that returns a `(migrate, timestamp, prev_timestamp)` tuple for
        # each migration script, starting ON OR AFTER `start_timestamp`.
        #
        # If no start timestamp is provided, the history directory is checked for existing
        # timestamps, and migrations will start after the latest recorded manifest timestamp.

        if _as_int(start_timestamp) is None:
            migrations = self._filtered_migration_filenames(
                self._latest_manifest_timestamp(), end_timestamp, inclusive=False
            )
        else:
            migrations = self._filtered_migration_filenames(
                start_timestamp, end_timestamp)

        for filename, timestamp, prev_timestamp in migrations:
            yield load_migration(filename), timestamp, prev_timestamp

    def _filtered_migration_filenames(self, start_timestamp, end_timestamp, inclusive=True):
        # Get a list of migration scripts having timestamps greater than or equal
        # to the value of `start_timestamp`, and not after `end_timestamp`.
        #
        # If `inclusive` == False, only timestamps AFTER the start timestamp will be
        # included.
        #
        # Returns a list of `(filename, timestamp, prev_timestamp)` tuples.

        timestamped_migrations = []
        for file in os.listdir(self.migrations_dir):
            # timestamp of the filename is the initial string of numbers,
            # up to the first non-digit character
            match = re.fullmatch(r"(\d+).*\.py", file)
            if match:
                timestamp = match.group(1)
                filename = os.path.join(self.migrations_dir, file)
                timestamped_migrations.append((filename, timestamp))

        # sort order of `os.listdir` is not guaranteed
        timestamped_migrations.sort(key=lambda x: int(x[1]))

        start = _as_int(start_timestamp)
        end = _as_int(end_timestamp)

        migrations = []
        prev_timestamp = None
        for filename, timestamp in timestamped_migrations:
            current = int(timestamp)

            if end is not None and current > end:
                break
            if start is None or current > start or (inclusive and current == start):
                migrations.append((filename, timestamp, prev_timestamp))
            prev_timestamp = timestamp

        return migrations

    def _latest_manifest_timestamp(self):
        # get the timestamp of the most recently executed migration
        # (returns None if no migrations have been run)

        latest_timestamp = None

        os.makedirs(self.history_dir, exist_ok=True)

        for file in os.listdir(self.history_dir):
            # `current-manifest.json` is not numbered and is skipped
            match = re.fullmatch(r"(\d+)-manifest\.json", file)
            if match:
                timestamp = match.group(1)
                if latest_timestamp is None or int(timestamp) > int(latest_timestamp):
                    latest_timestamp = timestamp

        return latest_timestamp
