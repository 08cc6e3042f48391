import os
import shutil
import logging
from datetime import datetime, timezone

from arcshelf.constants import BACKUP_DIR_NAME, BACKUP_PREFIX
from arcshelf.utils import now_utc

logger = logging.getLogger('main')


class BackupManager:
    """Keeps rotating copies of the library database next to the config"""

    def __init__(self, config_dir, keep=4):
        self.config_dir = config_dir
        self.keep = keep
        self.backup_dir = os.path.join(config_dir, BACKUP_DIR_NAME)
        os.makedirs(self.backup_dir, exist_ok=True)

    def create_backup(self, db_file):
        """Copy the database to a timestamped backup, then drop the oldest ones"""
        if not os.path.exists(db_file):
            logger.info(f"No library database at {db_file} yet, skipping backup")
            return False, None

        timestamp = now_utc().strftime('%Y%m%d-%H%M%S')
        _, ext = os.path.splitext(db_file)
        backup_path = os.path.join(self.backup_dir, f'{BACKUP_PREFIX}{timestamp}{ext}')
        try:
            shutil.copy2(db_file, backup_path)
        except OSError as e:
            logger.error(f"Failed to copy library to backup: {e}")
            return False, None

        logger.info(f"Library copied to backup: {backup_path}")
        self.cleanup_old_backups()
        return True, backup_path

    def _backup_files(self):
        files = []
        for filename in os.listdir(self.backup_dir):
            filepath = os.path.join(self.backup_dir, filename)
            if os.path.isfile(filepath) and filename.startswith(BACKUP_PREFIX):
                files.append(filepath)
        return files

    def cleanup_old_backups(self, keep=None):
        """Keep only the most recent N backups"""
        keep = keep or self.keep
        files = self._backup_files()
        # Name carries the timestamp, mtime breaks ties within the same second
        files.sort(key=lambda x: (os.path.basename(x), os.path.getmtime(x)), reverse=True)

        for old_file in files[keep:]:
            try:
                os.remove(old_file)
                logger.info(f"Removed old backup: {os.path.basename(old_file)}")
            except OSError as e:
                logger.error(f"Failed to remove old backup {old_file}: {e}")

    def list_backups(self):
        """List all available backups, newest first"""
        backups = []
        for filepath in self._backup_files():
            stat = os.stat(filepath)
            backups.append({
                'filename': os.path.basename(filepath),
                'path': filepath,
                'size': stat.st_size,
                'created': datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
            })

        backups.sort(key=lambda x: x['filename'], reverse=True)
        return backups
