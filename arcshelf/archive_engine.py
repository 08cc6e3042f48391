"""
Archive engine - materializes archives on the local filesystem

The deployment controller only talks to an engine through extract/remove, so
any object with those two methods can stand in for LocalArchiveEngine.
"""

import lzma
import os
import shutil
import logging
import tarfile
import zipfile

import py7zr
import rarfile
from py7zr.exceptions import ArchiveError, PasswordRequired

from arcshelf.constants import RAR_EXTENSIONS, SEVENZIP_EXTENSIONS, TAR_EXTENSIONS, ZIP_EXTENSIONS
from arcshelf.exceptions import ArchiveEngineException

logger = logging.getLogger('main')

EXTRACT_ERRORS = (
    OSError,
    RuntimeError,
    zipfile.BadZipFile,
    tarfile.TarError,
    ArchiveError,
    PasswordRequired,
    lzma.LZMAError,
    rarfile.Error,
)


def archive_kind(path):
    """Classify a source path: 'directory', 'zip', 'tar', '7z', 'rar' or 'file'"""
    if os.path.isdir(path):
        return 'directory'
    lower = path.lower()
    if any(lower.endswith(ext) for ext in ZIP_EXTENSIONS):
        return 'zip'
    if any(lower.endswith(ext) for ext in TAR_EXTENSIONS):
        return 'tar'
    if any(lower.endswith(ext) for ext in SEVENZIP_EXTENSIONS):
        return '7z'
    if any(lower.endswith(ext) for ext in RAR_EXTENSIONS):
        return 'rar'
    return 'file'


def _inside(base, candidate):
    base = os.path.realpath(base)
    candidate = os.path.realpath(candidate)
    return os.path.commonpath([base, candidate]) == base


def _check_members(archive_path, target_path, names):
    for name in names:
        if not _inside(target_path, os.path.join(target_path, name)):
            raise ArchiveEngineException(f"Unsafe path in archive {archive_path}: {name}")


def clear_directory(path):
    for entry in os.listdir(path):
        entry_path = os.path.join(path, entry)
        if os.path.isdir(entry_path) and not os.path.islink(entry_path):
            shutil.rmtree(entry_path)
        else:
            os.remove(entry_path)


class ArchiveEngine:
    """Base class for archive engines"""

    def extract(self, archive_path, password, target_path):
        raise NotImplementedError

    def remove(self, target_path):
        raise NotImplementedError


class LocalArchiveEngine(ArchiveEngine):
    """Extracts zip/tar/7z/rar archives, copies folders and plain files"""

    def __init__(self, compression_level=9):
        self.compression_level = compression_level

    def _prepare_target(self, target_path):
        if os.path.exists(target_path):
            if not os.path.isdir(target_path):
                raise ArchiveEngineException(f"Deployment target is an existing file: {target_path}")
            if os.listdir(target_path):
                raise ArchiveEngineException(f"Deployment target is not empty: {target_path}")
        else:
            logger.warning(f"The selected path {target_path} does not exist, creating it")
            os.makedirs(target_path)

    def extract(self, archive_path, password, target_path):
        if not os.path.exists(archive_path):
            raise ArchiveEngineException(f"Archive not found: {archive_path}")

        kind = archive_kind(archive_path)
        try:
            self._prepare_target(target_path)
        except OSError as e:
            raise ArchiveEngineException(f"Cannot prepare {target_path}: {e}") from e

        logger.info(f"Deploying {kind} {archive_path} to {target_path}")
        try:
            if kind == 'directory':
                shutil.copytree(archive_path, target_path, dirs_exist_ok=True)
            elif kind == 'zip':
                self._extract_zip(archive_path, password, target_path)
            elif kind == 'tar':
                if password:
                    logger.warning(f"Ignoring password for tar archive {archive_path}")
                self._extract_tar(archive_path, target_path)
            elif kind == '7z':
                self._extract_7z(archive_path, password, target_path)
            elif kind == 'rar':
                self._extract_rar(archive_path, password, target_path)
            else:
                shutil.copy2(archive_path, os.path.join(target_path, os.path.basename(archive_path)))
        except ArchiveEngineException:
            self._rollback(target_path)
            raise
        except EXTRACT_ERRORS as e:
            self._rollback(target_path)
            raise ArchiveEngineException(f"Failed to deploy {archive_path} to {target_path}: {e}") from e

        logger.info(f"Successfully deployed {archive_path} to {target_path}")

    def _rollback(self, target_path):
        # Target was empty before extraction started
        try:
            clear_directory(target_path)
        except OSError as e:
            logger.error(f"Failed to clean up partial deployment at {target_path}: {e}")

    def _extract_zip(self, archive_path, password, target_path):
        with zipfile.ZipFile(archive_path, 'r') as zip_ref:
            _check_members(archive_path, target_path, zip_ref.namelist())
            pwd = password.encode('utf-8') if password else None
            zip_ref.extractall(target_path, pwd=pwd)

    def _extract_tar(self, archive_path, target_path):
        with tarfile.open(archive_path, 'r:*') as tar_ref:
            _check_members(archive_path, target_path, tar_ref.getnames())
            tar_ref.extractall(target_path, filter='data')

    def _extract_7z(self, archive_path, password, target_path):
        with py7zr.SevenZipFile(archive_path, 'r', password=password or None) as sz_ref:
            _check_members(archive_path, target_path, sz_ref.getnames())
            sz_ref.extractall(path=target_path)

    def _extract_rar(self, archive_path, password, target_path):
        # rarfile delegates decompression to an unrar/unar/bsdtar tool on PATH
        with rarfile.RarFile(archive_path) as rar_ref:
            _check_members(archive_path, target_path, rar_ref.namelist())
            rar_ref.extractall(target_path, pwd=password or None)

    def remove(self, target_path):
        """Retract a deployment: clear a folder's contents, or delete a file"""
        try:
            if os.path.isdir(target_path):
                logger.info(f"Clearing directory {target_path}")
                clear_directory(target_path)
            elif os.path.exists(target_path):
                logger.info(f"Deleting file {target_path}")
                os.remove(target_path)
            else:
                logger.warning(f"Deployed path {target_path} no longer exists, nothing to remove")
                return
        except OSError as e:
            raise ArchiveEngineException(f"Failed to remove {target_path}: {e}") from e
        logger.info(f"Successfully cleared {target_path}")

    def compress(self, source_dir, archive_path, password=None):
        """
        Pack a folder into an archive, 7z or zip depending on archive_path.

        Only 7z archives can be encrypted; the password covers file contents.
        """
        if not os.path.isdir(source_dir):
            raise ArchiveEngineException(f"Unexpected origin path: {source_dir}")

        kind = archive_kind(archive_path)
        if kind not in ('7z', 'zip'):
            raise ArchiveEngineException(f"Cannot create archive of this type: {archive_path}")
        if password and kind == 'zip':
            raise ArchiveEngineException(f"Encrypted zip archives are not supported: {archive_path}")

        os.makedirs(os.path.dirname(archive_path) or '.', exist_ok=True)
        logger.info(f"Creating new archive at: {archive_path}")
        try:
            if kind == '7z':
                self._compress_7z(source_dir, archive_path, password)
            else:
                self._compress_zip(source_dir, archive_path)
        except (OSError, zipfile.LargeZipFile, ArchiveError, lzma.LZMAError) as e:
            if os.path.exists(archive_path):
                os.remove(archive_path)
            raise ArchiveEngineException(f"Failed to compress {source_dir}: {e}") from e
        return archive_path

    @staticmethod
    def _source_files(source_dir):
        for root, _dirs, files in os.walk(source_dir):
            for name in files:
                full_path = os.path.join(root, name)
                yield full_path, os.path.relpath(full_path, source_dir)

    def _compress_zip(self, source_dir, archive_path):
        with zipfile.ZipFile(archive_path, 'w', zipfile.ZIP_DEFLATED, compresslevel=self.compression_level) as zip_ref:
            for full_path, arcname in self._source_files(source_dir):
                zip_ref.write(full_path, arcname)

    def _compress_7z(self, source_dir, archive_path, password):
        filters = [{'id': py7zr.FILTER_LZMA2, 'preset': self.compression_level}]
        if password:
            filters.append({'id': py7zr.FILTER_CRYPTO_AES256_SHA256})
        with py7zr.SevenZipFile(archive_path, 'w', filters=filters, password=password or None) as sz_ref:
            for full_path, arcname in self._source_files(source_dir):
                sz_ref.write(full_path, arcname)
