"""
Chromium Provisioner - Video Grabber

Fetches and unpacks a headless Chromium archive for hosts without a bundled browser.
"""

import asyncio
import logging
import os
import shutil
import stat
import tarfile
import tempfile
from typing import Optional

import aiohttp
import brotli

logger = logging.getLogger(__name__)


class ProvisioningError(Exception):
    """Raised when the browser archive cannot be fetched or unpacked."""
    pass


class ChromiumProvisioner:
    """
    Chromium Provisioner - Archive Backend

    The archive is a tar of a serverless Chromium `bin` folder:
    a brotli-compressed `chromium.br` binary plus `*.tar.br` companions
    (shared libraries, swiftshader, fonts). A plain `chromium` binary is
    accepted too.

    Everything is unpacked into a staging directory and moved into the
    cache directory afterwards; a marker file written last tells a
    complete cache from one left behind by an interrupted run.
    """

    EXECUTABLE_NAME = 'chromium'
    COMPLETE_MARKER = '.complete'
    CHUNK_SIZE = 1024 * 1024  # 1MB chunks

    def __init__(self, cache_dir: str, timeout: int = 120):
        """
        Initialize provisioner.

        Args:
            cache_dir: Directory the archive is unpacked into
            timeout: Total download timeout in seconds
        """
        self.cache_dir = cache_dir
        self.timeout = timeout

    @property
    def executable_path(self) -> str:
        return os.path.abspath(os.path.join(self.cache_dir, self.EXECUTABLE_NAME))

    async def locate(self, source_url: str) -> str:
        """
        Return a local executable path, fetching the archive if needed.

        Args:
            source_url: URL of the tar archive

        Returns:
            Absolute path of the chromium executable
        """
        existing = self._find_executable()
        if existing:
            logger.debug(f"Chromium already unpacked: {existing}")
            return existing

        os.makedirs(self.cache_dir, exist_ok=True)
        staging = tempfile.mkdtemp(prefix='.stage-', dir=self.cache_dir)

        try:
            archive_path = os.path.join(staging, 'pack.tar')
            await self._download(source_url, archive_path)
            await asyncio.to_thread(self._install, archive_path, staging, source_url)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        executable = self._find_executable()
        if not executable:
            raise ProvisioningError(f"Chromium from {source_url} is not executable")

        logger.info(f"Chromium unpacked to: {executable}")
        return executable

    async def _download(self, source_url: str, archive_path: str):
        """Stream the archive to disk."""
        logger.info(f"Downloading Chromium archive: {source_url}")

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(source_url, allow_redirects=True) as response:
                    if response.status != 200:
                        raise ProvisioningError(
                            f"Archive download failed with HTTP {response.status}"
                        )

                    with open(archive_path, 'wb') as f:
                        async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                            f.write(chunk)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to download Chromium archive: {e}")
            raise ProvisioningError(f"Archive download failed: {e}") from e

    def _install(self, archive_path: str, staging: str, source_url: str):
        """Unpack the pack into staging, then move the result into the cache dir."""
        pack_dir = os.path.join(staging, 'pack')
        out_dir = os.path.join(staging, 'out')
        os.makedirs(pack_dir)
        os.makedirs(out_dir)

        self._extract(archive_path, pack_dir)

        compressed = os.path.join(pack_dir, self.EXECUTABLE_NAME + '.br')
        plain = os.path.join(pack_dir, self.EXECUTABLE_NAME)
        binary = os.path.join(out_dir, self.EXECUTABLE_NAME)

        if os.path.isfile(compressed):
            self._inflate(compressed, binary)
        elif os.path.isfile(plain):
            shutil.move(plain, binary)
        else:
            raise ProvisioningError(
                f"Archive from {source_url} has no '{self.EXECUTABLE_NAME}' binary"
            )
        os.chmod(binary, os.stat(binary).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        # Companion libraries land next to the binary
        for name in sorted(os.listdir(pack_dir)):
            if not name.endswith('.tar.br'):
                continue
            inflated = os.path.join(staging, name[:-len('.br')])
            self._inflate(os.path.join(pack_dir, name), inflated)
            self._extract(inflated, out_dir)
            os.remove(inflated)
            logger.debug(f"Unpacked {name}")

        self._publish(out_dir)

    def _publish(self, out_dir: str):
        """Move unpacked entries into the cache dir and mark it complete."""
        marker = os.path.join(self.cache_dir, self.COMPLETE_MARKER)
        if os.path.exists(marker):
            os.remove(marker)

        for name in os.listdir(out_dir):
            target = os.path.join(self.cache_dir, name)
            if os.path.isdir(target) and not os.path.islink(target):
                shutil.rmtree(target)
            elif os.path.lexists(target):
                os.remove(target)
            os.replace(os.path.join(out_dir, name), target)

        with open(marker, 'w') as f:
            f.write(self.EXECUTABLE_NAME)

    def _inflate(self, source: str, target: str):
        """Brotli-decompress a file."""
        decompressor = brotli.Decompressor()

        try:
            with open(source, 'rb') as src, open(target, 'wb') as dst:
                for chunk in iter(lambda: src.read(self.CHUNK_SIZE), b''):
                    dst.write(decompressor.process(chunk))
        except brotli.error as e:
            raise ProvisioningError(f"Corrupt brotli file {os.path.basename(source)}: {e}") from e

        if not decompressor.is_finished():
            raise ProvisioningError(f"Truncated brotli file {os.path.basename(source)}")

    def _extract(self, archive_path: str, dest: str):
        """Extract a tar, refusing links and members that escape dest."""
        root = os.path.realpath(dest)

        try:
            with tarfile.open(archive_path, 'r:*') as tar:
                members = []
                for member in tar.getmembers():
                    if member.issym() or member.islnk():
                        logger.warning(f"Skipping link in archive: {member.name}")
                        continue
                    target = os.path.realpath(os.path.join(root, member.name))
                    if target != root and not target.startswith(root + os.sep):
                        raise ProvisioningError(f"Unsafe path in archive: {member.name}")
                    members.append(member)

                if hasattr(tarfile, 'data_filter'):
                    tar.extractall(root, members=members, filter='data')
                else:
                    tar.extractall(root, members=members)

        except tarfile.TarError as e:
            raise ProvisioningError(f"Invalid Chromium archive: {e}") from e

    def _find_executable(self) -> Optional[str]:
        """Binary from a completed unpack, None if absent, partial or not executable."""
        path = self.executable_path
        if not os.path.exists(os.path.join(self.cache_dir, self.COMPLETE_MARKER)):
            return None
        if not os.path.isfile(path) or not os.access(path, os.X_OK):
            return None
        return path
