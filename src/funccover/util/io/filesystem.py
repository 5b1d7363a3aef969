"""
File system utilities for funccover.

Provides helpers for reading sources and writing instrumented outputs.
Outputs are written through a temporary file in the destination directory
and moved into place, so a failed write never leaves a partial file behind.
"""
import hashlib
import os
import os.path
import tempfile


def ensureDirectoryExists(dirname):
    """
    Ensure that a directory exists, creating it if necessary.

    Args:
        dirname: Path to the directory to ensure exists (empty means cwd)
    """
    if dirname and not os.path.exists(dirname):
        os.makedirs(dirname)


def readData(path):
    """
    Read the entire contents of a file as bytes.

    Raises:
        OSError: If the file cannot be read
    """
    with open(path, "rb") as f:
        return f.read()


def writeData(path, data, mode=0o666):
    """
    Atomically write bytes to path, creating the directory if necessary.

    The data goes to a temporary sibling file which replaces path only after
    it has been fully written and closed. On failure the temporary file is
    removed and the exception propagates.

    Args:
        path: Destination file
        data: Bytes to write
        mode: Permission bits, reduced by the process umask
    """
    directory = os.path.dirname(os.path.abspath(path))
    ensureDirectoryExists(directory)

    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".funccover-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp, mode & ~umask)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def dataHash(s):
    """
    Compute SHA-1 hash of data.

    Returns:
        SHA-1 digest (bytes, not hex string)
    """
    h = hashlib.sha1()
    h.update(s)
    return h.digest()


def writeFileIfChanged(path, data):
    """
    Write data to path only if it differs from the existing file.

    Returns:
        True if the file was written, False if it already held the same data
    """
    if os.path.exists(path):
        if dataHash(readData(path)) == dataHash(data):
            return False

    writeData(path, data)
    return True
