import zipfile
from pathlib import Path
from typing import Union

from loguru import logger

from .constants import BUNDLE_MANIFEST_ENTRY, MANIFEST_ENTRY
from .errors import ManifestNotFound


def read_manifest(path: Union[str, Path], entry: Union[str, None] = None) -> bytes:
    """
    Read the binary manifest out of an APK or AAB archive.

    :param path: path to the archive
    :param entry: name of the entry to read; by default `AndroidManifest.xml`,
        then the App Bundle location `base/manifest/AndroidManifest.xml`
    :raises ManifestNotFound: if the archive has no such entry
    :raises zipfile.BadZipFile: if the file is not a zip archive
    """
    candidates = [entry] if entry else [MANIFEST_ENTRY, BUNDLE_MANIFEST_ENTRY]
    with zipfile.ZipFile(path, "r") as zf:
        names = set(zf.namelist())
        for name in candidates:
            if name in names:
                logger.debug(f"Reading {name} from {path}")
                return zf.read(name)
    raise ManifestNotFound(
        "No manifest entry in archive {}".format(path),
        expected=candidates,
    )


def load_input(path: Union[str, Path], entry: Union[str, None] = None) -> bytes:
    """
    Return the AXML bytes for `path`, which is either a raw binary XML file
    or a zip archive containing one. Archives are detected by content.
    """
    path = Path(path)
    if zipfile.is_zipfile(path):
        logger.info(f"{path} is an archive, extracting the manifest")
        return read_manifest(path, entry)
    if entry:
        logger.warning(f"{path} is not an archive, ignoring entry '{entry}'")
    return path.read_bytes()
