import logging
import os
import tempfile

import requests

from vtinfo.errors import InputError

logger = logging.getLogger(__name__)

# Config
CACHE_DIR = os.path.expanduser(os.environ.get("VTINFO_CACHE_DIR", "~/.vtinfo/cache"))
TILE_URL_TEMPLATE = os.environ.get(
    "VTINFO_TILE_URL", "https://tiles.openfreemap.org/planet/latest/{z}/{x}/{y}.pbf"
)
FETCH_TIMEOUT = float(os.environ.get("VTINFO_TIMEOUT", "5"))


def is_url(source):
    return source.startswith(("http://", "https://"))


def get_tile_path(z, x, y):
    return os.path.join(CACHE_DIR, str(z), str(x), f"{y}.mvt")


def parse_zxy(zxy):
    """'13/2288/2987' -> (13, 2288, 2987)"""
    parts = zxy.strip().strip("/").split("/")
    if len(parts) != 3:
        raise InputError(f"expected Z/X/Y, got '{zxy}'")
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        raise InputError(f"expected integer Z/X/Y, got '{zxy}'") from None


def download(url):
    """GET ``url`` and return the body; raises InputError on any failure."""
    logger.info("Fetching %s", url)
    try:
        resp = requests.get(url, timeout=FETCH_TIMEOUT)
    except requests.RequestException as e:
        raise InputError(f"could not fetch '{url}': {e}") from e

    if resp.status_code != 200:
        raise InputError(f"could not fetch '{url}': {resp.status_code} {resp.text[:100]}")
    if not resp.content:
        raise InputError(f"empty response from '{url}'")
    return resp.content


def read_file(path):
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise InputError(f"could not open: '{path}'") from e


def fetch_tile(z, x, y):
    """
    Returns tile bytes. Checks cache first, then downloads.
    """
    path = get_tile_path(z, x, y)

    if os.path.exists(path):
        # Guard against previously cached empty files; they decode as blank tiles.
        if os.path.getsize(path) == 0:
            logger.info("Dropping empty cache entry %s", path)
            try:
                os.remove(path)
            except OSError as e:
                raise InputError(f"could not clear cache entry '{path}'") from e
        else:
            logger.debug("Cache hit %s", path)
            return read_file(path)

    url = TILE_URL_TEMPLATE.format(z=z, x=x, y=y)
    content = download(url)
    write_cache(path, content)
    return content


def write_cache(path, content):
    """Write through a temp file so an interrupted run never leaves a partial tile."""
    directory = os.path.dirname(path)
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        with tempfile.NamedTemporaryFile("wb", dir=directory, suffix=".part", delete=False) as f:
            tmp_path = f.name
            f.write(content)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise InputError(f"could not cache '{path}'") from e


def read_tile(source):
    """Tile bytes from a filesystem path or an http(s) URL."""
    if is_url(source):
        return download(source)
    return read_file(source)
