"""End-to-end CLI tests."""

import gzip
import io
import logging
from unittest.mock import MagicMock, patch

import pytest

from main import build_parser, main, run
from tests import pbf
from vtinfo.errors import FeatureDecodeError


@pytest.fixture
def tile_file(tmp_path, tile_bytes):
    path = tmp_path / "tile.mvt"
    path.write_bytes(tile_bytes)
    return path


def _run(*argv):
    out = io.StringIO()
    run(build_parser().parse_args(list(argv)), out=out)
    return out.getvalue()


class TestRun:
    def test_summary(self, tile_file):
        text = _run(str(tile_file))
        assert text.startswith("message: appears not to be compressed\nlayers: 2\n")
        assert "    degenerate polygons: 1\n" in text

    def test_verbose(self, tile_file):
        text = _run("--verbose", str(tile_file))
        assert "layer: roads" in text
        assert "    geometries: 9,4,4,18,10,10,20,20" in text
        assert "geometry summary" not in text

    def test_gzip_input(self, tmp_path, tile_bytes):
        path = tmp_path / "tile.mvt.gz"
        path.write_bytes(gzip.compress(tile_bytes))
        assert _run(str(path)).startswith("message: gzip compressed\nlayers: 2")

    def test_bad_geometry_aborts(self, tmp_path):
        path = tmp_path / "bad.mvt"
        path.write_bytes(pbf.tile(pbf.layer("bad", features=[pbf.feature([11])])))
        with pytest.raises(FeatureDecodeError):
            _run(str(path))

    def test_bad_geometry_skipped(self, tmp_path):
        path = tmp_path / "bad.mvt"
        path.write_bytes(pbf.tile(pbf.layer("bad", features=[pbf.feature([11])])))
        assert "    skipped: 1" in _run("--on-error", "skip", str(path))

    def test_tile_option_uses_cache(self, tile_bytes):
        with patch("main.tiles.fetch_tile", return_value=tile_bytes) as fetch:
            text = _run("--tile", "1/0/1")
        fetch.assert_called_once_with(1, 0, 1)
        assert "layers: 2" in text


class TestMain:
    def test_exit_zero(self, tile_file, capsys):
        assert main([str(tile_file)]) == 0
        assert "layers: 2" in capsys.readouterr().out

    def test_missing_file_exits_nonzero(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            assert main([str(tmp_path / "missing.mvt")]) == 1
        assert "could not open" in caplog.text

    def test_malformed_tile_exits_nonzero(self, tmp_path):
        path = tmp_path / "junk.mvt"
        path.write_bytes(b"\x1a\x0a\x08")
        assert main([str(path)]) == 1

    def test_source_required(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2

    def test_unwritable_cache_exits_nonzero(self, tmp_path, tile_bytes, monkeypatch, caplog):
        """A tile fetched fine but not cacheable is reported, not a traceback."""
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        monkeypatch.setattr("vtinfo.tiles.CACHE_DIR", str(blocker / "cache"))
        resp = MagicMock(status_code=200, content=tile_bytes)
        with patch("vtinfo.tiles.requests.get", return_value=resp):
            with caplog.at_level(logging.ERROR):
                assert main(["--tile", "1/0/1"]) == 1
        assert "could not cache" in caplog.text
