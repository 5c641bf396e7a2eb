import rasterio
import pytest

import run

from conftest import write_band


def test_main_success(band_pair, tmp_path, capsys):
    nir_path, red_path = band_pair
    out_path = tmp_path / "ndvi.tif"

    run.main(["--nir", str(nir_path), "--red", str(red_path), "--output", str(out_path)])

    out = capsys.readouterr().out
    assert f"NDVI calculation complete. Output saved to {out_path}" in out

    # config.yaml creation options: DEFLATE, tiled
    with rasterio.open(out_path) as ds:
        assert ds.compression is not None
        assert ds.compression.name.upper() == "DEFLATE"
        assert ds.nodata == -999.0


def test_main_int16_with_offset(band_pair, tmp_path):
    nir_path, red_path = band_pair
    out_path = tmp_path / "ndvi_i16.tif"

    run.main([
        "--nir", str(nir_path),
        "--red", str(red_path),
        "--output", str(out_path),
        "--offset", "-1000",
        "--dtype", "int16",
    ])

    with rasterio.open(out_path) as ds:
        assert ds.dtypes == ("int16",)
        # (5000 - 1000, 2000 - 1000) -> (0.4 - 0.1) / 0.5
        assert ds.read(1)[0, 0] == 6000


def test_main_missing_input(tmp_path, capsys):
    nir_path = write_band(tmp_path / "B8A.tif", [[1, 2]])

    with pytest.raises(SystemExit) as exc:
        run.main([
            "--nir", str(nir_path),
            "--red", str(tmp_path / "missing.jp2"),
            "--output", str(tmp_path / "ndvi.tif"),
        ])

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert "[ERROR]" in err
    assert "missing.jp2" in err
    assert not (tmp_path / "ndvi.tif").exists()


def test_main_cannot_create_output(band_pair, tmp_path, capsys):
    nir_path, red_path = band_pair
    blocker = tmp_path / "blocker"
    blocker.write_text("")

    with pytest.raises(SystemExit) as exc:
        run.main([
            "--nir", str(nir_path),
            "--red", str(red_path),
            "--output", str(blocker / "ndvi.tif"),
        ])

    assert exc.value.code == 1
    assert "Could not create output raster" in capsys.readouterr().err


def test_main_missing_config(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        run.main(["--config", str(tmp_path / "none.yaml")])
    assert exc.value.code == 1
    assert "Config file not found" in capsys.readouterr().err


@pytest.mark.parametrize("text", ["paths: [unclosed\n", "- nir\n- red\n"])
def test_main_invalid_config(tmp_path, capsys, text):
    config = tmp_path / "bad.yaml"
    config.write_text(text, encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        run.main(["--config", str(config)])

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert "[ERROR] Invalid config file" in err
