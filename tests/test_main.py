import json

import cv2
import numpy as np
import pytest

import main


@pytest.fixture
def image_file(tmp_path, smooth_buffer: np.ndarray):
    image = np.dstack([smooth_buffer // 2, smooth_buffer, smooth_buffer // 3])
    path = tmp_path / "input.png"
    assert cv2.imwrite(str(path), image)
    return path


def test_tonemap_preview_writes_output(tmp_path, image_file) -> None:
    output = tmp_path / "out.png"
    code = main.main(['tonemap', str(image_file), '-o', str(output), '--mode', 'preview', '--detail', '40'])
    assert code == 0
    written = cv2.imread(str(output), cv2.IMREAD_UNCHANGED)
    assert written.shape == (48, 64, 3)


def test_tonemap_default_output_path(image_file) -> None:
    code = main.main(['tonemap', str(image_file), '--mode', 'preview'])
    assert code == 0
    assert (image_file.parent / "input_llf.png").exists()


def test_tonemap_keep_as_layer_with_selection(tmp_path, image_file) -> None:
    output = tmp_path / "layer.png"
    code = main.main([
        'tonemap', str(image_file), '-o', str(output), '--mode', 'preview',
        '--keep-as-layer', '--selection', '4', '4', '16', '12',
    ])
    assert code == 0
    written = cv2.imread(str(output), cv2.IMREAD_UNCHANGED)
    assert written.shape == (12, 16)


def test_tonemap_debug_saves_pyramids(tmp_path, image_file) -> None:
    output = tmp_path / "debug" / "out.png"
    code = main.main(['tonemap', str(image_file), '-o', str(output), '--mode', 'preview', '--debug'])
    assert code == 0
    assert (output.parent / "pyramids-source.png").exists()
    assert (output.parent / "pyramids-result.png").exists()


def test_tonemap_reads_config_file(tmp_path, image_file) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"mode": "preview", "edgeStrength": -20}))
    output = tmp_path / "out.png"
    assert main.main(['tonemap', str(image_file), '-o', str(output), '--config', str(config_path)]) == 0
    assert output.exists()


def test_missing_image_fails(tmp_path) -> None:
    assert main.main(['tonemap', str(tmp_path / "nope.png")]) == 1


def test_invalid_parameter_fails(image_file) -> None:
    assert main.main(['tonemap', str(image_file), '--mode', 'preview', '--detail', '500']) == 1


def test_curve_command(tmp_path) -> None:
    output = tmp_path / "curves.png"
    assert main.main(['curve', str(output), '--reference', '50', '200', '--edge', '-40']) == 0
    assert output.exists()


def test_no_command_fails() -> None:
    assert main.main([]) == 1


def test_build_config_overrides_json(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"mode": "preview", "detailStrength": 10}))
    args = main.create_parser().parse_args(
        ['tonemap', 'x.png', '--config', str(config_path), '--detail', '70', '--keep-as-layer']
    )
    config = main.build_config(args)
    assert config.mode == 'preview'
    assert config.detail_strength == 70
    assert config.keep_as_layer is True
