"""Test the render_flame entry point.

Validates that scripts.render_flame.render_main() is callable as a library:
    - Returns dict with expected keys
    - Writes PNG, metadata and a re-renderable flame file
    - Seeds from the flame file unless overridden
    - Same seed → same buffer hash

And that main() maps configuration errors to exit code 2.

Run:
    pytest tests/test_render_flame_cli.py -v
"""

import logging
from pathlib import Path

import pytest
from PIL import Image

from fractal_flame.renderer import presets
from fractal_flame.renderer.orchestrator import EXPORT_SIZE
from fractal_flame.renderer.params import ConfigurationError
from fractal_flame.utils import fs, hashing, logging_config
from scripts.render_flame import main, parse_args, render_main

SIERPINSKI = Path(__file__).parent.parent / "configs" / "sierpinski.v1.yaml"
SMALL = {'quality': 3000, 'width': 32, 'height': 32}


@pytest.fixture(autouse=True)
def detach_cli_handlers():
    """main() installs root handlers bound to the captured stderr."""
    yield
    root = logging.getLogger()
    for handler in logging_config._installed_handlers:
        root.removeHandler(handler)
    logging_config._installed_handlers.clear()
    logging_config.pop_context()


# ============================================================================
# render_main()
# ============================================================================

def test_render_main_from_config(tmp_path):
    result = render_main(str(tmp_path), config_path=str(SIERPINSKI), overrides=SMALL)

    expected_keys = {
        'buffer', 'params', 'seed', 'stats', 'timings',
        'png_path', 'metadata_path', 'flame_path',
    }
    assert set(result) == expected_keys
    assert result['seed'] == 1
    assert result['params'].quality == 3000

    with Image.open(result['png_path']) as img:
        assert img.size == (32, 32)
        assert img.mode == "RGBA"

    meta = fs.load_yaml(result['metadata_path'])
    assert meta['seed'] == 1
    assert meta['size_px'] == [32, 32]
    assert meta['stats']['iterations'] == 3000
    assert meta['opaque_pixels'] == result['buffer'].opaque_pixels()
    assert len(meta['buffer_sha256']) == 64
    assert meta['png_sha256'] == hashing.sha256_file(result['png_path'])
    assert set(meta['timings_s']) == {'chaos_game', 'tone_map'}


def test_seed_override(tmp_path):
    result = render_main(str(tmp_path), config_path=str(SIERPINSKI), seed=99, overrides=SMALL)
    assert result['seed'] == 99


def test_flame_file_rerenders_identically(tmp_path):
    first = render_main(
        str(tmp_path / "a"), n_random=3, variations=['swirl', 'julia'], seed=5,
        overrides=SMALL,
    )
    params, seed = presets.load_flame(first['flame_path'])
    assert seed == 5
    assert params == first['params']

    again = render_main(str(tmp_path / "b"), config_path=first['flame_path'], overrides=SMALL)
    meta_a = fs.load_yaml(first['metadata_path'])
    meta_b = fs.load_yaml(again['metadata_path'])
    assert meta_a['buffer_sha256'] == meta_b['buffer_sha256']
    assert meta_a['params_sha256'] == meta_b['params_sha256']


def test_prefix_names_outputs(tmp_path):
    result = render_main(str(tmp_path), n_random=2, seed=0, overrides=SMALL, prefix="demo")
    assert Path(result['png_path']).name == "demo.png"
    assert Path(result['metadata_path']).name == "demo_metadata.yaml"
    assert Path(result['flame_path']).name == "demo_flame.yaml"


@pytest.mark.parametrize("kwargs", [{}, {'config_path': str(SIERPINSKI), 'n_random': 2}])
def test_exactly_one_source(tmp_path, kwargs):
    with pytest.raises(ValueError, match="Exactly one"):
        render_main(str(tmp_path), **kwargs)


def test_zero_random_xforms_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        render_main(str(tmp_path), n_random=0, seed=0, overrides=SMALL)


@pytest.mark.slow
def test_export_size(tmp_path):
    result = render_main(
        str(tmp_path), config_path=str(SIERPINSKI), export=True, overrides={'quality': 2000}
    )
    assert result['buffer'].rgba.shape == (EXPORT_SIZE, EXPORT_SIZE, 4)
    meta = fs.load_yaml(result['metadata_path'])
    assert meta['export'] is True
    assert meta['size_px'] == [EXPORT_SIZE, EXPORT_SIZE]


# ============================================================================
# main()
# ============================================================================

def test_parse_args_rejects_unknown_variation():
    with pytest.raises(SystemExit):
        parse_args(['--random', '2', '--variations', 'bubble'])


def test_parse_args_requires_source():
    with pytest.raises(SystemExit):
        parse_args([])


def test_parse_args_rejects_unknown_log_level():
    with pytest.raises(SystemExit):
        parse_args(['--random', '2', '--log_level', 'LOUD'])


def test_parse_args_log_level_is_case_insensitive():
    assert parse_args(['--random', '2', '--log_level', 'debug']).log_level == 'DEBUG'
    assert parse_args(['--random', '2']).log_level == 'INFO'


def test_main_success(tmp_path):
    code = main([
        '--config', str(SIERPINSKI),
        '--quality', '2000', '--width', '24', '--height', '24',
        '--output_dir', str(tmp_path), '--prefix', 'cli',
    ])
    assert code == 0
    assert (tmp_path / "cli.png").exists()
    assert (tmp_path / "cli_metadata.yaml").exists()


def test_main_empty_flame_exit_code(tmp_path):
    assert main(['--random', '0', '--output_dir', str(tmp_path)]) == 2
    assert not (tmp_path / "flame.png").exists()


def test_main_invalid_override_exit_code(tmp_path):
    code = main(['--random', '2', '--gamma', '-1', '--output_dir', str(tmp_path)])
    assert code == 2


def test_main_missing_config_exit_code(tmp_path):
    assert main(['--config', str(tmp_path / "missing.yaml"), '--output_dir', str(tmp_path)]) == 2
