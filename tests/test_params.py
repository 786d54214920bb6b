"""Test the render parameter model.

Tests for fractal_flame.renderer.params:
    - AffineMap coefficient handling
    - Xform construction from wire-shaped dicts (coefs/variation/color)
    - RenderParameters domain checks raise ConfigurationError
    - Empty xform lists are representable (rejected later by the renderer)
    - Copies via with_size / with_overrides

Run:
    pytest tests/test_params.py -v
"""

import math

import pytest

from fractal_flame.renderer.params import (
    AffineMap,
    ConfigurationError,
    RenderParameters,
    Xform,
)
from fractal_flame.renderer.variations import VariationId


@pytest.fixture
def xform_dict():
    return {
        'weight': 1.0,
        'coefs': [0.5, 0.0, 0.1, 0.0, 0.5, -0.1],
        'variation': 'swirl',
        'color': {'r': 1.0, 'g': 0.0, 'b': 0.0},
    }


# ============================================================================
# AFFINE MAP
# ============================================================================

def test_affine_identity():
    assert AffineMap.identity().coefs == (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)


def test_affine_requires_six_coefficients():
    with pytest.raises(ConfigurationError, match="6 coefficients"):
        AffineMap.from_coefs([1.0, 0.0, 0.0])


def test_affine_is_immutable():
    affine = AffineMap.identity()
    with pytest.raises(Exception):
        affine.a = 2.0


# ============================================================================
# XFORM
# ============================================================================

def test_xform_from_dict(xform_dict):
    xf = Xform.from_dict(xform_dict)
    assert xf.weight == 1.0
    assert xf.affine.coefs == (0.5, 0.0, 0.1, 0.0, 0.5, -0.1)
    assert xf.variation is VariationId.SWIRL
    assert xf.color == (1.0, 0.0, 0.0)


def test_xform_accepts_hex_color(xform_dict):
    xform_dict['color'] = '#ff0080'
    xf = Xform.from_dict(xform_dict)
    assert xf.color == pytest.approx((1.0, 0.0, 128 / 255))


def test_xform_unknown_variation_is_linear(xform_dict):
    xform_dict['variation'] = 'not-a-variation'
    assert Xform.from_dict(xform_dict).variation is VariationId.LINEAR


def test_xform_missing_coefs():
    with pytest.raises(ConfigurationError, match="coefs"):
        Xform.from_dict({'weight': 1.0})


def test_xform_bad_hex_color(xform_dict):
    xform_dict['color'] = '#12'
    with pytest.raises(ConfigurationError):
        Xform.from_dict(xform_dict)


def test_xform_dict_roundtrip(xform_dict):
    xf = Xform.from_dict(xform_dict)
    assert Xform.from_dict(xf.to_dict()) == xf


# ============================================================================
# RENDER PARAMETERS
# ============================================================================

def test_defaults_are_valid():
    params = RenderParameters()
    assert params.gamma > 0 and params.brightness > 0
    assert params.xforms == ()


@pytest.mark.parametrize("field,value", [
    ('gamma', 0.0),
    ('gamma', -1.0),
    ('gamma', math.nan),
    ('brightness', 0.0),
    ('brightness', math.inf),
    ('quality', -1),
    ('quality', 1.5),
    ('width', 0),
    ('height', -4),
])
def test_invalid_settings_raise(field, value):
    with pytest.raises(ConfigurationError, match=field):
        RenderParameters(**{field: value})


def test_quality_zero_is_allowed():
    assert RenderParameters(quality=0).quality == 0


@pytest.mark.parametrize("field,value", [
    ('gamma', "2"),
    ('brightness', None),
    ('quality', None),
    ('quality', True),
    ('quality', math.inf),
    ('width', "64"),
    ('height', [32]),
])
def test_wrongly_typed_settings_raise_configuration_error(field, value):
    with pytest.raises(ConfigurationError, match=field):
        RenderParameters(**{field: value})


@pytest.mark.parametrize("weight", ["x", None])
def test_wrongly_typed_weight_rejected(weight, xform_dict):
    xform_dict['weight'] = weight
    with pytest.raises(ConfigurationError, match="weight"):
        RenderParameters(xforms=(Xform.from_dict(xform_dict),))


def test_wrongly_typed_coefficients_rejected(xform_dict):
    xform_dict['coefs'] = [1.0, 0.0, "a", 0.0, 1.0, 0.0]
    with pytest.raises(ConfigurationError, match="coefficients"):
        Xform.from_dict(xform_dict)


@pytest.mark.parametrize("weight", [0.0, -0.5, math.nan])
def test_non_positive_weight_rejected(weight, xform_dict):
    xform_dict['weight'] = weight
    with pytest.raises(ConfigurationError, match="weight"):
        RenderParameters(xforms=(Xform.from_dict(xform_dict),))


def test_out_of_range_color_rejected(xform_dict):
    xform_dict['color'] = (1.5, 0.0, 0.0)
    with pytest.raises(ConfigurationError, match="color"):
        RenderParameters(xforms=(Xform.from_dict(xform_dict),))


def test_non_finite_coefficients_rejected(xform_dict):
    xform_dict['coefs'] = [1.0, 0.0, math.inf, 0.0, 1.0, 0.0]
    with pytest.raises(ConfigurationError, match="non-finite"):
        RenderParameters(xforms=(Xform.from_dict(xform_dict),))


def test_from_dict_and_back(xform_dict):
    data = {
        'gamma': 2.2,
        'brightness': 4.0,
        'quality': 1000,
        'width': 64,
        'height': 32,
        'xforms': [xform_dict, dict(xform_dict, variation='julia')],
    }
    params = RenderParameters.from_dict(data)
    assert len(params.xforms) == 2
    assert params.xforms[1].variation is VariationId.JULIA
    assert RenderParameters.from_dict(params.to_dict()) == params


def test_with_size_keeps_everything_else(xform_dict):
    params = RenderParameters.from_dict({'quality': 10, 'xforms': [xform_dict]})
    big = params.with_size(2048, 2048)
    assert (big.width, big.height) == (2048, 2048)
    assert big.xforms == params.xforms and big.quality == 10
    assert (params.width, params.height) == (512, 512)


def test_with_overrides_ignores_none():
    params = RenderParameters().with_overrides(gamma=1.0, quality=None)
    assert params.gamma == 1.0
    assert params.quality == RenderParameters().quality


def test_with_overrides_validates():
    with pytest.raises(ConfigurationError):
        RenderParameters().with_overrides(brightness=-2.0)
