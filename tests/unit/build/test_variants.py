"""Unit tests for board variant selection."""

import pytest

from rvbuild.build.variants import (
    VARIANTS,
    Variant,
    format_variant_banner,
    get_variant,
    resolve_features,
    select_variant,
    variant_names,
)
from rvbuild.errors import ConfigurationError, UnknownVariantError


class TestVariantTable:
    """The closed enum and the flag table must agree."""

    def test_every_variant_has_flags(self):
        assert set(VARIANTS) == set(Variant)

    def test_flag_names_match_enum_values(self):
        for variant, flags in VARIANTS.items():
            assert flags.name == variant.value

    def test_str_is_value(self):
        assert str(Variant.BOARD_TRACED) == "lrv_trace"


class TestFeatureSets:
    """Feature flags passed to the compiler per variant."""

    def test_default_is_qemu_only(self):
        features = get_variant(Variant.DEFAULT).features
        assert features == ("board_qemu",)
        assert "board_lrv" not in features
        assert "trace" not in features

    def test_board_never_traces(self):
        features = get_variant(Variant.BOARD).features
        assert features == ("board_lrv",)
        assert "trace" not in features

    def test_board_traced_has_board_and_trace(self):
        assert get_variant(Variant.BOARD_TRACED).features == ("board_lrv", "trace")

    def test_disassembly_only_for_untraced_variants(self):
        assert get_variant(Variant.DEFAULT).derive_disassembly
        assert get_variant(Variant.BOARD).derive_disassembly
        assert not get_variant(Variant.BOARD_TRACED).derive_disassembly


class TestSelectVariant:
    """Mode name resolution."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("qemu", Variant.DEFAULT),
            ("lrv", Variant.BOARD),
            ("lrv_trace", Variant.BOARD_TRACED),
            ("default", Variant.DEFAULT),
            ("board", Variant.BOARD),
            ("board_trace", Variant.BOARD_TRACED),
        ],
    )
    def test_known_names(self, name, expected):
        assert select_variant(name) is expected

    def test_unknown_name_raises(self):
        with pytest.raises(UnknownVariantError) as exc_info:
            select_variant("lrv-trace")
        assert exc_info.value.name == "lrv-trace"
        assert "lrv_trace" in exc_info.value.valid
        assert "Unknown variant 'lrv-trace'" in str(exc_info.value)

    def test_unknown_name_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            select_variant("")

    def test_names_are_case_sensitive(self):
        with pytest.raises(UnknownVariantError):
            select_variant("QEMU")

    def test_resolve_features(self):
        assert resolve_features("board_trace") == ("board_lrv", "trace")

    def test_variant_names_lists_canonical_names_first(self):
        names = variant_names()
        assert names[:3] == ["qemu", "lrv", "lrv_trace"]
        assert "board" in names


def test_format_variant_banner():
    assert format_variant_banner(Variant.BOARD_TRACED) == "VARIANT=lrv_trace FEATURES=board_lrv,trace"
