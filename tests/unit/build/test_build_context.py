"""Unit tests for output layout and build parameters."""

from pathlib import Path

from rvbuild.build.build_context import MANIFEST_NAME, ArtifactKind, BuildLayout, BuildParams
from rvbuild.build.variants import Variant
from rvbuild.config import PipelineConfig

PROJECT = Path("/work/user")


def _layout(variant: Variant = Variant.DEFAULT, **config_kwargs) -> BuildLayout:
    return BuildLayout(PROJECT, PipelineConfig(jobs=2, **config_kwargs), variant)


class TestBuildLayout:
    def test_output_dir_keyed_by_triple_and_mode(self):
        layout = _layout()
        assert layout.output_dir == PROJECT / "target" / "riscv64gc-unknown-none-elf" / "release"

    def test_variants_share_output_dir_by_default(self):
        assert _layout(Variant.DEFAULT).output_dir == _layout(Variant.BOARD_TRACED).output_dir
        assert _layout(Variant.BOARD).cargo_target_dir is None

    def test_isolated_variants_get_own_output_dir(self):
        board = _layout(Variant.BOARD, isolate_variants=True)
        traced = _layout(Variant.BOARD_TRACED, isolate_variants=True)
        assert board.cargo_target_dir == PROJECT / "target" / "lrv"
        assert board.output_dir == PROJECT / "target" / "lrv" / "riscv64gc-unknown-none-elf" / "release"
        assert board.output_dir != traced.output_dir

    def test_artifact_paths_use_suffix_concatenation(self):
        layout = _layout()
        assert layout.elf_path("alpha").name == "alpha"
        assert layout.artifact_path("alpha", ArtifactKind.BINARY).name == "alpha.bin"
        assert layout.artifact_path("alpha", ArtifactKind.DISASSEMBLY).name == "alpha.asm"
        assert layout.artifact_path("alpha", ArtifactKind.BINARY).parent == layout.output_dir

    def test_manifest_lives_in_output_dir(self):
        layout = _layout()
        assert layout.manifest_path == layout.output_dir / MANIFEST_NAME

    def test_app_dir(self):
        assert _layout(app_dir="programs").app_dir == PROJECT / "programs"


class TestArtifactKind:
    def test_labels(self):
        assert [k.label for k in ArtifactKind] == ["elf", "binary", "disassembly"]


class TestBuildParams:
    def _params(self, variant: Variant, derive: bool) -> BuildParams:
        return BuildParams.create(
            goal="test",
            variant=variant,
            entry_points=("alpha",),
            layout=_layout(variant),
            derive=derive,
            verbose=False,
        )

    def test_compile_only_derives_nothing(self):
        assert self._params(Variant.DEFAULT, derive=False).derived_kinds == ()

    def test_untraced_variants_derive_binary_and_listing(self):
        expected = (ArtifactKind.BINARY, ArtifactKind.DISASSEMBLY)
        assert self._params(Variant.DEFAULT, derive=True).derived_kinds == expected
        assert self._params(Variant.BOARD, derive=True).derived_kinds == expected

    def test_traced_variant_derives_binary_only(self):
        assert self._params(Variant.BOARD_TRACED, derive=True).derived_kinds == (ArtifactKind.BINARY,)

    def test_flags_and_jobs_resolved(self):
        params = self._params(Variant.BOARD_TRACED, derive=True)
        assert params.variant_flags.features == ("board_lrv", "trace")
        assert params.jobs == 2
