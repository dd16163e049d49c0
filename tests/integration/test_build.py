"""End-to-end build tests: manifest on disk to imported generated package.

These tests exercise every asset category together, write the generated
modules, import them and check the runtime values against the deployed
artifacts.
"""

from __future__ import annotations

import base64
import textwrap
from collections.abc import Callable
from pathlib import Path
from types import ModuleType

import pytest

from rebundle_core import BundleCompiler, BundleManifest, ResourceBundle, write_bundles
from rebundle_core.compiler import STATIC_DIR_NAME

pytestmark = pytest.mark.integration

MANIFEST = textwrap.dedent(
    """
    version: "1.0"
    generated_package: ui_bundles
    search_paths: [resources, shared]
    properties:
      resources.url_prefix: /static/
      resources.image.composition: sprite
      resources.text.externalize_threshold: 64
      resources.compiler.workers: 2
    bundles:
      - name: Icons
        package: icons
        methods:
          - {name: logo, category: image}
          - {name: banner, category: image, sources: [banner.png]}
          - {name: close, category: image}
          - {name: sprites, category: style, sources: [icons.css]}
      - name: Toolbar
        methods:
          - {name: label, category: text}
          - {name: help, category: text, sources: [help.txt]}
          - {name: icons, category: bundle, bundle: Icons}
          - {name: root, category: bundle, bundle: Toolbar}
      - name: Fonts
        methods:
          - {name: regular, category: data, sources: [fonts/regular.woff2]}
          - {name: legal, category: text, plural: true, sources: ["legal/*.txt"]}
    """
)


@pytest.fixture
def built(
    tmp_path: Path,
    make_png: Callable[..., bytes],
    load_generated: Callable[[Path], ModuleType],
) -> tuple[Path, ModuleType]:
    """Lay out a project, build it and import the generated package."""
    resources = tmp_path / "resources"
    shared = tmp_path / "shared"
    files: dict[Path, bytes | str] = {
        resources / "icons" / "logo.png": make_png(16, 16, (255, 0, 0, 255)),
        resources / "icons" / "banner.png": make_png(16, 16, (255, 0, 0, 255)),
        resources / "icons" / "close.png": make_png(8, 8, (0, 0, 0, 255)),
        resources / "icons" / "icons.css": (
            ".logo { background: url(@{logo}) 0 -@{logo.top}px; }\n"
            ".close { background: url(@{close}) 0 -@{close.top}px; width: @{close.width}px; }"
        ),
        resources / "label.txt": "Save",
        shared / "help.txt": "x" * 100,
        shared / "fonts" / "regular.woff2": b"wOF2\x00\x01fontdata",
        shared / "legal" / "b.txt": "second",
        shared / "legal" / "a.txt": "first ",
    }
    for path, content in files.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_bytes(content)

    manifest_path = tmp_path / "rebundle.yaml"
    manifest_path.write_text(MANIFEST, encoding="utf-8")
    manifest = BundleManifest.from_yaml(manifest_path)

    output = tmp_path / "build"
    result = BundleCompiler().build(manifest, output)
    assert result.ok, result.diagnostics
    write_bundles(result, output, manifest.generated_package)
    return output, load_generated(output / manifest.generated_package)


class TestFullBuild:
    """Tests over the generated package of a complete project."""

    def test_exports(self, built: tuple[Path, ModuleType]) -> None:
        """The package exports one instance per bundle."""
        _, package = built
        assert package.__all__ == ["Fonts", "Icons", "Toolbar"]
        for name in package.__all__:
            instance = getattr(package, name)
            assert isinstance(instance, ResourceBundle)
            assert instance.bundle_type == name

    def test_sprite_sheet(self, built: tuple[Path, ModuleType]) -> None:
        """Icons share one sheet; identical logo and banner share a slot."""
        _, package = built
        icons = package.Icons

        assert icons.logo().url == icons.banner().url == icons.close().url
        assert icons.logo().top == icons.banner().top == 0
        assert icons.close().top == 16
        assert (icons.close().width, icons.close().height) == (8, 8)

    def test_style_expanded(self, built: tuple[Path, ModuleType]) -> None:
        """Style placeholders are replaced with sheet URL and offsets."""
        _, package = built
        icons = package.Icons
        css = icons.sprites().get_text()

        assert f"url({icons.logo().url}) 0 -0px" in css
        assert f"url({icons.close().url}) 0 -16px; width: 8px" in css
        assert "@{" not in css

    def test_static_artifacts(self, built: tuple[Path, ModuleType]) -> None:
        """Static files exist under their hashed names."""
        output, package = built
        static = output / STATIC_DIR_NAME

        for url in (package.Icons.logo().url, package.Fonts.regular().url):
            assert url.startswith("/static/")
            assert (static / url.removeprefix("/static/")).is_file()
        assert (static / package.Toolbar.help().url.removeprefix("/static/")).read_text() == (
            "x" * 100
        )

    def test_text(self, built: tuple[Path, ModuleType]) -> None:
        """Short text is embedded, long text externalized, plural text joined."""
        _, package = built
        assert package.Toolbar.label().get_text() == "Save"
        assert type(package.Toolbar.help()).__name__ == "ExternalTextResource"
        assert package.Fonts.legal().get_text() == "first second"

    def test_nested_identity(self, built: tuple[Path, ModuleType]) -> None:
        """Nested accessors reach the same instances and values."""
        _, package = built
        toolbar = package.Toolbar
        assert toolbar.icons() is package.Icons
        assert toolbar.root() is toolbar
        assert toolbar.label() == toolbar.root().label()

    def test_resources_mapping(self, built: tuple[Path, ModuleType]) -> None:
        """resources() returns every accessor value in declaration order."""
        _, package = built
        resources = package.Toolbar.resources()
        assert list(resources) == ["label", "help", "icons", "root"]


class TestInlineBuild:
    """Tests for a build that embeds every artifact."""

    def test_inline_data_uri(
        self,
        tmp_path: Path,
        make_png: Callable[..., bytes],
        load_generated: Callable[[Path], ModuleType],
    ) -> None:
        """Inline builds write no static files and embed data URIs."""
        content = make_png(2, 2)
        (tmp_path / "logo.png").write_bytes(content)
        manifest_path = tmp_path / "rebundle.yaml"
        manifest_path.write_text(
            "bundles:\n  - name: Icons\n    methods:\n      - {name: logo, category: image}\n"
        )
        manifest = BundleManifest.from_yaml(manifest_path)
        output = tmp_path / "build"

        result = BundleCompiler().build(
            manifest, output, overrides={"resources.deployment": "inline"}
        )
        write_bundles(result, output, manifest.generated_package)
        package = load_generated(output / manifest.generated_package)

        url = package.Icons.logo().url
        assert url == "data:image/png;base64," + base64.b64encode(content).decode("ascii")
        assert not (output / STATIC_DIR_NAME).exists()
