import pytest

from pyslate.asset_processors import CSSMinifier, JSMinifier, SassCompiler
from pyslate.assets import DEFAULT_MANIFEST, AssetManifest, AssetPipeline
from pyslate.config import BuildConfig
from pyslate.errors import AssetCompileError, ConfigError


def make_pipeline(project) -> AssetPipeline:
    return AssetPipeline(project / "source", project / "build")


def test_script_sources_without_search():
    manifest = AssetManifest(libs=("a.js", "b.js"), search=("s.js",), scripts=("app.js",))
    assert manifest.script_sources(search=False) == ["a.js", "b.js", "app.js"]
    assert manifest.script_sources(search=True) == ["a.js", "b.js", "s.js", "app.js"]


def test_default_manifest_order():
    sources = DEFAULT_MANIFEST.script_sources(search=True)
    assert sources[0] == "javascripts/lib/_energize.js"
    assert sources[-2:] == ["javascripts/app/_lang.js", "javascripts/app/_toc.js"]
    assert "javascripts/app/_search.js" not in DEFAULT_MANIFEST.script_sources(False)


def test_build_scripts_excludes_search(project):
    pipeline = make_pipeline(project)
    target = pipeline.build_scripts(BuildConfig(includes=(), search=False), compress=False)
    assert target == project / "build" / "javascripts" / "all.js"
    bundle = target.read_text(encoding="utf-8")
    assert "var lunr" not in bundle
    assert "var search" not in bundle
    assert bundle.index("var energize") < bundle.index("var imagesloaded_min")
    assert bundle.index("var imagesloaded_min") < bundle.index("var lang")
    assert bundle.index("var lang") < bundle.index("var toc")


def test_build_scripts_includes_search_between_libs_and_app(project):
    pipeline = make_pipeline(project)
    bundle = pipeline.build_scripts(
        BuildConfig(includes=(), search=True), compress=False
    ).read_text(encoding="utf-8")
    assert bundle.index("var imagesloaded_min") < bundle.index("var lunr")
    assert bundle.index("var lunr") < bundle.index("var jquery_highlight")
    assert bundle.index("var search") < bundle.index("var lang")


def test_build_scripts_minifies_when_compressed(project):
    pipeline = make_pipeline(project)
    config = BuildConfig(includes=())
    bundle = pipeline.build_scripts(config, compress=True).read_text(encoding="utf-8")
    assert "var toc=function(){return 1+1;};" in bundle
    plain = pipeline.build_scripts(config, compress=False).read_text(encoding="utf-8")
    assert "var toc = function () { return 1 + 1; };" in plain


def test_build_scripts_missing_file(project):
    (project / "source" / "javascripts" / "app" / "_toc.js").unlink()
    with pytest.raises(FileNotFoundError):
        make_pipeline(project).build_scripts(BuildConfig(includes=()))


def test_build_styles_uncompressed(project):
    written = make_pipeline(project).build_styles(compress=False)
    target = project / "build" / "stylesheets" / "screen.css"
    assert written == [target]
    css = target.read_text(encoding="utf-8")
    assert "color: #2e3336" in css
    assert not (project / "build" / "stylesheets" / "_variables.css").exists()
    assert not (project / "build" / "stylesheets" / "screen.css.scss").exists()


def test_build_styles_compressed(project):
    make_pipeline(project).build_styles(compress=True)
    css = (project / "build" / "stylesheets" / "screen.css").read_text(encoding="utf-8")
    assert "color:#2e3336" in css
    assert "\n" not in css.strip()


def test_build_styles_failure_does_not_block_others(project, capsys):
    broken = project / "source" / "stylesheets" / "broken.css.scss"
    broken.write_text("body { color: red;\n", encoding="utf-8")
    with pytest.raises(AssetCompileError) as excinfo:
        make_pipeline(project).build_styles(compress=False)
    assert list(excinfo.value.failures) == [broken]
    assert "broken.css.scss" in excinfo.value.message
    assert (project / "build" / "stylesheets" / "screen.css").exists()
    assert not (project / "build" / "stylesheets" / "broken.css").exists()
    assert "Stylesheet build failed" in capsys.readouterr().out


def test_build_highlight_theme(project):
    config = BuildConfig(includes=(), highlight_theme="monokai")
    target = make_pipeline(project).build_highlight_theme(config, compress=False)
    assert target == project / "build" / "stylesheets" / "highlight-monokai.css"
    css = target.read_text(encoding="utf-8")
    assert ".highlight .k" in css
    assert "\n" in css.strip()


def test_build_highlight_theme_compressed(project):
    config = BuildConfig(includes=(), highlight_theme="default")
    css = make_pipeline(project).build_highlight_theme(config).read_text(encoding="utf-8")
    assert ".highlight" in css
    assert "\n" not in css.strip()


def test_build_highlight_theme_unknown(project):
    config = BuildConfig(includes=(), highlight_theme="no-such-theme")
    with pytest.raises(AssetCompileError):
        make_pipeline(project).build_highlight_theme(config)


def test_build_highlight_theme_requires_theme(project):
    with pytest.raises(ConfigError):
        make_pipeline(project).build_highlight_theme(BuildConfig(includes=()))


def test_processors(tmp_path):
    source = tmp_path / "x.css.scss"
    assert "a b" in SassCompiler().process("$x: 1px;\na { b { margin: $x; } }", source)
    css = CSSMinifier().process("a {\n  color: red;\n}\n", source)
    assert css.startswith("a{color:red")
    assert "\n" not in css
    assert JSMinifier().process("var a = 1 ;\n", source).strip() == "var a=1;"
    with pytest.raises(AssetCompileError):
        SassCompiler().process("a {", source)
