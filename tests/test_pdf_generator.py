import os
from pathlib import Path

from conftest import StubEngine, sample_document

from repocover.services.pdf_generator import (
    MarkdownPdfGenerator,
    PdfEngine,
    PdfGeneratorFactory,
    TemplateFormat,
)
from repocover.settings import Settings


def _template(tmp_path: Path) -> Path:
    template = tmp_path / "covers" / "demo-cover.md"
    template.parent.mkdir(parents=True, exist_ok=True)
    template.write_text("# $title$\n")
    return template


def _temp_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "tmp"
    directory.mkdir(exist_ok=True)
    return directory


def test_two_stage_conversion(tmp_path: Path) -> None:
    template = _template(tmp_path)
    temp_dir = _temp_dir(tmp_path)
    logos = tmp_path / "logos"
    logos.mkdir()
    engine = StubEngine()
    generator = MarkdownPdfGenerator(template, temp_dir, engine=engine, licence_logos_dir=logos)

    pdf_path = generator.generate_file(sample_document(), "146-article")

    assert pdf_path == temp_dir / "146-article.pdf"
    assert pdf_path.is_file()
    assert len(engine.calls) == 2

    source, target, output, args = engine.calls[0]
    assert source == template
    assert target == "markdown"
    assert output == temp_dir / "146-article.md"
    assert args[args.index("--template") + 1] == str(template)
    assert args[args.index("--metadata-file") + 1] == str(temp_dir / "146-article-meta.json")
    assert args[args.index("--bibliography") + 1] == str(temp_dir / "146-article-csl.json")
    assert args[args.index("--wrap") + 1] == "preserve"
    assert f"images-basepath:{template.parent}{os.sep}" in args
    assert f"licence-logo-basepath:{logos}{os.sep}" in args

    source, target, output, args = engine.calls[1]
    assert source == temp_dir / "146-article.md"
    assert target == "pdf"
    assert output == pdf_path
    assert args[args.index("--resource-path") + 1] == str(template.parent)
    assert args[args.index("--bibliography") + 1] == str(temp_dir / "146-article-csl.json")
    assert "--citeproc" in args
    assert args[args.index("--pdf-engine") + 1] == "xelatex"


def test_intermediate_files_are_removed(tmp_path: Path) -> None:
    temp_dir = _temp_dir(tmp_path)
    generator = MarkdownPdfGenerator(_template(tmp_path), temp_dir, engine=StubEngine())

    pdf_path = generator.generate_file(sample_document(), "146-article")

    assert sorted(path.name for path in temp_dir.iterdir()) == [pdf_path.name]


def test_keep_temp_files(tmp_path: Path) -> None:
    temp_dir = _temp_dir(tmp_path)
    generator = MarkdownPdfGenerator(
        _template(tmp_path), temp_dir, engine=StubEngine(), keep_temp_files=True
    )

    generator.generate_file(sample_document(), "146-article")

    assert sorted(path.name for path in temp_dir.iterdir()) == [
        "146-article-csl.json",
        "146-article-meta.json",
        "146-article.md",
        "146-article.pdf",
    ]


def test_licence_logo_variable_only_with_directory(tmp_path: Path) -> None:
    engine = StubEngine()
    generator = MarkdownPdfGenerator(_template(tmp_path), _temp_dir(tmp_path), engine=engine)

    generator.generate_file(sample_document(), "146-article")

    assert not any(arg.startswith("licence-logo-basepath:") for arg in engine.calls[0][3])


def test_default_temp_filename(tmp_path: Path) -> None:
    generator = MarkdownPdfGenerator(_template(tmp_path), _temp_dir(tmp_path), engine=StubEngine())
    pdf_path = generator.generate_file(sample_document())
    assert pdf_path is not None
    assert pdf_path.name.startswith("146-")


def test_markdown_stage_failure(tmp_path: Path) -> None:
    engine = StubEngine(fail_on="markdown")
    temp_dir = _temp_dir(tmp_path)
    generator = MarkdownPdfGenerator(_template(tmp_path), temp_dir, engine=engine)

    assert generator.generate_file(sample_document(), "146-article") is None
    assert len(engine.calls) == 1
    assert list(temp_dir.iterdir()) == []


def test_pdf_stage_failure(tmp_path: Path) -> None:
    engine = StubEngine(fail_on="pdf")
    temp_dir = _temp_dir(tmp_path)
    generator = MarkdownPdfGenerator(_template(tmp_path), temp_dir, engine=engine)

    assert generator.generate_file(sample_document(), "146-article") is None
    assert len(engine.calls) == 2
    assert list(temp_dir.iterdir()) == []


def test_preconditions_checked_before_conversion(tmp_path: Path) -> None:
    engine = StubEngine()
    missing_template = MarkdownPdfGenerator(tmp_path / "nope.md", _temp_dir(tmp_path), engine=engine)
    assert missing_template.generate_file(sample_document()) is None

    missing_temp_dir = MarkdownPdfGenerator(_template(tmp_path), tmp_path / "no-tmp", engine=engine)
    assert missing_temp_dir.generate_file(sample_document()) is None

    assert engine.calls == []


def test_generate_returns_pdf_bytes(tmp_path: Path) -> None:
    generator = MarkdownPdfGenerator(_template(tmp_path), _temp_dir(tmp_path), engine=StubEngine())
    data = generator.generate(sample_document(), "146-article")
    assert data is not None
    assert data.startswith(b"%PDF")


def test_factory_dispatches_on_template_suffix(tmp_path: Path) -> None:
    settings = Settings(workspace_dir=tmp_path)
    factory = PdfGeneratorFactory(settings, engine=StubEngine())

    assert factory.template_kind(Path("cover.md")) == (TemplateFormat.MARKDOWN, PdfEngine.XELATEX)
    generator = factory.create(_template(tmp_path))
    assert isinstance(generator, MarkdownPdfGenerator)
    assert factory.create(tmp_path / "cover.odt") is None
