from pathlib import Path

from testgen.services import batch

GOOD = "export default function Good() { return <p>ok</p>; }\n"
BAD = "export default function Bad( {\n"


def _make_repo(root: Path) -> None:
    (root / ".git").mkdir()
    (root / ".gitignore").write_text("generated/\n*.local.jsx\n", encoding="utf-8")

    files = {
        "src/App.tsx": GOOD,
        "src/App.test.tsx": GOOD,
        "src/Button.jsx": GOOD,
        "src/legacy.js": GOOD,
        "src/util.ts": "export const x = 1;\n",
        "src/types.d.ts": "declare const y: number;\n",
        "src/Draft.local.jsx": GOOD,
        "src/__tests__/App.test.tsx": GOOD,
        "node_modules/lib/index.js": GOOD,
        "generated/Gen.jsx": GOOD,
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def test_discover_component_files(tmp_path):
    root = tmp_path.resolve()
    _make_repo(root)

    found = batch.discover_component_files(root)

    assert found == [
        str(root / "src" / "App.tsx"),
        str(root / "src" / "Button.jsx"),
        str(root / "src" / "legacy.js"),
    ]


def test_translate_gitignore_pattern():
    assert batch._translate_gitignore_pattern("# comment\n", "") is None
    assert batch._translate_gitignore_pattern("\n", "") is None
    assert batch._translate_gitignore_pattern("dist/\n", "") == "**/dist/"
    assert batch._translate_gitignore_pattern("/build\n", "web") == "/web/build"
    assert batch._translate_gitignore_pattern("src/gen/*.js\n", "web") == "/web/src/gen/*.js"
    assert batch._translate_gitignore_pattern("!keep.jsx\n", "") == "!**/keep.jsx"


def test_analyze_single_file_wraps_errors(tmp_path):
    bad = tmp_path / "Bad.tsx"
    bad.write_text(BAD, encoding="utf-8")

    result = batch.analyze_single_file(str(bad))

    assert isinstance(result, dict)
    assert result["filename"] == str(bad)
    assert "syntax error" in result["error"]


def test_analyze_directory_reports_per_file_errors(tmp_path):
    root = tmp_path.resolve()
    (root / "Good.tsx").write_text(GOOD, encoding="utf-8")
    (root / "Bad.tsx").write_text(BAD, encoding="utf-8")

    items = batch.analyze_directory(root, max_workers=1)

    assert [Path(i.path).name for i in items] == ["Bad.tsx", "Good.tsx"]
    bad, good = items
    assert bad.component is None
    assert "syntax error" in bad.error
    assert good.error is None
    assert good.component.name == "Good"


def test_analyze_directory_uses_runner(monkeypatch, tmp_path):
    root = tmp_path.resolve()
    (root / "Good.tsx").write_text(GOOD, encoding="utf-8")

    calls = []

    def fake_runner(files, max_workers):
        calls.append(max_workers)
        return {f: {"error": "boom", "filename": f} for f in files}

    monkeypatch.setattr(batch, "_run_file_analyses", fake_runner)

    items = batch.analyze_directory(root, max_workers=3)

    assert calls == [3]
    assert [(Path(i.path).name, i.error) for i in items] == [("Good.tsx", "boom")]
