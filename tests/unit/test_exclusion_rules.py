"""Tests for the exclusion evaluator and custom pattern compilation."""

import dataclasses

import pytest

from srccat.core.errors import InvalidPatternError
from srccat.core.exclusion import (
    ExclusionEvaluator,
    ExclusionReason,
    ExclusionRules,
    compile_pattern,
    compile_patterns,
)


class RecordingMatcher:
    """Ignore matcher stub that records the paths it is asked about."""

    def __init__(self, ignored: set[str] | None = None):
        self.ignored = ignored or set()
        self.calls: list[tuple[str, bool]] = []

    def matches(self, path, is_dir: bool = False) -> bool:
        self.calls.append((str(path), is_dir))
        return str(path) in self.ignored


@pytest.fixture
def evaluator() -> ExclusionEvaluator:
    return ExclusionEvaluator(ExclusionRules.build())


class TestBuiltinDirectories:
    @pytest.mark.parametrize(
        "name",
        [".git", "node_modules", "build", "dist", "out", ".cache", ".tmp",
         ".vscode", ".idea", ".next", "public", ".terraform"],
    )
    def test_directory_name_is_excluded(self, evaluator, name):
        assert evaluator.should_exclude(name, f"src/{name}", is_dir=True)

    def test_path_under_top_level_excluded_directory(self, evaluator):
        assert evaluator.exclusion_reason("main.js", "dist/main.js") == ExclusionReason.EXCLUDED_DIR

    def test_similar_directory_names_are_kept(self, evaluator):
        assert not evaluator.should_exclude("builder", "builder", is_dir=True)
        assert not evaluator.should_exclude("output.py", "output.py")


class TestBuiltinFileRules:
    @pytest.mark.parametrize(
        "name",
        ["data.json", "trace.log", "main.go.bak", "notes.txt~", ".DS_Store",
         "package-lock.json", "yarn.lock", "index.d.ts", "next.config.mjs",
         ".terraform.lock.hcl", "favicon.ico", "terraform.tfstate", "db.backup",
         "deck.pptx", "deck.ppt", "report.doc", "report.docx", "sheet.xls",
         "sheet.xlsx", "go.mod", "go.sum"],
    )
    def test_excluded_suffix(self, evaluator, name):
        assert evaluator.exclusion_reason(name, f"pkg/{name}") == ExclusionReason.EXCLUDED_SUFFIX

    @pytest.mark.parametrize("name", [".env", ".env.local", ".envrc", "secrets.env"])
    def test_environment_files(self, evaluator, name):
        assert evaluator.exclusion_reason(name, name) == ExclusionReason.ENV_FILE

    @pytest.mark.parametrize("name", ["environment.py", "env.sh", "dotenv.md"])
    def test_names_containing_env_are_kept(self, evaluator, name):
        assert not evaluator.should_exclude(name, name)

    def test_ignore_file_itself_is_excluded(self, evaluator):
        assert evaluator.exclusion_reason(".gitignore", "sub/.gitignore") == ExclusionReason.IGNORE_FILE

    def test_ordinary_source_file_is_kept(self, evaluator):
        assert evaluator.exclusion_reason("main.py", "src/main.py") is None


class TestCustomPatterns:
    def test_pattern_matches_base_name_anywhere(self):
        evaluator = ExclusionEvaluator(ExclusionRules.build(custom_patterns=["*.css"]))

        assert evaluator.exclusion_reason("app.css", "web/styles/app.css") == ExclusionReason.CUSTOM_PATTERN
        assert not evaluator.should_exclude("app.scss", "web/styles/app.scss")

    def test_pattern_matches_relative_path(self):
        evaluator = ExclusionEvaluator(ExclusionRules.build(custom_patterns=["docs/*"]))

        assert evaluator.should_exclude("guide.md", "docs/guide.md")
        assert evaluator.should_exclude("deep.md", "docs/a/deep.md")
        assert not evaluator.should_exclude("guide.md", "src/guide.md")

    def test_character_classes(self):
        evaluator = ExclusionEvaluator(
            ExclusionRules.build(custom_patterns=["test_[0-9].py", "[!a]*.txt"])
        )

        assert evaluator.should_exclude("test_1.py", "test_1.py")
        assert not evaluator.should_exclude("test_x.py", "test_x.py")
        assert evaluator.should_exclude("b.txt", "b.txt")
        assert not evaluator.should_exclude("a.txt", "a.txt")

    @pytest.mark.parametrize("pattern", ["[abc", "*.[py", "", "   "])
    def test_invalid_pattern_raises(self, pattern):
        with pytest.raises(InvalidPatternError):
            compile_pattern(pattern)

    def test_leading_bracket_inside_class_is_literal(self):
        assert compile_pattern("[]x]").matches("]", "]")

    def test_one_bad_pattern_fails_the_batch(self):
        with pytest.raises(InvalidPatternError) as excinfo:
            compile_patterns(["*.md", "src/[oops"])

        assert excinfo.value.pattern == "src/[oops"
        assert "src/[oops" in str(excinfo.value)

    def test_invalid_pattern_is_a_value_error(self):
        with pytest.raises(ValueError):
            ExclusionRules.build(custom_patterns=["[bad"])


class TestRuleOrdering:
    def test_ignore_matcher_is_consulted_last(self):
        matcher = RecordingMatcher()
        evaluator = ExclusionEvaluator(
            ExclusionRules.build(custom_patterns=["*.tmp"], ignore_matcher=matcher)
        )

        assert evaluator.should_exclude("node_modules", "node_modules", is_dir=True)
        assert evaluator.should_exclude("x.log", "x.log")
        assert evaluator.should_exclude(".env", ".env")
        assert evaluator.should_exclude("scratch.tmp", "scratch.tmp")
        assert matcher.calls == []

    def test_ignore_matcher_verdict(self):
        matcher = RecordingMatcher(ignored={"generated/api.py"})
        evaluator = ExclusionEvaluator(ExclusionRules.build(ignore_matcher=matcher))

        assert evaluator.exclusion_reason("api.py", "generated/api.py") == ExclusionReason.GITIGNORE
        assert not evaluator.should_exclude("main.py", "main.py")
        assert matcher.calls == [("generated/api.py", False), ("main.py", False)]

    def test_directory_flag_is_forwarded(self):
        matcher = RecordingMatcher()
        evaluator = ExclusionEvaluator(ExclusionRules.build(ignore_matcher=matcher))

        evaluator.should_exclude("src", "src", is_dir=True)

        assert matcher.calls == [("src", True)]


def test_rules_are_immutable():
    rules = ExclusionRules.build(custom_patterns=["*.md"])

    with pytest.raises(dataclasses.FrozenInstanceError):
        rules.custom_patterns = ()  # type: ignore[misc]


def test_default_evaluator_uses_builtin_rules():
    assert ExclusionEvaluator().should_exclude("yarn.lock", "yarn.lock")
